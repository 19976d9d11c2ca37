"""API handlers for direct message endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from src.teamops.features.direct_messages.services import DirectMessageService, SelfMessageError
from src.teamops.features.direct_messages.validators import (
    DirectMessage,
    MessageThread,
    SendDirectMessageRequest,
)
from src.teamops.services.auth.dependencies import get_current_user
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import SupabaseQueryBuilder, get_db
from src.teamops.services.rate_limiter import feed_write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/direct-messages", tags=["direct-messages"])
dm_service = DirectMessageService()


@router.get("/threads", response_model=list[MessageThread])
async def list_threads(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[MessageThread]:
    try:
        return dm_service.list_threads(db, current_user.sub)
    except Exception as e:
        logger.error(f"Error listing threads for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load conversations.") from e


@router.get(
    "/{other_sub}",
    response_model=list[DirectMessage],
    response_model_by_alias=True,
)
async def get_conversation(
    other_sub: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[DirectMessage]:
    """Messages between the caller and ``other_sub``, oldest first (at most 200)."""
    try:
        return dm_service.conversation(db, current_user.sub, other_sub)
    except Exception as e:
        logger.error(f"Error loading conversation for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load conversation.") from e


@router.post(
    "",
    response_model=DirectMessage,
    response_model_by_alias=True,
    status_code=201,
    dependencies=[Depends(feed_write_rate_limit)],
)
async def send_direct_message(
    req: SendDirectMessageRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> DirectMessage:
    """
    Send a direct message to another user.

    Raises:
        HTTPException: 400 if the recipient is the caller
        HTTPException: 422 if ``to`` or ``body`` is missing or too long
    """
    try:
        return dm_service.send(db, current_user.sub, req.to, req.body)
    except SelfMessageError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error sending direct message for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to send message.") from e
