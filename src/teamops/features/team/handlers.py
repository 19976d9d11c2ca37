"""API handlers for team feed and presence endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.teamops.config import settings
from src.teamops.features.team.service import TeamService
from src.teamops.features.team.validators import (
    FeedCursor,
    FeedMessage,
    FeedPageResponse,
    OnlineUser,
    PingPresenceRequest,
    PresenceAck,
    SendFeedMessageRequest,
)
from src.teamops.services import PostHogService
from src.teamops.services.auth.dependencies import get_current_user
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import SupabaseQueryBuilder, get_db
from src.teamops.services.rate_limiter import feed_write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["team"])
team_service = TeamService()


@router.get("/messages", response_model=FeedPageResponse)
async def list_feed_messages(
    before: datetime | None = Query(None, description="created_at of the last item already seen"),
    before_id: str | None = Query(None, description="id of the last item already seen"),
    limit: int = Query(settings.feed_page_size, ge=1, le=settings.feed_max_page_size),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> FeedPageResponse:
    """
    List team feed messages, newest first.

    Pass ``next_cursor`` from the previous page as ``before``/``before_id``
    to continue. Authorship prefers each author's current profile and falls
    back to the label captured when the message was posted.

    Raises:
        HTTPException: 422 if only one half of the cursor is given
        HTTPException: 500 if database query fails
    """
    if (before is None) != (before_id is None):
        raise HTTPException(
            status_code=422,
            detail="before and before_id must be provided together",
        )

    try:
        cursor = FeedCursor(created_at=before, id=before_id) if before is not None else None
        return team_service.list_messages(db, cursor=cursor, limit=limit)
    except Exception as e:
        logger.error(f"Error listing feed messages for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load messages. Please try again.",
        ) from e


@router.post(
    "/messages",
    response_model=FeedMessage,
    status_code=201,
    dependencies=[Depends(feed_write_rate_limit)],
)
async def send_feed_message(
    req: SendFeedMessageRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> FeedMessage:
    """
    Post a message to the team feed.

    The author's current label and handle are stored on the message along
    with any ``@handle`` mentions found in the body.

    Raises:
        HTTPException: 422 if body is empty or too long
        HTTPException: 500 if the message cannot be stored
    """
    try:
        message = team_service.send_message(db, current_user, req.body, req.page)
    except Exception as e:
        logger.error(f"Error sending feed message for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message. Please try again.",
        ) from e

    PostHogService().capture(
        distinct_id=current_user.sub,
        event="feed_message_sent",
        properties={"mentions": len(message.mentions), "has_page": bool(message.page)},
    )
    return message


@router.post("/presence/ping", response_model=PresenceAck)
async def ping_presence(
    req: PingPresenceRequest | None = None,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> PresenceAck:
    """Record that the caller is online, optionally with the page they are on."""
    page = req.page if req else None
    try:
        last_seen = team_service.ping_presence(db, current_user, page)
    except Exception as e:
        logger.error(f"Error recording presence for user {current_user.sub}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record presence.",
        ) from e
    return PresenceAck(last_seen=last_seen)


@router.get("/online", response_model=list[OnlineUser])
@router.get("/presence/online", response_model=list[OnlineUser])
async def list_online(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[OnlineUser]:
    """
    List users seen within the last ``online_window_seconds`` (90s), newest first.

    Returns at most ``online_limit`` (50) users.
    """
    try:
        return team_service.list_online(db)
    except Exception as e:
        logger.error(f"Error listing online users: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load online users.",
        ) from e
