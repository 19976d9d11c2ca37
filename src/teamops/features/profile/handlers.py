"""API handlers for the current-user endpoint."""

import logging

from fastapi import APIRouter, Depends

from src.teamops.features.profile.models import MeResponse
from src.teamops.services.auth.dependencies import get_current_user
from src.teamops.services.auth.models import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> MeResponse:
    """
    Get the caller's resolved profile and the claims it came from.

    The profile has already been upserted by authentication, so this
    endpoint performs no additional database work.

    Example Response:
        {
            "profile": {"user_sub": "auth0|123", "display_name": "Jane Doe", "handle": "jane-doe", ...},
            "claims": {"sub": "auth0|123", "name": "Jane Doe", ...},
            "roles": []
        }
    """
    return MeResponse(
        profile=current_user.profile,
        claims=current_user.claims,
        roles=current_user.claims.roles,
    )
