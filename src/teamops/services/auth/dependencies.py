"""FastAPI dependencies for JWT authentication and identity resolution."""

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from src.teamops.config import settings
from src.teamops.services.auth.exceptions import AuthenticationError
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import SupabaseQueryBuilder, get_db
from src.teamops.services.identity import (
    IdentityClaims,
    MissingSubjectError,
    ProfileStoreError,
    resolve,
    resolve_and_persist,
)
from src.teamops.services.posthog import PostHogService

# auto_error=False so a missing header is a 401 like any other auth failure
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

# Global JWT validator instance (initialized in main.py startup)
_jwt_validator = None


def set_jwt_validator(validator):
    """
    Set the global JWT validator instance.

    Called during application startup to initialize the JWT validator.
    """
    global _jwt_validator
    _jwt_validator = validator


def get_jwt_validator():
    """
    Get the global JWT validator instance.

    Raises:
        RuntimeError: If JWT validator not initialized
    """
    if _jwt_validator is None:
        raise RuntimeError(
            "JWT validator not initialized. "
            "Ensure application startup calls set_jwt_validator()."
        )
    return _jwt_validator


async def verify_claims(credentials: HTTPAuthorizationCredentials | None) -> IdentityClaims:
    """
    Verify the bearer token and build the explicit claim set.

    Raises:
        AuthenticationError: If the token is missing, invalid, or has no subject
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("missing_token")

    try:
        payload = await get_jwt_validator().verify_token(credentials.credentials)
    except JWTError as e:
        raise AuthenticationError("invalid_token") from e

    claims = IdentityClaims.from_token_payload(payload, roles_claim=settings.roles_claim)
    if not claims.sub:
        raise AuthenticationError("missing_sub_claim")
    return claims


def establish_identity(claims: IdentityClaims, db: SupabaseQueryBuilder) -> AuthenticatedUser:
    """
    Run resolve-and-persist for the caller.

    A failed upsert does not fail the request: the caller proceeds with the
    profile resolved from the verified claims alone.

    Raises:
        MissingSubjectError: If the claims carry no subject (nothing is written)
    """
    try:
        profile = resolve_and_persist(claims, db)
    except ProfileStoreError as e:
        logger.warning(
            f"Profile upsert skipped: {e}",
            extra={"error_type": "profile_upsert_failed", "user_sub": claims.sub},
        )
        profile = resolve(claims).as_profile()

    return AuthenticatedUser(claims=claims, profile=profile)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> AuthenticatedUser:
    """
    Authenticate the request and upsert the caller's profile.

    Runs before every business handler: verifies the Auth0 token, rejects
    claims without a subject, then resolves and persists the profile.

    Args:
        request: Incoming request; the user is stored on ``request.state.user``
        credentials: Bearer token from Authorization header
        db: Database query builder

    Returns:
        AuthenticatedUser with verified claims and resolved profile

    Raises:
        HTTPException: 401 if token missing/invalid or subject absent

    Example:
        @router.get("/me")
        async def me(current_user: AuthenticatedUser = Depends(get_current_user)):
            return {"sub": current_user.sub, "handle": current_user.handle}
    """
    posthog_service = PostHogService()

    try:
        claims = await verify_claims(credentials)
        user = establish_identity(claims, db)
    except (AuthenticationError, MissingSubjectError) as e:
        reason = str(e) if isinstance(e, AuthenticationError) else "missing_sub_claim"
        logger.warning(f"Auth failed: {reason}", extra={"error_type": reason})
        posthog_service.capture(
            distinct_id="anonymous",
            event="authentication_failed",
            properties={"error": reason},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=reason,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    request.state.user = user
    logger.info(f"User authenticated: {user.sub}", extra={"user_sub": user.sub})
    return user
