"""Data models for authentication."""

from pydantic import BaseModel

from src.teamops.services.identity.models import IdentityClaims, UserProfile


class AuthenticatedUser(BaseModel):
    """
    The caller of an authenticated request.

    Carries the verified claims and the profile produced by identity
    resolution. Handlers use ``sub`` for scoping and ``label``/``handle`` for
    display snapshots.

    Example:
        >>> @router.get("/me")
        ... async def me(current_user: AuthenticatedUser = Depends(get_current_user)):
        ...     return {"sub": current_user.sub, "label": current_user.label}
    """

    claims: IdentityClaims
    profile: UserProfile

    @property
    def sub(self) -> str:
        return self.profile.user_sub

    @property
    def label(self) -> str:
        return self.profile.display_name

    @property
    def handle(self) -> str:
        return self.profile.handle
