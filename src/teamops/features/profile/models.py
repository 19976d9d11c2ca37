"""Pydantic models for profile feature."""

from pydantic import BaseModel, Field

from src.teamops.services.identity import IdentityClaims, UserProfile


class MeResponse(BaseModel):
    """Response model for the current-user endpoint."""

    profile: UserProfile = Field(description="Profile resolved and stored for this request")
    claims: IdentityClaims = Field(description="Verified claims the profile was resolved from")
    roles: list[str] = Field(default_factory=list, description="Roles granted by the identity provider")

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "profile": {
                    "user_sub": "auth0|123",
                    "email": "jane@example.com",
                    "display_name": "Jane Doe",
                    "picture_url": None,
                    "handle": "jane-doe",
                },
                "claims": {"sub": "auth0|123", "name": "Jane Doe", "email": "jane@example.com"},
                "roles": ["operator"],
            }
        }
