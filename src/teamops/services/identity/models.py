"""Identity claims and the profile records resolved from them."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Claims copied onto named fields; everything else lands in ``extra``.
_NAMED_CLAIMS = (
    "sub",
    "email",
    "name",
    "nickname",
    "preferred_username",
    "picture",
    "given_name",
    "family_name",
)


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class IdentityClaims(BaseModel):
    """
    Claim set surfaced by a verified Auth0 access or ID token.

    Only ``sub`` is guaranteed; access tokens frequently omit profile claims.
    Claims without a named field are kept in ``extra`` so nothing downstream
    has to reach into the raw token payload.

    Example:
        >>> claims = IdentityClaims.from_token_payload(
        ...     {"sub": "auth0|123", "name": "Jane Doe", "org_id": "org_1"}
        ... )
        >>> claims.extra
        {'org_id': 'org_1'}
    """

    model_config = ConfigDict(frozen=True)

    sub: str | None = None
    email: str | None = None
    name: str | None = None
    nickname: str | None = None
    preferred_username: str | None = None
    picture: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    roles: list[str] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_token_payload(
        cls, payload: dict[str, Any], roles_claim: str | None = None
    ) -> "IdentityClaims":
        """
        Build a claim set from a decoded JWT payload.

        String claims are trimmed and blanks become ``None``. Roles are read
        from the namespaced ``roles_claim`` first, then from a plain ``roles``
        claim.
        """
        named = {key: _clean(payload.get(key)) for key in _NAMED_CLAIMS}

        raw_roles = None
        if roles_claim:
            raw_roles = payload.get(roles_claim)
        if raw_roles is None:
            raw_roles = payload.get("roles")
        roles = [str(role) for role in raw_roles] if isinstance(raw_roles, list) else []

        consumed = set(_NAMED_CLAIMS) | {"roles"}
        if roles_claim:
            consumed.add(roles_claim)
        extra = {key: value for key, value in payload.items() if key not in consumed}

        return cls(**named, roles=roles, extra=extra)


class UserProfile(BaseModel):
    """
    Persisted user profile, keyed by subject identifier.

    Mirrors a row of the ``users`` table. ``display_name`` and ``handle`` are
    never null: the first write stores the subject when nothing better exists.
    """

    model_config = ConfigDict(extra="ignore")

    user_sub: str
    email: str | None = None
    display_name: str
    picture_url: str | None = None
    handle: str
    last_seen: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ResolvedProfile(BaseModel):
    """
    Output of :func:`resolve`: the values to persist for one request.

    Attributes:
        name_authoritative: True when ``display_name`` came from a meaningful
            candidate and may overwrite a stored name.
        handle_derived: True when ``handle`` was derived from ``display_name``
            (as opposed to the subject fallback or a kept stored handle).
    """

    user_sub: str
    email: str | None = None
    display_name: str
    picture_url: str | None = None
    handle: str
    last_seen: datetime
    name_authoritative: bool = Field(default=False)
    handle_derived: bool = Field(default=False)

    def to_upsert_params(self) -> dict[str, Any]:
        """Arguments for the ``upsert_user_profile`` database function."""
        return {
            "p_user_sub": self.user_sub,
            "p_email": self.email,
            "p_display_name": self.display_name,
            "p_picture_url": self.picture_url,
            "p_handle": self.handle,
            "p_name_authoritative": self.name_authoritative,
            "p_handle_derived": self.handle_derived,
        }

    def as_profile(self) -> UserProfile:
        """Profile view of the resolved values, used when the store is unavailable."""
        return UserProfile(
            user_sub=self.user_sub,
            email=self.email,
            display_name=self.display_name,
            picture_url=self.picture_url,
            handle=self.handle,
            last_seen=self.last_seen,
        )
