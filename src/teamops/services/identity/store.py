"""Persistence for resolved user profiles."""

import logging
from collections.abc import Iterable

from pydantic import ValidationError

from src.teamops.services.database import SupabaseQueryBuilder
from src.teamops.services.identity.exceptions import ProfileStoreError
from src.teamops.services.identity.models import IdentityClaims, ResolvedProfile, UserProfile
from src.teamops.services.identity.resolver import resolve

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
UPSERT_FUNCTION = "upsert_user_profile"


class ProfileStore:
    """Thin wrapper around the ``users`` table."""

    def __init__(self, db: SupabaseQueryBuilder) -> None:
        self.db = db

    def persist(self, resolved: ResolvedProfile) -> UserProfile:
        """
        Write a resolved profile with a single conflict-resolving upsert.

        The database function inserts on first sight of a subject and, on
        conflict, keeps stored values wherever the resolved ones may not
        overwrite them. Returns the row as committed.

        Raises:
            ProfileStoreError: If the store rejects or cannot complete the write
        """
        try:
            rows = self.db.call_function(UPSERT_FUNCTION, resolved.to_upsert_params())
        except Exception as e:
            raise ProfileStoreError(f"Profile upsert failed for {resolved.user_sub}: {e}") from e

        if not rows:
            raise ProfileStoreError(f"Profile upsert returned no row for {resolved.user_sub}")

        try:
            return UserProfile.model_validate(rows[0])
        except ValidationError as e:
            raise ProfileStoreError(
                f"Profile upsert returned a malformed row for {resolved.user_sub}: {e}"
            ) from e

    def get(self, user_sub: str) -> UserProfile | None:
        row = self.db.get_by_field(USERS_TABLE, "user_sub", user_sub)
        return UserProfile.model_validate(row) if row else None

    def get_many(self, user_subs: Iterable[str]) -> dict[str, UserProfile]:
        """Live profiles for the given subjects, keyed by subject."""
        unique = list(dict.fromkeys(s for s in user_subs if s))
        rows = self.db.list_in(USERS_TABLE, "user_sub", unique)
        return {row["user_sub"]: UserProfile.model_validate(row) for row in rows}


def resolve_and_persist(claims: IdentityClaims, db: SupabaseQueryBuilder) -> UserProfile:
    """
    Resolve ``claims`` and upsert the result.

    Resolution runs without reading the stored profile first; the upsert
    applies the precedence rules against the stored row atomically, and the
    committed row is returned.

    Args:
        claims: Verified claim set
        db: Database query builder

    Returns:
        The profile as stored after this request

    Raises:
        MissingSubjectError: If the claims carry no subject (nothing is written)
        ProfileStoreError: If the upsert fails
    """
    resolved = resolve(claims)
    profile = ProfileStore(db).persist(resolved)

    logger.debug(
        "Profile upserted",
        extra={
            "user_sub": profile.user_sub,
            "name_authoritative": resolved.name_authoritative,
        },
    )
    return profile
