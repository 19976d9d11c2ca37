"""User identity reconciliation."""

from src.teamops.services.identity.exceptions import (
    IdentityError,
    MissingSubjectError,
    ProfileStoreError,
)
from src.teamops.services.identity.models import IdentityClaims, ResolvedProfile, UserProfile
from src.teamops.services.identity.resolver import resolve, to_handle
from src.teamops.services.identity.store import ProfileStore, resolve_and_persist

__all__ = [
    "IdentityError",
    "MissingSubjectError",
    "ProfileStoreError",
    "IdentityClaims",
    "ResolvedProfile",
    "UserProfile",
    "resolve",
    "to_handle",
    "ProfileStore",
    "resolve_and_persist",
]
