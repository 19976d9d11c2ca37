"""
Identity reconciliation: which display name, handle, email and picture to keep.

Tokens from the identity provider do not always carry profile claims (access
tokens often hold nothing but ``sub``), so the values persisted for a user are
decided by one precedence rule:

1. Candidate display name: first non-empty of ``name``, ``nickname``,
   ``preferred_username``, ``email``, ``sub``.
2. The candidate is *meaningful* when it is non-empty, differs from the
   subject and does not look like a provider-qualified subject
   (``google-oauth2|1234``).
3. A meaningful candidate replaces the stored name. Otherwise the stored name
   is kept. With nothing stored yet the candidate is written anyway, so the
   column is never null.
4. The handle follows the display name: re-derived when the name changes,
   untouched when it does not.
5. Email and picture take the claim when present and never get cleared.
6. ``last_seen`` always advances.

:func:`resolve` is pure. The database function ``upsert_user_profile``
applies the same rules inside its ``ON CONFLICT`` clause, which is what keeps
concurrent requests for one subject from losing updates.
"""

import re
from datetime import UTC, datetime

from src.teamops.services.identity.exceptions import MissingSubjectError
from src.teamops.services.identity.models import IdentityClaims, ResolvedProfile, UserProfile

HANDLE_MAX_LENGTH = 32
HANDLE_SEPARATOR = "-"
# Punctuation allowed inside a handle but never at either end
HANDLE_EDGE_CHARS = "-._"
PROVIDER_SEPARATOR = "|"

_HANDLE_INVALID_RUN = re.compile(r"[^a-z0-9_.-]+")


def to_handle(label: str | None) -> str:
    """
    Derive a mention-safe handle from a display label.

    Lowercases, collapses every run of characters outside ``[a-z0-9_.-]``
    into a single ``-``, trims ``-``, ``.`` and ``_`` from both ends and
    truncates to 32 characters. Applying it to its own output returns the
    same value.

    Example:
        >>> to_handle("  Jane Doe (Ops) ")
        'jane-doe-ops'
        >>> to_handle("auth0|123")
        'auth0-123'
    """
    handle = _HANDLE_INVALID_RUN.sub(HANDLE_SEPARATOR, (label or "").strip().lower())
    handle = handle.strip(HANDLE_EDGE_CHARS)[:HANDLE_MAX_LENGTH]
    # Truncation can expose a separator at the end.
    return handle.rstrip(HANDLE_EDGE_CHARS)


def looks_like_subject(value: str) -> bool:
    """True for provider-qualified identifiers such as ``auth0|abc``."""
    return PROVIDER_SEPARATOR in value


def candidate_display_name(claims: IdentityClaims) -> str:
    """First non-empty name-like claim, falling back to the subject."""
    for value in (
        claims.name,
        claims.nickname,
        claims.preferred_username,
        claims.email,
        claims.sub,
    ):
        if value and value.strip():
            return value.strip()
    return ""


def is_meaningful(candidate: str, subject: str) -> bool:
    """Whether ``candidate`` may overwrite a stored display name."""
    return bool(candidate) and candidate != subject and not looks_like_subject(candidate)


def _present(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def subject_handle(subject: str) -> str:
    """Handle used when no display name yields one."""
    return to_handle(subject) or subject[:HANDLE_MAX_LENGTH]


def resolve(
    claims: IdentityClaims,
    existing: UserProfile | None = None,
    now: datetime | None = None,
) -> ResolvedProfile:
    """
    Compute the profile values to persist for ``claims``.

    Args:
        claims: Verified claim set; ``sub`` is required
        existing: Profile currently on file, if any
        now: Timestamp recorded as ``last_seen`` (defaults to current UTC time)

    Returns:
        ResolvedProfile with final values and the flags the atomic upsert
        needs to apply the same precedence server-side

    Raises:
        MissingSubjectError: If the claims carry no subject identifier

    Example:
        >>> stored = UserProfile(user_sub="auth0|1", display_name="Jane Doe", handle="jane-doe")
        >>> resolve(IdentityClaims(sub="auth0|1"), stored).display_name
        'Jane Doe'
    """
    subject = (claims.sub or "").strip()
    if not subject:
        raise MissingSubjectError()

    candidate = candidate_display_name(claims)
    meaningful = is_meaningful(candidate, subject)
    derived = to_handle(candidate)

    if existing is None:
        display_name = candidate or subject
        handle = derived or subject_handle(subject)
    elif meaningful:
        display_name = candidate
        name_changed = candidate != existing.display_name
        handle = derived if (name_changed and derived) else existing.handle
    else:
        display_name = existing.display_name
        handle = existing.handle

    return ResolvedProfile(
        user_sub=subject,
        email=_present(claims.email) or (existing.email if existing else None),
        display_name=display_name,
        picture_url=_present(claims.picture) or (existing.picture_url if existing else None),
        handle=handle,
        last_seen=now or datetime.now(UTC),
        name_authoritative=meaningful,
        handle_derived=bool(derived),
    )
