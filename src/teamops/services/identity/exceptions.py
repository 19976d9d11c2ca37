"""Exceptions raised while reconciling user identity."""


class IdentityError(Exception):
    """Base exception for identity resolution errors."""

    pass


class MissingSubjectError(IdentityError):
    """Raised when a claim set carries no subject identifier."""

    def __init__(self, message: str = "Identity claims are missing the 'sub' claim"):
        super().__init__(message)


class ProfileStoreError(IdentityError):
    """Raised when the profile upsert cannot reach or complete in the store."""

    pass
