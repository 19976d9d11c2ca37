"""Custom exceptions for authentication."""


class AuthenticationError(Exception):
    """
    Raised when a request cannot be authenticated.

    The message is a short machine-readable reason (``missing_token``,
    ``invalid_token``, ``missing_sub_claim``) returned as the 401 detail.
    """

    pass
