"""Authentication module for JWT-based authentication."""

from src.teamops.services.auth.dependencies import (
    get_current_user,
    get_jwt_validator,
    set_jwt_validator,
)
from src.teamops.services.auth.exceptions import AuthenticationError
from src.teamops.services.auth.jwks import JWKSCache
from src.teamops.services.auth.jwt_validator import JWTValidator
from src.teamops.services.auth.models import AuthenticatedUser

__all__ = [
    "get_current_user",
    "get_jwt_validator",
    "set_jwt_validator",
    "JWKSCache",
    "JWTValidator",
    "AuthenticationError",
    "AuthenticatedUser",
]
