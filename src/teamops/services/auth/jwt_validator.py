"""Local JWT verification against the identity provider's JWKS."""

import logging
from typing import Any

from jose import JWTError, jwt

from src.teamops.services.auth.jwks import JWKSCache

logger = logging.getLogger(__name__)

ALLOWED_ALGORITHMS = ["RS256", "ES256"]

_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_exp": True,
    "verify_nbf": True,
    "verify_iat": True,
    "verify_aud": True,
    "verify_iss": True,
    "require_exp": True,
    "require_iat": True,
}


class JWTValidator:
    """
    Verifies bearer tokens issued by the Auth0 tenant.

    Checks signature, expiry, issuer and audience. The decoded claims are
    returned untouched; turning them into an identity is the caller's job.

    Attributes:
        jwks_cache: Source of signing keys
        issuer: Expected ``iss`` (``https://<tenant>/``)
        audience: Expected ``aud`` (the API identifier)
        leeway: Clock skew tolerance in seconds

    Example:
        >>> validator = JWTValidator(cache, "https://tenant.us.auth0.com/", "https://api")
        >>> claims = await validator.verify_token(token)
    """

    def __init__(
        self,
        jwks_cache: JWKSCache,
        issuer: str,
        audience: str,
        leeway: int = 10,
    ):
        self.jwks_cache = jwks_cache
        self.issuer = issuer
        self.audience = audience
        self.leeway = leeway

    async def verify_token(self, token: str) -> dict[str, Any]:
        """
        Verify a bearer token and return its claims.

        Args:
            token: JWT string (without the "Bearer " prefix)

        Returns:
            Decoded claims

        Raises:
            JWTError: If the token is malformed, expired, signed by an unknown
                key, or issued for another issuer/audience
        """
        try:
            kid = self._key_id(token)
            signing_key = await self.jwks_cache.get_signing_key(kid)
            claims = self._decode(token, signing_key)
        except JWTError as e:
            logger.warning(
                f"JWT verification failed: {e}",
                extra={"error_type": "jwt_verification_failed"},
            )
            raise
        except Exception as e:
            logger.error(
                f"Unexpected error during JWT verification: {e}",
                exc_info=True,
                extra={"error_type": "jwt_verification_error"},
            )
            raise JWTError(f"JWT verification error: {e}") from e

        logger.debug(
            "JWT verified",
            extra={"user_sub": claims.get("sub"), "kid": kid, "exp": claims.get("exp")},
        )
        return claims

    @staticmethod
    def _key_id(token: str) -> str:
        kid = jwt.get_unverified_header(token).get("kid")
        if not kid:
            raise JWTError("JWT header missing 'kid' (key ID)")
        return kid

    def _decode(self, token: str, signing_key: Any) -> dict[str, Any]:
        return jwt.decode(
            token,
            signing_key,
            algorithms=ALLOWED_ALGORITHMS,
            audience=self.audience,
            issuer=self.issuer,
            options={**_DECODE_OPTIONS, "leeway": self.leeway},
        )
