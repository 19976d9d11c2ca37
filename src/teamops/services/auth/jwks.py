"""JWKS (JSON Web Key Set) fetching and caching for Auth0 token verification."""

import asyncio
import logging
from datetime import UTC, datetime

import httpx
from jose import jwk
from jose.backends.base import Key

logger = logging.getLogger(__name__)

# Auth0 signs access tokens with RS256 unless the API is configured otherwise.
DEFAULT_ALGORITHM = "RS256"


class JWKSCache:
    """
    Caches the tenant's public signing keys, keyed by ``kid``.

    Keys are fetched lazily, refreshed when the TTL lapses, and refreshed once
    more when a token names a ``kid`` the cache has not seen (key rotation).
    Concurrent refreshes are collapsed behind a lock.

    Attributes:
        jwks_url: ``https://<tenant>/.well-known/jwks.json``
        cache_ttl: Seconds before cached keys are considered stale

    Example:
        >>> cache = JWKSCache("https://tenant.us.auth0.com/.well-known/jwks.json")
        >>> key = await cache.get_signing_key("kid-from-token-header")
    """

    def __init__(self, jwks_url: str, cache_ttl: int = 3600, timeout: float = 10.0):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self._keys: dict[str, Key] = {}
        self._fetched_at: datetime | None = None
        self._refresh_lock = asyncio.Lock()
        self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def key_ids(self) -> list[str]:
        return list(self._keys)

    async def get_signing_key(self, kid: str) -> Key:
        """
        Return the public key for ``kid``.

        Raises:
            ValueError: If the key is still unknown after a refresh
            httpx.HTTPError: If the JWKS endpoint cannot be reached
        """
        if self._is_stale():
            await self.refresh_keys()

        key = self._keys.get(kid)
        if key is None:
            logger.warning(
                f"Unknown key ID '{kid}', refreshing JWKS",
                extra={"kid": kid, "cached_kids": self.key_ids},
            )
            await self.refresh_keys()
            key = self._keys.get(kid)

        if key is None:
            raise ValueError(f"Key ID '{kid}' not found in JWKS")

        return key

    async def refresh_keys(self) -> None:
        """
        Download the key set and replace the cache in one assignment.

        Raises:
            httpx.HTTPError: If the request fails or returns an error status
        """
        async with self._refresh_lock:
            try:
                keys = self._parse_keys(await self._fetch_jwks())
            except httpx.HTTPError as e:
                logger.error(
                    f"Failed to fetch JWKS from {self.jwks_url}: {e}",
                    exc_info=True,
                    extra={"error_type": "jwks_fetch_failed"},
                )
                raise

            if not keys:
                logger.warning(
                    "JWKS response contains no usable keys; token verification will fail",
                    extra={"jwks_url": self.jwks_url},
                )

            self._keys = keys
            self._fetched_at = datetime.now(UTC)
            logger.info(
                "JWKS cache refreshed",
                extra={"key_count": len(keys), "key_ids": list(keys)},
            )

    async def _fetch_jwks(self) -> dict:
        """Fetch the key set once; failures surface to the caller."""
        response = await self._http_client.get(self.jwks_url)
        response.raise_for_status()
        return response.json()

    def _parse_keys(self, payload: dict) -> dict[str, Key]:
        keys: dict[str, Key] = {}
        for key_data in payload.get("keys", []):
            kid = key_data.get("kid")
            if not kid:
                logger.warning("Skipping JWKS entry without 'kid'")
                continue
            if key_data.get("use", "sig") != "sig":
                continue

            algorithm = key_data.get("alg") or (
                "ES256" if key_data.get("kty") == "EC" else DEFAULT_ALGORITHM
            )
            try:
                keys[kid] = jwk.construct(key_data, algorithm=algorithm)
            except Exception as e:
                logger.warning(
                    f"Skipping unparseable JWKS entry '{kid}': {e}",
                    extra={"kid": kid, "error_type": "jwks_parse_failed"},
                )
        return keys

    def _is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        age = (datetime.now(UTC) - self._fetched_at).total_seconds()
        return age >= self.cache_ttl

    async def close(self) -> None:
        """Close the HTTP client. Called on application shutdown."""
        await self._http_client.aclose()
        logger.info("JWKS cache closed")
