"""Shared fixtures for authentication tests."""

import time
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

ISSUER = "https://teamops-test.us.auth0.com/"
AUDIENCE = "https://api.teamops.test"


@pytest.fixture(scope="session")
def rsa_private_pem() -> str:
    """Provide a throwaway RSA private key in PEM form."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def rsa_public_jwk(rsa_private_pem: str) -> dict[str, Any]:
    """Public half of the key as a JWKS entry with kid ``key-1``."""
    public_dict = jwk.construct(rsa_private_pem, algorithm="RS256").public_key().to_dict()
    return {**public_dict, "kid": "key-1", "use": "sig"}


@pytest.fixture
def jwks_payload(rsa_public_jwk: dict[str, Any]) -> dict[str, Any]:
    """Provide a JWKS document holding the test key."""
    return {"keys": [rsa_public_jwk]}


@pytest.fixture
def make_token(rsa_private_pem: str):
    """Factory for RS256 tokens signed with the test key."""

    def _make(claims: dict[str, Any] | None = None, kid: str | None = "key-1", **overrides) -> str:
        now = int(time.time())
        payload = {
            "sub": "auth0|123",
            "iss": ISSUER,
            "aud": AUDIENCE,
            "iat": now,
            "exp": now + 3600,
            **(claims or {}),
            **overrides,
        }
        headers = {"kid": kid} if kid else None
        return jwt.encode(payload, rsa_private_pem, algorithm="RS256", headers=headers)

    return _make
