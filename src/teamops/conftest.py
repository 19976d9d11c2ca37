"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from src.teamops.main import app
from src.teamops.services.auth.dependencies import get_current_user
from src.teamops.services.auth.models import AuthenticatedUser
from src.teamops.services.database import get_db
from src.teamops.services.identity import IdentityClaims, UserProfile
from src.teamops.services.rate_limiter import limiter
from src.teamops.tests.fakes import InMemoryQueryBuilder


@pytest.fixture(autouse=True)
def disable_rate_limits() -> Iterator[None]:
    """Keep per-address counters from leaking between tests."""
    previous = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = previous


@pytest.fixture
def fake_db() -> InMemoryQueryBuilder:
    """Provide an empty in-memory database."""
    return InMemoryQueryBuilder()


@pytest.fixture
def current_user() -> AuthenticatedUser:
    """Provide an authenticated caller with a resolved profile."""
    return AuthenticatedUser(
        claims=IdentityClaims(sub="auth0|alice", name="Alice Doe", email="alice@example.com"),
        profile=UserProfile(
            user_sub="auth0|alice",
            email="alice@example.com",
            display_name="Alice Doe",
            handle="alice-doe",
        ),
    )


@pytest.fixture
def client(fake_db: InMemoryQueryBuilder, current_user: AuthenticatedUser) -> Iterator[TestClient]:
    """
    Provide FastAPI test client authenticated as ``current_user``.

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_current_user] = lambda: current_user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anon_client(fake_db: InMemoryQueryBuilder) -> Iterator[TestClient]:
    """Provide a test client that goes through real token verification."""
    app.dependency_overrides[get_db] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()
