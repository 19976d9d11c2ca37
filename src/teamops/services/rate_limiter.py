"""Rate limiting service for API endpoints."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from limits import RateLimitItem, parse_many
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.teamops.config import settings

logger = logging.getLogger(__name__)


class RateLimitedError(Exception):
    """Raised when a client address has used up a limit tier."""

    def __init__(self, tier: str, limit: RateLimitItem) -> None:
        self.tier = tier
        self.limit = limit
        super().__init__(f"Rate limit exceeded for tier {tier}: {limit}")


def get_client_address(request: Request) -> str:
    """Rate limit key: the client address, authenticated or not."""
    return f"ip:{get_remote_address(request)}"


# Fixed-window counters held in process memory
limiter = Limiter(
    key_func=get_client_address,
    default_limits=[],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


class RateLimitTiers:
    """
    Rate limit tiers for different endpoint categories.

    DEFAULT is configured through ``RATE_LIMIT_POINTS`` and
    ``RATE_LIMIT_DURATION_SECONDS`` and covers every route under the API
    prefix.
    """

    DEFAULT = [f"{settings.rate_limit_points} per {settings.rate_limit_duration_seconds} seconds"]

    # Posting to the shared team feed or sending a direct message
    FEED_WRITE = ["20 per minute"]


_DEFAULT_ITEMS = parse_many(";".join(RateLimitTiers.DEFAULT))
_FEED_WRITE_ITEMS = parse_many(";".join(RateLimitTiers.FEED_WRITE))


def _consume(request: Request, tier: str, items: list[RateLimitItem]) -> None:
    if not limiter.enabled:
        return

    key = get_client_address(request)
    for item in items:
        if not limiter.limiter.hit(item, key, tier):
            raise RateLimitedError(tier, item)


async def default_rate_limit(request: Request) -> None:
    """
    FastAPI dependency charging the DEFAULT tier.

    Attached at router level so it resolves before ``get_current_user``: a
    rejected request never verifies its token or writes a profile.
    """
    _consume(request, "default", _DEFAULT_ITEMS)


async def feed_write_rate_limit(request: Request) -> None:
    """FastAPI dependency charging the FEED_WRITE tier on top of DEFAULT."""
    _consume(request, "feed_write", _FEED_WRITE_ITEMS)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
    """Reject immediately; there is no queueing or retry-after negotiation."""
    logger.info(
        "Rate limit exceeded",
        extra={
            "client": get_client_address(request),
            "path": request.url.path,
            "tier": exc.tier,
        },
    )
    return JSONResponse(status_code=429, content={"error": "rate_limited"})
