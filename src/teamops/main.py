"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from src.teamops.config import settings
from src.teamops.features.checklists import router as checklists_router
from src.teamops.features.direct_messages import router as direct_messages_router
from src.teamops.features.incidents import router as incidents_router
from src.teamops.features.profile import router as profile_router
from src.teamops.features.team import router as team_router
from src.teamops.services.auth import JWKSCache, JWTValidator, set_jwt_validator
from src.teamops.services.rate_limiter import (
    RateLimitedError,
    default_rate_limit,
    rate_limit_exceeded_handler,
)

logger = logging.getLogger(__name__)

# Global JWKS cache instance for cleanup
_jwks_cache = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    global _jwks_cache

    # Startup
    try:
        logger.info("Initializing JWT validator for Auth0")

        _jwks_cache = JWKSCache(
            jwks_url=settings.jwks_url, cache_ttl=settings.jwks_cache_ttl_seconds
        )

        # Fetch JWKS immediately on startup
        await _jwks_cache.refresh_keys()

        jwt_validator = JWTValidator(
            jwks_cache=_jwks_cache,
            issuer=settings.auth0_issuer,
            audience=settings.auth0_audience,
            leeway=settings.jwt_leeway_seconds,
        )
        set_jwt_validator(jwt_validator)

        logger.info(
            "JWT validator initialized successfully",
            extra={
                "jwks_url": settings.jwks_url,
                "cache_ttl": settings.jwks_cache_ttl_seconds,
                "issuer": settings.auth0_issuer,
            },
        )
    except Exception as e:
        logger.error(
            f"Failed to initialize JWT validator: {e}",
            exc_info=True,
            extra={"error_type": "jwt_validator_init_failed"},
        )
        raise

    yield

    # Shutdown
    if _jwks_cache is not None:
        try:
            await _jwks_cache.close()
            logger.info("JWT validator cleanup completed")
        except Exception as e:
            logger.error(f"Error during JWT validator cleanup: {e}", exc_info=True)


app = FastAPI(
    title="TeamOps API",
    description="Checklists, incidents, team feed and presence for operations teams",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_exception_handler(RateLimitedError, rate_limit_exceeded_handler)

origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
logger.info(f"Origins : {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

# Rate limiting resolves ahead of every route dependency, authentication included
api_dependencies = [Depends(default_rate_limit)]

app.include_router(profile_router, prefix=settings.api_prefix, dependencies=api_dependencies)
app.include_router(team_router, prefix=settings.api_prefix, dependencies=api_dependencies)
app.include_router(
    direct_messages_router, prefix=settings.api_prefix, dependencies=api_dependencies
)
app.include_router(checklists_router, prefix=settings.api_prefix, dependencies=api_dependencies)
app.include_router(incidents_router, prefix=settings.api_prefix, dependencies=api_dependencies)


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


@app.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint."""
    return HealthCheckResponse(status="healthy")
