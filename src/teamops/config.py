"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # System Configuration
    api_prefix: str = "/api"
    debug: bool = False
    cors_origins: str = "http://localhost:5173"

    # Rate limiting (per client address)
    rate_limit_enabled: bool = True
    rate_limit_points: int = 60
    rate_limit_duration_seconds: int = 60

    # Auth0 / JWT Verification Configuration
    auth0_domain: str = "teamops-test.us.auth0.com"
    auth0_audience: str = "https://api.teamops.test"
    roles_claim: str = "https://launchops/roles"
    jwks_cache_ttl_seconds: int = 3600  # 1 hour
    jwt_leeway_seconds: int = 10  # Clock skew tolerance

    # Supabase Configuration
    supabase_url: str = "https://test.supabase.co"
    supabase_service_role_key: str = "test-service-role-key"
    supabase_timeout_seconds: int = 10

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"

    # Team feed + presence
    online_window_seconds: int = 90
    online_limit: int = 50
    feed_page_size: int = 50
    feed_max_page_size: int = 200
    max_mentions_per_message: int = 20

    # Demo data for first-time users
    seed_demo_data: bool = True

    @property
    def auth0_issuer(self) -> str:
        """Issuer claim Auth0 puts on access tokens (trailing slash included)."""
        return f"https://{self.auth0_domain}/"

    @property
    def jwks_url(self) -> str:
        return f"{self.auth0_issuer}.well-known/jwks.json"


settings = Settings()
