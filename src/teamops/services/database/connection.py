"""Supabase database connection management."""

from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from src.teamops.config import settings


def _client_options() -> ClientOptions:
    # Store calls are bounded; a slow PostgREST surfaces as a request failure.
    return ClientOptions(postgrest_client_timeout=settings.supabase_timeout_seconds)


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """
    Get Supabase admin client with service role key (singleton pattern).

    The API authenticates users itself (Auth0 JWTs) and scopes every query by
    subject identifier, so server-side access goes through the service role.

    Returns:
        Configured Supabase client with service role key (bypasses RLS)
    """
    return create_client(
        settings.supabase_url, settings.supabase_service_role_key, options=_client_options()
    )
