"""Database connection and query helpers."""

from src.teamops.services.database.connection import get_supabase_admin_client
from src.teamops.services.database.utils import SupabaseQueryBuilder, get_db, get_query_builder

__all__ = [
    "get_supabase_admin_client",
    "SupabaseQueryBuilder",
    "get_db",
    "get_query_builder",
]
