"""
Database client singletons.

Supabase is the backend-as-a-service for rows (wardrobe, users) and auth.
The dashboard core only uses its row CRUD surface.
"""

from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from config.settings import get_settings


class SupabaseClientError(Exception):
    """Raised when Supabase client cannot be created."""
    pass


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Get the singleton Supabase client instance.

    Raises:
        SupabaseClientError: If Supabase is not configured or the client fails
    """
    settings = get_settings()
    if not settings.supabase_configured:
        raise SupabaseClientError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        raise SupabaseClientError(f"Failed to create Supabase client: {e}") from e


def get_supabase_client_optional() -> Optional[Client]:
    """Get the Supabase client, or None when it cannot be created."""
    try:
        return get_supabase_client()
    except SupabaseClientError:
        return None

