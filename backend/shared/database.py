"""
Database client factory for Supabase.

The real-time core never blocks the event loop, so only the async
client is exposed. It is created once per process and cached.
"""

from typing import Optional
from supabase import acreate_client, AsyncClient

from .config import get_settings

# Module-level client cache
_service_client: Optional[AsyncClient] = None


async def get_supabase_client() -> AsyncClient:
    """
    Get the async Supabase client with service role (bypasses RLS).

    The directory reads subscription, purchase, identity, stream and
    conversation records on behalf of every connected user, so it
    needs full read access.

    Returns:
        Async Supabase client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )
        _service_client = await acreate_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _service_client
    _service_client = None
