"""
Database connection management.

Provides the Supabase client singleton used by the persistence
collaborators (inventory writes, confirmed-link log).
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class DatabaseError(Exception):
    """Base exception for database errors."""
    pass


class SupabaseConnectionError(DatabaseError):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses lru_cache to ensure only one client is created.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        SupabaseConnectionError: If credentials are missing or connection fails
    """
    if not settings.supabase_configured:
        logger.warning("supabase_not_configured")
        raise SupabaseConnectionError("SUPABASE_URL and SUPABASE_KEY are not set")

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        logger.info(
            "supabase_connected",
            status="success"
        )

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise SupabaseConnectionError(f"Failed to connect to Supabase: {e}") from e


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with details
    """
    try:
        client = get_supabase_client()

        inventory = client.table(settings.inventory_table).select("id", count="exact").limit(1).execute()
        patterns = client.table(settings.patterns_table).select("id", count="exact").limit(1).execute()

        return {
            "status": "healthy",
            "inventory_count": inventory.count,
            "patterns_count": patterns.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }
