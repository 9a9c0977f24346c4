"""
Database connection management.

Provides the Supabase client singleton used by the Supabase backend.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class DatabaseError(Exception):
    """Base exception for database errors."""
    pass


class ConnectionError(DatabaseError):
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
        ConnectionError: If credentials are missing or connection fails
    """
    if not settings.supabase_configured:
        logger.error("supabase_not_configured")
        raise ConnectionError("Supabase URL and key are not configured")

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        # Test connection with simple query
        client.table("categories").select("id").limit(1).execute()

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
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e


# ===================
# HELPER FUNCTIONS
# ===================

# Tables the import and transfer services read or write
ENGINE_TABLES = ("categories", "suppliers", "products", "orders")


def check_connection() -> dict:
    """
    Check that every table the services touch is reachable.

    Returns:
        dict: ``status`` plus row counts per table, or the first error
    """
    try:
        client = get_supabase_client()
        tables = {
            name: client.table(name).select("id", count="exact").limit(1).execute().count
            for name in ENGINE_TABLES
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }

    return {
        "status": "healthy",
        "tables": tables
    }
