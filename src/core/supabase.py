"""Supabase client singleton for database operations."""

from functools import lru_cache
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client, create_client

from src.core.config import get_settings

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for database operations.

    Uses the secret key for backend operations, which bypasses RLS
    at the PostgREST level. Authorization is enforced by the services
    before any query runs.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


def is_unique_violation(error: APIError) -> bool:
    """Check whether a PostgREST error was caused by a unique constraint.

    Args:
        error: Error raised by a PostgREST query or RPC call.

    Returns:
        bool: True if the database reported a unique_violation.
    """
    return getattr(error, "code", None) == UNIQUE_VIOLATION


def first_row(data: Any) -> dict[str, Any] | None:
    """Return the single row of an RPC or insert response.

    PostgREST returns a list for table writes and set-returning functions
    and a bare object for functions returning one composite row.
    """
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


async def check_database_connection() -> dict[str, Any]:
    """Check if database connection is healthy.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        client = get_supabase_client()
        client.table("profiles").select("id").limit(1).execute()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
