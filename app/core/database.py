"""
Shared Supabase client. Every router and service goes through get_supabase().
"""

import logging

from supabase import create_client, Client

from app.core.config import settings
from app.core.exceptions import UnexpectedError

logger = logging.getLogger(__name__)

_supabase_client: Client | None = None


def get_supabase() -> Client:
    global _supabase_client
    if _supabase_client is None:
        if not settings.SUPABASE_URL:
            raise RuntimeError("SUPABASE_URL is not configured")
        # The service key bypasses row-level security; scope is enforced in the routers
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY,
        )
        logger.info("Supabase client created for %s", settings.SUPABASE_URL)
    return _supabase_client


def set_supabase(client: Client | None) -> None:
    """Swap the shared client (None forces a fresh one on next use)."""
    global _supabase_client
    _supabase_client = client


def inserted_row(result, table: str) -> dict:
    """First row of an insert result; an empty result means the store refused silently."""
    if not result.data:
        logger.error("Insert into %s returned no rows", table)
        raise UnexpectedError(f"Could not save {table} record.")
    return result.data[0]
