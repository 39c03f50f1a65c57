"""
Supabase Client for Repair Assistant Server

Provides a lazily created service-role client. When SUPABASE_URL or
SUPABASE_SERVICE_ROLE_KEY is missing the server runs with in-memory stores.
"""
import logging
from typing import Optional

from supabase import create_client, Client

from repair_analyzer.config import get_settings

logger = logging.getLogger("uvicorn.error")

_client: Optional[Client] = None
_initialized = False


def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance

    Returns:
        Client, or None when Supabase is not configured
    """
    global _client, _initialized
    if _initialized:
        return _client

    settings = get_settings()
    _initialized = True

    if not settings.supabase_configured:
        logger.warning("[Supabase] SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set, using in-memory stores")
        return None

    _client = create_client(settings.supabase_url, settings.supabase_service_role_key)
    logger.info(f"[Supabase] Client initialized: {settings.supabase_url}")
    return _client


def reset_supabase_client(client: Optional[Client] = None) -> None:
    """Replace the cached client (tests / local runs)"""
    global _client, _initialized
    _client = client
    _initialized = client is not None


def test_connection() -> bool:
    """
    Test Supabase connection by querying diagnostic_sessions
    """
    client = get_supabase_client()
    if client is None:
        return False
    try:
        response = client.table("diagnostic_sessions").select("id").limit(1).execute()
        logger.info(f"[Supabase] Connection test successful, found {len(response.data)} records")
        return True
    except Exception as e:
        logger.error(f"[Supabase] Connection test failed: {e}")
        return False


if __name__ == "__main__":
    print("Testing connection...")

    if test_connection():
        print("Connection successful!")
    else:
        print("Connection failed!")
