"""
Supabase Database Helper Functions for Repair Assistant Server

Handles diagnostic_sessions write-back and reference table reads
(devices, instruments, components, pcbs, boards).
"""
import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from repair_analyzer.errors import PersistenceError
from supabase_client import get_supabase_client

logger = logging.getLogger("uvicorn.error")

SESSIONS_TABLE = "diagnostic_sessions"
REFERENCE_TABLES = ("devices", "instruments", "components", "pcbs", "boards")


def _require_client(supabase: Optional[Client]) -> Client:
    if supabase is None:
        supabase = get_supabase_client()
    if supabase is None:
        raise PersistenceError("Supabase is not configured")
    return supabase


def update_diagnostic_session(
    session_id: str,
    updates: Dict[str, Any],
    supabase: Client = None
) -> dict:
    """
    Update diagnostic session record

    Args:
        session_id: Session ID
        updates: Columns to update (ai_analysis, repair_guidance, status)
        supabase: Supabase client (optional)

    Returns:
        dict: Updated record

    Raises:
        PersistenceError: client missing or write failed
    """
    supabase = _require_client(supabase)

    logger.info(f"[DB] Updating {SESSIONS_TABLE} record: {session_id}")

    try:
        response = supabase.table(SESSIONS_TABLE).update(updates).eq("id", session_id).execute()
    except Exception as e:
        logger.error(f"[DB] Failed to update session {session_id}: {e}")
        raise PersistenceError(f"Failed to update session {session_id}: {e}") from e

    logger.info(f"[DB] Session updated successfully: {session_id}")
    return response.data[0] if response.data else {}


def complete_diagnostic_session(
    session_id: str,
    analysis: Dict[str, Any],
    guidance: Dict[str, Any],
    supabase: Client = None
) -> dict:
    """
    Mark session as completed with its analysis and guidance
    """
    return update_diagnostic_session(
        session_id,
        {
            "ai_analysis": analysis,
            "repair_guidance": guidance,
            "status": "completed",
        },
        supabase=supabase,
    )


def get_diagnostic_session(
    session_id: str,
    supabase: Client = None
) -> Optional[dict]:
    """
    Get diagnostic session by ID

    Returns:
        dict or None if not found
    """
    supabase = _require_client(supabase)

    try:
        response = supabase.table(SESSIONS_TABLE).select("*").eq("id", session_id).execute()
    except Exception as e:
        logger.error(f"[DB] Failed to get session {session_id}: {e}")
        raise PersistenceError(f"Failed to get session {session_id}: {e}") from e

    return response.data[0] if response.data else None


def fetch_reference_records(
    table: str,
    limit: Optional[int] = None,
    supabase: Client = None
) -> List[dict]:
    """
    Read rows from a reference table

    Args:
        table: One of REFERENCE_TABLES
        limit: Max rows (None = all)
        supabase: Supabase client (optional)

    Returns:
        list: Rows as dicts
    """
    if table not in REFERENCE_TABLES:
        raise ValueError(f"Unknown reference table: {table}")

    supabase = _require_client(supabase)

    query = supabase.table(table).select("*")
    if limit is not None:
        query = query.limit(limit)

    try:
        response = query.execute()
    except Exception as e:
        logger.error(f"[DB] Failed to read {table}: {e}")
        raise PersistenceError(f"Failed to read {table}: {e}") from e

    rows = response.data or []
    logger.info(f"[DB] Loaded {len(rows)} rows from {table}")
    return rows
