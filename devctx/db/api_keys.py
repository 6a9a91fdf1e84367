"""Read access to the api_keys table.

Keys are created and rotated by the ingestion tooling; this service only
reads them and records when they were last used.
"""

from datetime import datetime, timezone
from typing import Any

from devctx.core.errors import BackendQueryError, DevContextError
from devctx.core.logging import get_logger
from devctx.db.supabase_client import get_supabase

logger = get_logger(__name__)


def list_api_keys(active_only: bool = False) -> list[dict[str, Any]]:
    """
    List API keys, newest first.

    Args:
        active_only: If True, only return active keys

    Raises:
        BackendQueryError: If the table cannot be queried
    """
    supabase = get_supabase()

    try:
        query = supabase.table("api_keys").select("*").order("created_at", desc=True)
        if active_only:
            query = query.eq("is_active", True)
        response = query.execute()
    except DevContextError:
        raise
    except Exception as e:
        raise BackendQueryError(f"Failed to list API keys: {e}") from e

    return response.data or []


def update_last_used_at(key_id: int) -> None:
    """Stamp last_used_at for an API key."""
    supabase = get_supabase()
    supabase.table("api_keys").update(
        {"last_used_at": datetime.now(timezone.utc).isoformat()}
    ).eq("id", key_id).execute()
