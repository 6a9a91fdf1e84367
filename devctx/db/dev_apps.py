"""Scope registry lookups over the dev_apps table."""

from devctx.core.errors import BackendQueryError, DevContextError
from devctx.core.logging import get_logger
from devctx.db.supabase_client import get_supabase

logger = get_logger(__name__)


def is_active_scope(key: str) -> bool:
    """
    Check whether a scope exists and is marked active.

    Args:
        key: Scope key (e.g. "rac")

    Returns:
        True if an active row exists

    Raises:
        BackendQueryError: If the registry cannot be queried
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("dev_apps")
            .select("key, is_active")
            .eq("key", key)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
    except DevContextError:
        raise
    except Exception as e:
        logger.error(f"Failed to validate scope {key}: {e}")
        raise BackendQueryError(f"Failed to validate scope '{key}': {e}") from e

    return bool(response.data)


def list_active_scopes() -> list[str]:
    """
    List keys of all active scopes.

    Raises:
        BackendQueryError: If the registry cannot be queried
    """
    supabase = get_supabase()

    try:
        response = supabase.table("dev_apps").select("key").eq("is_active", True).execute()
    except DevContextError:
        raise
    except Exception as e:
        logger.error(f"Failed to list active scopes: {e}")
        raise BackendQueryError(f"Failed to list active scopes: {e}") from e

    return [row["key"] for row in response.data or []]
