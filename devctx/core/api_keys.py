"""API key validation against the api_keys table.

Keys look like ``rag_live_<secret>`` or ``rag_test_<secret>`` and are
stored as bcrypt hashes. Since bcrypt hashes are salted, validation
compares the key against every active, unexpired candidate with the same
prefix.
"""

import asyncio
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import bcrypt

from devctx.core.logging import get_logger
from devctx.db.api_keys import list_api_keys, update_last_used_at

logger = get_logger(__name__)

KEY_PREFIX_PATTERN = re.compile(r"^rag_(live|test)_")

# Detached audit writes; referenced here so they are not garbage collected
_background_tasks: set[asyncio.Task] = set()


@dataclass(frozen=True)
class ApiKeyValidation:
    valid: bool
    reason: str | None = None
    api_key: dict[str, Any] | None = None


def verify_api_key(plain_key: str, key_hash: str) -> bool:
    """Check a plain key against its bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_key.encode(), key_hash.encode())
    except ValueError:
        # Malformed hash stored for this row
        return False


def _is_expired(row: dict[str, Any], now: datetime) -> bool:
    expires_at = row.get("expires_at")
    if not expires_at:
        return False
    expiry = datetime.fromisoformat(str(expires_at).replace("Z", "+00:00"))
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry < now


async def _record_usage(key_id: int) -> None:
    try:
        await asyncio.to_thread(update_last_used_at, key_id)
    except Exception as e:
        logger.warning(f"Failed to update last_used_at for API key {key_id}: {e}")


def record_usage_in_background(key_id: int) -> None:
    """Best-effort audit write; never awaited by the request."""
    task = asyncio.create_task(_record_usage(key_id))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


async def validate_api_key(api_key: str | None) -> ApiKeyValidation:
    """
    Validate an API key.

    Checks format, then compares against active, unexpired keys with the
    same prefix. Records last use in the background on success.

    Raises:
        BackendQueryError: If the api_keys table cannot be read
    """
    match = KEY_PREFIX_PATTERN.match(api_key or "")
    if not api_key or not match:
        return ApiKeyValidation(valid=False, reason="Invalid API key format")

    prefix = match.group(1)
    rows = await asyncio.to_thread(list_api_keys, True)
    candidates = [row for row in rows if row.get("prefix") == prefix and row.get("is_active")]

    now = datetime.now(timezone.utc)
    for row in candidates:
        if _is_expired(row, now):
            continue
        if await asyncio.to_thread(verify_api_key, api_key, row.get("key_hash") or ""):
            record_usage_in_background(row["id"])
            return ApiKeyValidation(valid=True, api_key=row)

    return ApiKeyValidation(valid=False, reason="Invalid API key")
