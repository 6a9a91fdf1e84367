"""Vector similarity search over the dev_contexts table."""

from dataclasses import dataclass
from typing import Any

from devctx.core.config import Settings, load_settings
from devctx.core.errors import BackendQueryError, DevContextError
from devctx.core.logging import get_logger
from devctx.db.supabase_client import get_supabase

logger = get_logger(__name__)


@dataclass(frozen=True)
class SearchResult:
    """One retrieved row. Lower distance means more relevant."""

    id: int
    application: str
    category: str
    title: str
    path: str | None
    content: str
    distance: float

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SearchResult":
        return cls(
            id=row["id"],
            application=row.get("app") or "",
            category=row.get("scope") or "",
            title=row.get("title") or "",
            path=row.get("path"),
            content=row.get("content") or "",
            distance=float(row.get("distance") or 0.0),
        )


def serialize_embedding(embedding: list[float]) -> str:
    """Format a vector the way the pgvector column type parses it."""
    return "[" + ",".join(str(value) for value in embedding) + "]"


def search_dev_contexts(
    query_embedding: list[float],
    applications: list[str],
    categories: list[str] | None = None,
    match_count: int = 2,
    settings: Settings | None = None,
) -> list[SearchResult]:
    """
    Search for similar context rows using vector similarity.

    Args:
        query_embedding: Query embedding vector
        applications: Application names eligible for matching
        categories: Optional category filter (None searches every category)
        match_count: Maximum number of results
        settings: Settings supplying MATCH_RPC_NAME

    Returns:
        Matching rows in backend order (nearest first)

    Raises:
        BackendQueryError: If the RPC call fails
    """
    settings = settings or load_settings()
    supabase = get_supabase()

    try:
        response = supabase.rpc(
            settings.MATCH_RPC_NAME,
            {
                "query_embedding": serialize_embedding(query_embedding),
                "match_apps": applications,
                "match_scopes": categories or None,
                "match_count": match_count,
            },
        ).execute()
    except DevContextError:
        raise
    except Exception as e:
        logger.error(f"Failed to search dev contexts: {e}")
        raise BackendQueryError(
            f"Failed to search contexts: {e}. Make sure the RPC function "
            f"'{settings.MATCH_RPC_NAME}' exists in Supabase."
        ) from e

    return [SearchResult.from_row(row) for row in response.data or []]
