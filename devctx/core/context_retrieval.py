"""Semantic context retrieval for development prompts.

Pipeline: validate scope → four aspect queries in parallel
(embed + similarity search each) → combine per aspect.

Backend failures are not degraded into empty context: a missing RPC or a
bad embedding configuration must surface to the caller. Any single
aspect failure fails the whole retrieval and cancels the other aspects.

Usage:
    from devctx.core.context_retrieval import ContextRetriever

    context = await ContextRetriever().search_context(
        requirement="implementa booking-search",
        scope="rac",
        action="dev",
    )
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from devctx.core.config import Settings, load_settings
from devctx.core.content_categories import AspectCategory
from devctx.core.embeddings import embed_text_async
from devctx.core.errors import BackendQueryError, EmbeddingError, ScopeNotFoundError
from devctx.core.logging import get_logger
from devctx.db.dev_apps import is_active_scope, list_active_scopes
from devctx.db.dev_contexts import SearchResult, search_dev_contexts

logger = get_logger(__name__)

T = TypeVar("T")

ASPECT_TECHNOLOGY = "technology"
ASPECT_FOLDER_STRUCTURE = "folder_structure"
ASPECT_CONVENTIONS = "conventions"
ASPECT_EXAMPLES = "examples"


# =============================================================================
# Models
# =============================================================================


@dataclass(frozen=True)
class AspectQuery:
    """One facet of retrieval: query text plus application/category filters."""

    aspect: str
    text: str
    applications: tuple[str, ...]
    categories: tuple[str, ...]
    limit: int


@dataclass(frozen=True)
class RetrievedContext:
    """Combined retrieval output. Every field is a string, empty when nothing matched."""

    technology: str = ""
    folder_structure: str = ""
    conventions: str = ""
    examples: str = ""
    architecture: str = ""

    @property
    def found(self) -> dict[str, bool]:
        """Hit/miss status for the four aspects."""
        return {
            ASPECT_TECHNOLOGY: bool(self.technology.strip()),
            ASPECT_FOLDER_STRUCTURE: bool(self.folder_structure.strip()),
            ASPECT_CONVENTIONS: bool(self.conventions.strip()),
            ASPECT_EXAMPLES: bool(self.examples.strip()),
        }


# =============================================================================
# Formatting
# =============================================================================


def combine_results(results: Iterable[SearchResult], include_distance: bool = True) -> str:
    """
    Join results into one block, keeping backend order.

    Each result becomes a header line with title, application, category
    (and distance) followed by its content; results are separated by a
    blank line.
    """
    blocks = []
    for result in results:
        source = f"{result.application}/{result.category}"
        if include_distance:
            source += f", distance: {result.distance:.4f}"
        blocks.append(f"--- {result.title} ({source}) ---\n{result.content}")
    return "\n\n".join(blocks)


def build_aspect_queries(
    requirement: str,
    scope: str,
    action: str,
    limit: int = 2,
    shared_application: str = "global",
) -> list[AspectQuery]:
    """Build the four fixed aspect queries for a scope."""
    applications = (scope, shared_application)
    return [
        AspectQuery(
            aspect=ASPECT_TECHNOLOGY,
            text=f"{scope} technology stack framework libraries dependencies",
            applications=applications,
            categories=(AspectCategory.ARCHITECTURE, AspectCategory.INTRODUCTION),
            limit=limit,
        ),
        AspectQuery(
            aspect=ASPECT_FOLDER_STRUCTURE,
            text=f"{scope} folder structure directory organization file layout",
            applications=applications,
            categories=(AspectCategory.ARCHITECTURE, AspectCategory.ROUTING),
            limit=limit,
        ),
        AspectQuery(
            aspect=ASPECT_CONVENTIONS,
            text=f"{scope} code conventions style guide patterns best practices",
            applications=applications,
            categories=(AspectCategory.STYLE_GUIDE, AspectCategory.ARCHITECTURE),
            limit=limit,
        ),
        AspectQuery(
            aspect=ASPECT_EXAMPLES,
            text=f"{action} {requirement} example implementation similar",
            applications=applications,
            categories=(AspectCategory.TASKS_EXAMPLES, AspectCategory.CORE),
            limit=limit,
        ),
    ]


# =============================================================================
# Concurrency helpers
# =============================================================================


async def gather_all(coros: Iterable[Awaitable[T]]) -> list[T]:
    """Await every coroutine concurrently; on the first failure cancel the rest."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        raise


async def run_with_timeout(
    func: Callable[..., T],
    *args: Any,
    timeout: float,
    error_cls: type[Exception] = BackendQueryError,
    label: str = "backend call",
) -> T:
    """Run a blocking client call in a worker thread with a bounded wait."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise error_cls(f"{label} timed out after {timeout:g}s") from e


# =============================================================================
# Retriever
# =============================================================================


class ContextRetriever:
    """Semantic search for development context across several aspects."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    async def embed(self, text: str) -> list[float]:
        """Embed one query text with a bounded wait."""
        timeout = self.settings.EXTERNAL_CALL_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(
                embed_text_async(text, settings=self.settings), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            raise EmbeddingError(f"Embedding generation timed out after {timeout:g}s") from e

    async def search(
        self,
        embedding: list[float],
        applications: Iterable[str],
        categories: Iterable[str] | None,
        limit: int,
    ) -> list[SearchResult]:
        """Run one similarity search with a bounded wait."""
        return await run_with_timeout(
            search_dev_contexts,
            embedding,
            list(applications),
            list(categories) if categories is not None else None,
            limit,
            self.settings,
            timeout=self.settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
            label="Context search",
        )

    async def validate_scope(self, scope: str) -> None:
        """
        Ensure a scope exists and is active.

        Raises:
            ScopeNotFoundError: With the currently active scopes
            BackendQueryError: If the registry cannot be queried
        """
        timeout = self.settings.EXTERNAL_CALL_TIMEOUT_SECONDS
        if await run_with_timeout(is_active_scope, scope, timeout=timeout, label="Scope lookup"):
            return

        available = await run_with_timeout(
            list_active_scopes, timeout=timeout, label="Scope listing"
        )
        raise ScopeNotFoundError(scope, available)

    async def _run_aspect(self, query: AspectQuery) -> list[SearchResult]:
        started = time.perf_counter()
        embedding = await self.embed(query.text)
        results = await self.search(embedding, query.applications, query.categories, query.limit)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"Query {query.aspect} completed in {elapsed_ms:.0f}ms, found {len(results)} results"
        )
        for index, result in enumerate(results, start=1):
            logger.debug(
                f"  Result {index}: {result.title} "
                f"({result.application}/{result.category}, distance: {result.distance:.4f})"
            )
        return results

    async def search_context(self, requirement: str, scope: str, action: str) -> RetrievedContext:
        """
        Search for context relevant to a task.

        Args:
            requirement: Task description
            scope: Application scope (rac, partners, global, ...)
            action: Development action (dev, test, refactor, ...)

        Returns:
            RetrievedContext with all five fields populated (possibly empty)

        Raises:
            ScopeNotFoundError: If the scope is unknown or inactive
            BackendQueryError: If any search or registry call fails
            EmbeddingError: If any query embedding fails
        """
        started = time.perf_counter()

        await self.validate_scope(scope)

        queries = build_aspect_queries(
            requirement,
            scope,
            action,
            limit=self.settings.CONTEXT_TOP_K,
            shared_application=self.settings.SHARED_APPLICATION,
        )

        logger.info(f"Searching context for scope: {scope}, action: {action}")
        logger.debug(f"Requirement: {requirement}")
        for index, query in enumerate(queries, start=1):
            logger.debug(f"Query {index} ({query.aspect}): {query.text}")

        results = await gather_all(self._run_aspect(query) for query in queries)
        combined = {
            query.aspect: combine_results(aspect_results)
            for query, aspect_results in zip(queries, results)
        }

        context = RetrievedContext(
            technology=combined[ASPECT_TECHNOLOGY],
            folder_structure=combined[ASPECT_FOLDER_STRUCTURE],
            conventions=combined[ASPECT_CONVENTIONS],
            examples=combined[ASPECT_EXAMPLES],
            architecture=f"{combined[ASPECT_TECHNOLOGY]}\n\n{combined[ASPECT_FOLDER_STRUCTURE]}",
        )

        total_ms = (time.perf_counter() - started) * 1000
        logger.info(f"Total search time: {total_ms:.0f}ms, queries: {len(queries)}")

        return context

    async def search_rules(
        self,
        query: str,
        categories: Iterable[str],
        limit: int | None = None,
        scope: str | None = None,
    ) -> str:
        """
        Search rule documents in the given categories.

        Args:
            query: Query text to embed
            categories: Rule categories to restrict to
            limit: Max results (defaults to RULES_TOP_K)
            scope: Optional application searched alongside the shared pool

        Returns:
            Combined rule content, empty when nothing matched
        """
        shared = self.settings.SHARED_APPLICATION
        applications = list(dict.fromkeys([scope or shared, shared]))
        embedding = await self.embed(query)
        results = await self.search(
            embedding,
            applications,
            list(categories),
            limit or self.settings.RULES_TOP_K,
        )
        logger.debug(f"Rules search found {len(results)} results")
        return combine_results(results)
