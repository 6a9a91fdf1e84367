"""Tests for parallel aspect retrieval with a fake backend."""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from devctx.core.context_retrieval import (
    ContextRetriever,
    RetrievedContext,
    build_aspect_queries,
    combine_results,
    gather_all,
)
from devctx.core.errors import BackendQueryError, EmbeddingError, ScopeNotFoundError
from devctx.db.dev_contexts import SearchResult

EMBEDDING = [0.01] * 768


@pytest.fixture
def patched_backend(backend):
    """Route retrieval through the fake backend and a fixed embedding."""
    embed = AsyncMock(return_value=EMBEDDING)
    with patch("devctx.core.context_retrieval.embed_text_async", embed), patch(
        "devctx.core.context_retrieval.search_dev_contexts", backend.search
    ), patch("devctx.core.context_retrieval.is_active_scope", backend.is_active_scope), patch(
        "devctx.core.context_retrieval.list_active_scopes", backend.list_active_scopes
    ):
        backend.embed = embed
        yield backend


def _result(title: str, distance: float, application: str = "rac", category: str = "core"):
    return SearchResult(
        id=1,
        application=application,
        category=category,
        title=title,
        path=None,
        content=f"{title} content",
        distance=distance,
    )


def test_combine_results_with_distance():
    text = combine_results([_result("Booking", 0.12345), _result("Calendar", 0.2)])

    assert text == (
        "--- Booking (rac/core, distance: 0.1235) ---\nBooking content\n\n"
        "--- Calendar (rac/core, distance: 0.2000) ---\nCalendar content"
    )


def test_combine_results_without_distance():
    assert combine_results([_result("PRD", 0.3)], include_distance=False) == (
        "--- PRD (rac/core) ---\nPRD content"
    )


def test_combine_results_empty():
    assert combine_results([]) == ""


def test_build_aspect_queries():
    queries = build_aspect_queries("add auth tests", "partners", "test")

    assert [query.aspect for query in queries] == [
        "technology",
        "folder_structure",
        "conventions",
        "examples",
    ]
    assert queries[0].text == "partners technology stack framework libraries dependencies"
    assert queries[0].categories == ("architecture", "introduction")
    assert queries[1].categories == ("architecture", "routing")
    assert queries[2].categories == ("style-guide", "architecture")
    assert queries[3].text == "test add auth tests example implementation similar"
    assert queries[3].categories == ("tasks-examples", "core")
    for query in queries:
        assert query.applications == ("partners", "global")
        assert query.limit == 2


def test_retrieved_context_found():
    context = RetrievedContext(technology="React", examples="  ")

    assert context.found == {
        "technology": True,
        "folder_structure": False,
        "conventions": False,
        "examples": False,
    }


class TestSearchContext:
    @pytest.mark.asyncio
    async def test_runs_four_searches_over_scope_and_global(self, patched_backend, settings):
        patched_backend.add("partners", "architecture", "Partners Stack", "React + Redux", 0.1)
        patched_backend.add("global", "style-guide", "Style Guide", "PascalCase components", 0.2)
        patched_backend.add("partners", "core", "Auth Service", "export const authService", 0.15)

        context = await ContextRetriever(settings).search_context(
            "add unit tests for auth flow", "partners", "test"
        )

        assert patched_backend.embed.await_count == 4
        assert len(patched_backend.searches) == 4
        for search in patched_backend.searches:
            assert search["applications"] == ["partners", "global"]
            assert search["match_count"] == 2
        assert "React + Redux" in context.technology
        assert "PascalCase components" in context.conventions
        assert "export const authService" in context.examples
        assert context.architecture == f"{context.technology}\n\n{context.folder_structure}"

    @pytest.mark.asyncio
    async def test_no_matches_gives_empty_fields(self, patched_backend, settings):
        context = await ContextRetriever(settings).search_context("anything", "rac", "dev")

        assert context.found == {
            "technology": False,
            "folder_structure": False,
            "conventions": False,
            "examples": False,
        }
        assert context.architecture == "\n\n"

    @pytest.mark.asyncio
    async def test_results_keep_backend_order(self, patched_backend, settings):
        patched_backend.add("rac", "core", "Far", "far", 0.5)
        patched_backend.add("rac", "core", "Near", "near", 0.05)

        context = await ContextRetriever(settings).search_context("booking", "rac", "dev")

        assert context.examples.index("Near") < context.examples.index("Far")

    @pytest.mark.asyncio
    async def test_invalid_scope_lists_available_scopes(self, patched_backend, settings):
        patched_backend.active_scopes = ["global", "rac"]

        with pytest.raises(ScopeNotFoundError) as exc_info:
            await ContextRetriever(settings).search_context("x", "mobile", "dev")

        assert exc_info.value.available_scopes == ["global", "rac"]
        assert str(exc_info.value) == 'Invalid scope: "mobile". Available scopes: global, rac'
        assert patched_backend.searches == []
        patched_backend.embed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_aspect_failure_fails_retrieval(self, patched_backend, settings):
        patched_backend.fail_categories = {"style-guide"}

        with pytest.raises(BackendQueryError):
            await ContextRetriever(settings).search_context("x", "rac", "dev")

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(self, patched_backend, settings):
        patched_backend.embed.side_effect = EmbeddingError("Failed to generate embedding: 401")

        with pytest.raises(EmbeddingError, match="401"):
            await ContextRetriever(settings).search_context("x", "rac", "dev")

    @pytest.mark.asyncio
    async def test_embedding_timeout_becomes_embedding_error(self, patched_backend):
        from devctx.core.config import Settings

        async def slow_embed(text, settings=None):
            await asyncio.sleep(1)
            return EMBEDDING

        patched_backend.embed.side_effect = slow_embed
        fast = Settings(EXTERNAL_CALL_TIMEOUT_SECONDS=0.01)

        with pytest.raises(EmbeddingError, match="timed out"):
            await ContextRetriever(fast).embed("slow")

    @pytest.mark.asyncio
    async def test_search_timeout_fails_retrieval(self, patched_backend):
        from devctx.core.config import Settings

        def blocking_search(*args, **kwargs):
            time.sleep(0.5)
            return []

        fast = Settings(EXTERNAL_CALL_TIMEOUT_SECONDS=0.05)
        context = None

        with patch("devctx.core.context_retrieval.search_dev_contexts", blocking_search):
            with pytest.raises(BackendQueryError, match="timed out"):
                context = await ContextRetriever(fast).search_context("booking", "rac", "dev")

        assert context is None

    @pytest.mark.asyncio
    async def test_injected_settings_reach_embed_and_search(self, patched_backend):
        from devctx.core.config import Settings

        custom = Settings(EMBEDDING_MODEL="text-embedding-3-large", MATCH_RPC_NAME="match_docs")
        search = MagicMock(return_value=[])

        with patch("devctx.core.context_retrieval.search_dev_contexts", search):
            await ContextRetriever(custom).search_context("booking", "rac", "dev")

        for call in patched_backend.embed.await_args_list:
            assert call.kwargs["settings"] is custom
        assert search.call_count == 4
        for call in search.call_args_list:
            assert call.args[4] is custom


class TestSearchRules:
    @pytest.mark.asyncio
    async def test_searches_scope_and_shared_pool(self, patched_backend, settings):
        patched_backend.add("global", "rules/crac", "CRAC Rules", "Use @crac/core", 0.1)

        text = await ContextRetriever(settings).search_rules(
            "mandatory rules", ["rules/crac"], scope="rac"
        )

        assert "Use @crac/core" in text
        assert patched_backend.searches[0]["applications"] == ["rac", "global"]
        assert patched_backend.searches[0]["categories"] == ["rules/crac"]
        assert patched_backend.searches[0]["match_count"] == settings.RULES_TOP_K

    @pytest.mark.asyncio
    async def test_without_scope_searches_shared_pool_once(self, patched_backend, settings):
        await ContextRetriever(settings).search_rules("rules", ["rules/testing"], limit=3)

        assert patched_backend.searches[0]["applications"] == ["global"]
        assert patched_backend.searches[0]["match_count"] == 3


class TestGatherAll:
    @pytest.mark.asyncio
    async def test_returns_results_in_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        assert await gather_all([value(1, 0.02), value(2, 0)]) == [1, 2]

    @pytest.mark.asyncio
    async def test_cancels_remaining_on_failure(self):
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def failing():
            raise BackendQueryError("boom")

        with pytest.raises(BackendQueryError):
            await gather_all([slow(), failing()])

        await asyncio.sleep(0)
        assert cancelled.is_set()


class TestEmbeddingClientReuse:
    @pytest.mark.asyncio
    async def test_openai_client_built_once_across_requests(self, backend, settings):
        response = MagicMock()
        response.data = [MagicMock(embedding=[0.1] * 768)]
        openai_factory = MagicMock()
        openai_factory.return_value.embeddings.create.return_value = response

        with patch("devctx.core.embeddings.OpenAI", openai_factory), patch(
            "devctx.core.context_retrieval.search_dev_contexts", backend.search
        ), patch("devctx.core.context_retrieval.is_active_scope", backend.is_active_scope):
            retriever = ContextRetriever(settings)
            await retriever.search_context("booking", "rac", "dev")
            await retriever.search_context("calendar", "rac", "dev")

        openai_factory.assert_called_once()
        assert openai_factory.return_value.embeddings.create.call_count == 8
        assert len(backend.searches) == 8
