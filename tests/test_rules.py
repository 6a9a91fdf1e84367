"""Tests for the static rules reader and the rules provider."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from devctx.core.errors import BackendQueryError
from devctx.core.rule_detector import RuleType
from devctx.core.rules_provider import (
    RULES_UNAVAILABLE,
    RulesProvider,
    RulesResult,
    render_rules,
)
from devctx.core.rules_reader import (
    PACKAGED_RULES_DIR,
    RulesReader,
    parse_rules_uri,
)


@pytest.fixture
def rules_dir(tmp_path):
    (tmp_path / "crac-config.mdc").write_text("Use pnpm and Turborepo.", encoding="utf-8")
    (tmp_path / "endpoints.mdc").write_text("Services live in @crac/core.", encoding="utf-8")
    return tmp_path


class TestParseRulesUri:
    @pytest.mark.parametrize(
        "uri,expected",
        [
            ("crac-rules://crac-config", ["crac-config"]),
            ("crac-rules://endpoints", ["endpoints"]),
            ("crac-rules://all", ["crac-config", "endpoints"]),
            ("endpoints", ["endpoints"]),
            ("all", ["crac-config", "endpoints"]),
        ],
    )
    def test_known_names(self, uri, expected):
        assert parse_rules_uri(uri) == expected

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Invalid URI path: testing"):
            parse_rules_uri("crac-rules://testing")

    def test_other_scheme(self):
        with pytest.raises(ValueError, match="Unsupported URI scheme"):
            parse_rules_uri("file://endpoints")


class TestRulesReader:
    def test_read_single_document(self, rules_dir):
        text = RulesReader(rules_dir).read("crac-rules://endpoints")

        assert text == "# Agent Rules: endpoints\n\n---\n\nServices live in @crac/core."

    def test_read_all_documents(self, rules_dir):
        text = RulesReader(rules_dir).read("crac-rules://all")

        assert text == (
            "# Agent Rules: crac-config\n\n---\n\nUse pnpm and Turborepo."
            "\n\n---\n\n"
            "# Agent Rules: endpoints\n\n---\n\nServices live in @crac/core."
        )

    def test_missing_document(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="crac-config.mdc"):
            RulesReader(tmp_path).read("crac-config")

    def test_packaged_documents_exist(self):
        text = RulesReader(PACKAGED_RULES_DIR).read("all")

        assert "# Agent Rules: crac-config" in text
        assert "# Agent Rules: endpoints" in text


class TestRulesProvider:
    def test_detected_types_select_documents(self, rules_dir):
        provider = RulesProvider(reader=RulesReader(rules_dir))

        result = provider.get_rules("implementa los test de EmailSendBookingAgencyService")

        assert result.rule_types == [RuleType.TESTING, RuleType.ENDPOINTS]
        assert "Use pnpm and Turborepo." in result.content
        assert "Services live in @crac/core." in result.content

    def test_shared_document_loaded_once(self, rules_dir):
        provider = RulesProvider(reader=RulesReader(rules_dir))

        result = provider.get_rules("jest snapshot for the feature folder")

        assert result.rule_types == [RuleType.TESTING, RuleType.STRUCTURE]
        assert result.content.count("# Agent Rules: crac-config") == 1
        assert "endpoints" not in result.content

    def test_no_context_returns_all_documents(self, rules_dir):
        result = RulesProvider(reader=RulesReader(rules_dir)).get_rules(None)

        assert result.rule_types == [RuleType.ALL]
        assert result.description == "All CRAC monorepo rules and conventions"
        assert "# Agent Rules: crac-config" in result.content
        assert "# Agent Rules: endpoints" in result.content

    def test_unreadable_rules(self, tmp_path):
        result = RulesProvider(reader=RulesReader(tmp_path)).get_rules("api endpoint")

        assert result.content == RULES_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_related_documentation_uses_detected_categories(self, rules_dir):
        retriever = MagicMock()
        retriever.search_rules = AsyncMock(return_value="related docs")
        provider = RulesProvider(reader=RulesReader(rules_dir), context_retriever=retriever)

        related = await provider.search_related_documentation("api endpoint", [RuleType.ENDPOINTS])

        assert related == "related docs"
        retriever.search_rules.assert_awaited_once_with("api endpoint", ["rules/endpoints"])

    @pytest.mark.asyncio
    async def test_related_documentation_is_best_effort(self, rules_dir):
        retriever = MagicMock()
        retriever.search_rules = AsyncMock(side_effect=BackendQueryError("rpc missing"))
        provider = RulesProvider(reader=RulesReader(rules_dir), context_retriever=retriever)

        assert await provider.search_related_documentation(None, [RuleType.ALL]) == ""

    @pytest.mark.asyncio
    async def test_related_documentation_without_retriever(self, rules_dir):
        provider = RulesProvider(reader=RulesReader(rules_dir))

        assert await provider.search_related_documentation("x", [RuleType.ALL]) == ""


def test_render_rules():
    rendered = render_rules(
        RulesResult(
            content="rules body",
            rule_types=[RuleType.TESTING, RuleType.CODE_STYLE],
            description="Testing rules and conventions, Code style and naming conventions",
        ),
        related="related body",
    )

    assert rendered == (
        "## CRAC Rules - Testing rules and conventions, Code style and naming conventions\n\n"
        "*Detected rule types: testing, code_style*\n\n"
        "---\n\nrules body"
        "\n\n---\n\n## Related Documentation\n\nrelated body"
    )
