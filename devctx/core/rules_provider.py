"""CRAC rules lookup driven by the detected rule types."""

from dataclasses import dataclass

from devctx.core.context_retrieval import ContextRetriever
from devctx.core.logging import get_logger
from devctx.core.rule_detector import (
    RuleType,
    detect_rule_types,
    get_rag_categories,
    get_rules_description,
)
from devctx.core.rules_reader import ALL_DOCUMENTS, DOCUMENT_SEPARATOR, RulesReader

logger = get_logger(__name__)

RULES_UNAVAILABLE = "Error: Could not load CRAC rules"

# Which static document holds each rule type
RULE_DOCUMENT_FOR_TYPE = {
    RuleType.TESTING: "crac-config",
    RuleType.STRUCTURE: "crac-config",
    RuleType.CODE_STYLE: "crac-config",
    RuleType.ENDPOINTS: "endpoints",
}


@dataclass(frozen=True)
class RulesResult:
    content: str
    rule_types: list[RuleType]
    description: str


class RulesProvider:
    """Provides the CRAC rules relevant to a task context."""

    def __init__(
        self,
        reader: RulesReader | None = None,
        context_retriever: ContextRetriever | None = None,
    ):
        self.reader = reader or RulesReader()
        self.context_retriever = context_retriever

    def _read(self, uri: str) -> str:
        try:
            return self.reader.read(uri)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read rules {uri}: {e}")
            return ""

    def get_rules(self, context: str | None = None) -> RulesResult:
        """
        Get the static rules for a context.

        Args:
            context: Task description used to detect relevant rule types

        Returns:
            RulesResult with combined document content
        """
        rule_types = detect_rule_types(context)
        description = get_rules_description(rule_types)

        if RuleType.ALL in rule_types:
            content = self._read(ALL_DOCUMENTS)
        else:
            documents = dict.fromkeys(RULE_DOCUMENT_FOR_TYPE[rule_type] for rule_type in rule_types)
            contents = [text for text in (self._read(name) for name in documents) if text]
            content = DOCUMENT_SEPARATOR.join(dict.fromkeys(contents))
            if not content:
                content = self._read(ALL_DOCUMENTS)

        return RulesResult(
            content=content or RULES_UNAVAILABLE,
            rule_types=rule_types,
            description=description,
        )

    async def search_related_documentation(
        self, context: str | None, rule_types: list[RuleType]
    ) -> str:
        """Best-effort vector search for rule documents in the detected categories."""
        if self.context_retriever is None:
            return ""

        query = context.strip() if context and context.strip() else "CRAC monorepo rules"
        try:
            return await self.context_retriever.search_rules(query, get_rag_categories(rule_types))
        except Exception as e:
            logger.warning(f"Failed to search related rule documentation: {e}")
            return ""


def render_rules(result: RulesResult, related: str = "") -> str:
    """Render a rules lookup result as tool output text."""
    text = (
        f"## CRAC Rules - {result.description}\n\n"
        f"*Detected rule types: {', '.join(rule_type.value for rule_type in result.rule_types)}*\n\n"
        f"---\n\n{result.content}"
    )
    if related.strip():
        text += f"\n\n---\n\n## Related Documentation\n\n{related}"
    return text
