"""Keyword-scoring detection of which CRAC rule categories a task needs.

Scores each rule type by the number of distinct keywords found as
substrings of the lower-cased context. The top two types are always kept;
lower-ranked types are kept only when they matched at least two keywords.
"""

from dataclasses import dataclass
from enum import Enum

from devctx.core.content_categories import RulesCategory

# Minimum score for a type ranked third or lower to be included
SECONDARY_MIN_SCORE = 2
TOP_RANKED = 2


class RuleType(str, Enum):
    TESTING = "testing"
    STRUCTURE = "structure"
    ENDPOINTS = "endpoints"
    CODE_STYLE = "code_style"
    ALL = "all"


@dataclass(frozen=True)
class RulePattern:
    rule_type: RuleType
    keywords: tuple[str, ...]
    description: str


RULE_PATTERNS: tuple[RulePattern, ...] = (
    RulePattern(
        rule_type=RuleType.TESTING,
        keywords=(
            "test",
            "testing",
            "tests",
            "spec",
            "specs",
            "jest",
            "rtl",
            "react testing library",
            "unit test",
            "integration test",
            "e2e test",
            "test file",
            "test suite",
            "describe",
            "it(",
            "test(",
            "expect",
            "mock",
            "snapshot",
        ),
        description="Testing rules and conventions",
    ),
    RulePattern(
        rule_type=RuleType.STRUCTURE,
        keywords=(
            "structure",
            "folder",
            "directory",
            "organize",
            "architecture",
            "feature",
            "module",
            "create feature",
            "new feature",
            "folder structure",
            "file structure",
            "directory structure",
            "organize code",
            "screaming architecture",
        ),
        description="Directory structure and organization rules",
    ),
    RulePattern(
        rule_type=RuleType.ENDPOINTS,
        keywords=(
            "endpoint",
            "endpoints",
            "api",
            "service",
            "redux action",
            "create service",
            "api service",
            "service file",
            "endpoints.ts",
            "service.ts",
            "actions.ts",
            "screaming architecture",
            "module structure",
            "entities",
            "state/actions",
        ),
        description="API endpoint and service implementation rules",
    ),
    RulePattern(
        rule_type=RuleType.CODE_STYLE,
        keywords=(
            "code style",
            "convention",
            "conventions",
            "naming",
            "component",
            "import",
            "export",
            "pascalcase",
            "camelcase",
            "coding standards",
            "style guide",
        ),
        description="Code style and naming conventions",
    ),
)

ALL_RULES_DESCRIPTION = "All CRAC monorepo rules and conventions"

RULE_CATEGORIES: dict[RuleType, tuple[str, ...]] = {
    RuleType.TESTING: (RulesCategory.CRAC, RulesCategory.TESTING),
    RuleType.STRUCTURE: (RulesCategory.CRAC, RulesCategory.STRUCTURE),
    RuleType.ENDPOINTS: (RulesCategory.ENDPOINTS,),
    RuleType.CODE_STYLE: (RulesCategory.CRAC, RulesCategory.CODE_STYLE),
    RuleType.ALL: RulesCategory.ALL,
}


def score_rule_types(context: str) -> dict[RuleType, int]:
    """Count distinct keyword hits per rule type, omitting zero scores."""
    normalized = context.lower()
    scores: dict[RuleType, int] = {}
    for pattern in RULE_PATTERNS:
        score = sum(1 for keyword in pattern.keywords if keyword in normalized)
        if score > 0:
            scores[pattern.rule_type] = score
    return scores


def detect_rule_types(context: str | None = None) -> list[RuleType]:
    """
    Detect which rule types are needed for a task context.

    Args:
        context: Free-text task description (optional)

    Returns:
        Rule types ordered by relevance, or [RuleType.ALL] when nothing matched
    """
    if not context or not context.strip():
        return [RuleType.ALL]

    scores = score_rule_types(context)
    if not scores:
        return [RuleType.ALL]

    # sorted() is stable, so ties keep the declaration order of RULE_PATTERNS
    ranked = sorted(scores, key=lambda rule_type: scores[rule_type], reverse=True)
    selected = [
        rule_type
        for index, rule_type in enumerate(ranked)
        if index < TOP_RANKED or scores[rule_type] >= SECONDARY_MIN_SCORE
    ]

    return selected or [RuleType.ALL]


def get_rules_description(rule_types: list[RuleType]) -> str:
    """Human-readable description of the rules that will be provided."""
    if rule_types == [RuleType.ALL]:
        return ALL_RULES_DESCRIPTION

    descriptions = {pattern.rule_type: pattern.description for pattern in RULE_PATTERNS}
    return ", ".join(descriptions.get(rule_type, rule_type.value) for rule_type in rule_types)


def get_rag_categories(rule_types: list[RuleType]) -> list[str]:
    """
    Map rule types to the deduplicated store categories holding their documents.

    Args:
        rule_types: Rule types to map

    Returns:
        Category strings in first-seen order
    """
    categories: dict[str, None] = {}
    for rule_type in rule_types:
        for category in RULE_CATEGORIES[rule_type]:
            categories.setdefault(category, None)
    return list(categories)
