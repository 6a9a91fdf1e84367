"""Natural-language command parsing.

Extracts the action, application scope and free-text requirement from
commands such as ``"dev rac implementa la nueva sección booking-search"``.
Parsing never fails: undetected parts fall back to defaults.
"""

import re
from dataclasses import dataclass

from devctx.core.content_categories import KNOWN_SCOPES

DEFAULT_ACTION = "dev"
DEFAULT_SCOPE = "global"

# Ordered synonym groups; the first matching prefix wins. Longer variants
# come first inside a group so "generate-tasks" is not read as "generate".
ACTION_PATTERNS = [
    re.compile(r"^(generate-tasks|gen-tasks|generate|gen)\s+", re.IGNORECASE),
    re.compile(r"^(dev|develop|implement|create|add|build)\s+", re.IGNORECASE),
    re.compile(r"^(test|testing)\s+", re.IGNORECASE),
    re.compile(r"^(refactor|refactoring)\s+", re.IGNORECASE),
    re.compile(r"^(fix|bugfix|debug)\s+", re.IGNORECASE),
    re.compile(r"^(update|modify|change)\s+", re.IGNORECASE),
]

SCOPE_PATTERN = re.compile(r"\b(" + "|".join(KNOWN_SCOPES) + r")\b", re.IGNORECASE)

GENERATE_TASKS_ACTION = "generate-tasks"
GENERATE_TASKS_VARIANTS = {"generate-tasks", "gen-tasks", "generate", "gen"}

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParsedCommand:
    """Structured intent extracted from a command string."""

    action: str
    scope: str
    requirement: str
    raw: str


def parse_command(command: str | None) -> ParsedCommand:
    """
    Parse a natural language command into action, scope and requirement.

    Args:
        command: Command text, e.g. "test partners add unit tests for auth flow"

    Returns:
        ParsedCommand. Action and scope are always non-empty; the
        requirement falls back to the whole command when stripping the
        action and scope leaves nothing.
    """
    normalized = (command or "").strip()

    if not normalized:
        return ParsedCommand(action=DEFAULT_ACTION, scope=DEFAULT_SCOPE, requirement="", raw="")

    action = DEFAULT_ACTION
    action_match = None
    for pattern in ACTION_PATTERNS:
        action_match = pattern.match(normalized)
        if action_match:
            action = action_match.group(1).lower()
            break

    scope = DEFAULT_SCOPE
    scope_match = SCOPE_PATTERN.search(normalized)
    if scope_match:
        scope = scope_match.group(1).lower()

    requirement = normalized
    if action_match:
        requirement = requirement[action_match.end():]
    if scope_match:
        requirement = re.sub(rf"\b{re.escape(scope)}\b", "", requirement, flags=re.IGNORECASE)

    requirement = _WHITESPACE.sub(" ", requirement).strip()

    # Keep the task description when the command only held keywords
    if not requirement:
        requirement = normalized

    return ParsedCommand(action=action, scope=scope, requirement=requirement, raw=normalized)


def normalize_generate_action(command: ParsedCommand) -> ParsedCommand:
    """Collapse the generate synonyms onto the generate-tasks action."""
    if command.action.lower() in GENERATE_TASKS_VARIANTS:
        return ParsedCommand(
            action=GENERATE_TASKS_ACTION,
            scope=command.scope,
            requirement=command.requirement,
            raw=command.raw,
        )
    return command
