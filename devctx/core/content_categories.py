"""Category tags used to classify rows in the dev_contexts store.

These match the ``scope`` column values written by the ingestion side.
"""


class AspectCategory:
    """Categories searched by the context aspects."""

    ARCHITECTURE = "architecture"
    INTRODUCTION = "introduction"
    ROUTING = "routing"
    STYLE_GUIDE = "style-guide"
    TASKS_EXAMPLES = "tasks-examples"
    CORE = "core"


class TemplateCategory:
    """Categories holding the task generation templates."""

    PRD = "prd-template"
    TASKS = "tasks-template"
    SUBTASKS = "subtasks-template"


class RulesCategory:
    """Rules and conventions categories."""

    CRAC = "rules/crac"  # General monorepo rules
    TESTING = "rules/testing"
    ENDPOINTS = "rules/endpoints"
    CODE_STYLE = "rules/code-style"
    STRUCTURE = "rules/structure"

    ALL = (CRAC, ENDPOINTS, TESTING, STRUCTURE, CODE_STYLE)


# Scope tokens recognised in natural-language commands. The scope registry
# in dev_apps stays authoritative for which of them are active.
KNOWN_SCOPES = (
    "rac",
    "partners",
    "global",
    "web",
    "mobile",
    "suppliers",
    "notifications",
    "queues",
)
