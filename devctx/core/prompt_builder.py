"""Structured prompt assembly for development agents.

The system section always carries technology, structure and conventions
blocks: retrieved content when available, fixed fallback copy otherwise.
The user section only includes similar examples when some were retrieved.
"""

from dataclasses import dataclass, field

from devctx.core.command_parser import ParsedCommand
from devctx.core.content_categories import RulesCategory
from devctx.core.context_retrieval import ContextRetriever, RetrievedContext
from devctx.core.logging import get_logger

logger = get_logger(__name__)

MANDATORY_RULES_QUERY = "CRAC monorepo mandatory rules and conventions"

MONOREPO_DESCRIPTOR = "CRAC Frontend Monorepo (pnpm workspaces + Turborepo)"

MONOREPO_STRUCTURE = """## Monorepo Structure

This is a monorepo managed by pnpm workspaces and Turborepo:
- **apps/**: Standalone applications (web, rac, partners, mobile, notifications, suppliers, queues)
- **packages/**: Shared packages (@crac/core, @crac/design-system, @crac/components, etc.)
- **config/**: Shared configurations (ESLint, TypeScript, Prettier)
"""

FALLBACK_TECHNOLOGY = """Core technologies used in the monorepo:
- Language: TypeScript
- UI Framework: React
- State Management: Redux Toolkit (primarily)
- Styling: Tailwind CSS
- Build Tools: Vite (for most apps) or Next.js (for web app)
- Testing: Jest + React Testing Library"""

FALLBACK_STRUCTURE = """The application follows a **feature-driven architecture** (Screaming Architecture):

```
src/features/<feature>/
├── pages/          # Top-level components (views/screens)
├── components/     # Reusable UI components
├── hooks/          # Custom React hooks
├── state/          # Redux slices (reducers, actions, selectors)
├── types/          # TypeScript types
├── utils/          # Utility functions
└── routes.ts       # Route definitions
```"""

FALLBACK_CONVENTIONS = """**Naming:**
- PascalCase: Components, interfaces, types, enums
- camelCase: Variables, functions, objects, folders, non-component files
- Component files: PascalCase (e.g., BookingList.tsx)

**Components:**
- Use functional components with arrow functions
- Use named exports (not default exports)
- Define props using interfaces
- Use fragments (<>) instead of div wrappers

**Imports:**
- Use path aliases: `~/*` for app code, `@crac/*` for shared packages
- Import order: React → External libs → @crac/* → ~/* → Relative
- Use `type` imports for TypeScript types

**Shared Packages:**
- `@crac/core`: Business logic, types, services (MUST use for shared logic)
- `@crac/design-system`: UI components (PREFERRED for new components)
- `@crac/components`: Legacy components (only for legacy code)"""

DEVELOPMENT_PRINCIPLES = """## Development Principles

You will receive a specific development task. Follow these principles:

**Code Quality:**
- Apply SOLID principles and Clean Code practices
- Write production-ready, maintainable code
- Include proper TypeScript types (no `any` unless absolutely necessary)
- Use custom hooks to separate presentation logic from business logic

**Structure & Organization:**
- Follow the feature-driven architecture structure
- Place shared business logic in `@crac/core` package
- Use components from `@crac/design-system` by default
- Follow the established folder structure and conventions

**Testing:**
- Write tests using Jest + React Testing Library
- Co-locate test files with source files (`*.test.ts`, `*.test.tsx`)
- Use `@crac/test-utils` for custom rendering
- Use `@crac/fake-api` for mock data when applicable

**Styling:**
- Use Tailwind CSS utility classes (prefer over custom CSS)
- Use design system tokens when available
- Ensure responsive design (mobile-first approach)
- Organize classes by type (layout, spacing, colors, etc.)

**Git & Workflow:**
- Branch naming: `<app>-<type>-<description>` (e.g., `rac-feature-booking-calendar`)
- Commits: Follow Conventional Commits (`feat(scope): description`)
- Base branch: `develop` (not `main`)
"""

SIMILAR_EXAMPLES_INTRO = """The following examples show similar implementations in the CRAC monorepo. Use them as reference, paying attention to:
- Structure and organization patterns
- Use of shared packages (@crac/core, @crac/design-system)
- Component patterns and conventions
- Testing approaches"""

IMPLEMENTATION_INSTRUCTIONS = """## Implementation Instructions

**IMPORTANT: Before implementing, you MUST call the `get_crac_rules` tool with the task context to get the specific CRAC conventions you need to follow.**

Please implement this task following:

1. **Get CRAC Rules FIRST**: Call `get_crac_rules` tool with the task description to get relevant conventions
2. **Monorepo conventions**: Use the structure and patterns shown in the context above
3. **Shared packages**: Leverage `@crac/core` for business logic and `@crac/design-system` for UI components
4. **Code style**: Follow the naming conventions, import order, and component patterns documented
5. **Testing**: Include appropriate tests using Jest + React Testing Library
6. **TypeScript**: Use proper types, avoid `any`, use type imports when applicable
7. **Responsive design**: Ensure mobile-first approach with Tailwind CSS

Pay attention to the metadata (app, scope, distance) in the examples to understand context relevance. Lower distance values indicate more relevant examples.
"""


@dataclass(frozen=True)
class StructuredPrompt:
    """System and user sections plus the raw retrieved aspects."""

    system_section: str
    user_section: str
    context_metadata: dict[str, str] = field(default_factory=dict)


def role_statement(scope: str, role: str = "Full-Stack Engineer") -> str:
    return (
        f"You are an expert {role} working on the {scope.upper()} application "
        f"in the CRAC (Centauro Rent a Car) monorepo.\n"
    )


def context_information(scope: str, action: str) -> str:
    return (
        "**Context Information:**\n"
        f"- Application: {scope}\n"
        f"- Task Type: {action}\n"
        f"- Monorepo: {MONOREPO_DESCRIPTOR}\n"
    )


def section(title: str, body: str) -> str:
    return f"## {title}\n\n{body}\n"


class PromptBuilder:
    """Builds structured prompts from a parsed command and retrieved context."""

    def __init__(self, context_retriever: ContextRetriever | None = None):
        # Without a retriever the mandatory rules block is skipped
        self.context_retriever = context_retriever

    async def build_prompt(
        self, command: ParsedCommand, context: RetrievedContext
    ) -> StructuredPrompt:
        """
        Build a structured prompt.

        Args:
            command: Parsed command (action, scope, requirement)
            context: Retrieved context

        Returns:
            StructuredPrompt with system and user sections
        """
        mandatory_rules = await self._load_mandatory_rules(command.scope)
        return StructuredPrompt(
            system_section=self.build_system_section(command, context, mandatory_rules),
            user_section=self.build_user_section(command, context),
            context_metadata={
                "technology": context.technology,
                "structure": context.folder_structure,
                "conventions": context.conventions,
                "examples": context.examples,
            },
        )

    async def _load_mandatory_rules(self, scope: str) -> str:
        """Best-effort fetch of the general rules; failures never break the prompt."""
        if self.context_retriever is None:
            return ""
        try:
            return await self.context_retriever.search_rules(
                MANDATORY_RULES_QUERY, [RulesCategory.CRAC], scope=scope
            )
        except Exception as e:
            logger.warning(f"Failed to load CRAC rules: {e}")
            return ""

    def build_system_section(
        self, command: ParsedCommand, context: RetrievedContext, mandatory_rules: str = ""
    ) -> str:
        parts = [role_statement(command.scope)]

        if mandatory_rules.strip():
            parts.append(
                "## CRAC Monorepo Rules and Conventions\n\n"
                "*The following rules and conventions are MANDATORY and must be followed "
                "for all development tasks:*\n\n"
                f"{mandatory_rules}\n\n---\n"
            )

        parts.append(context_information(command.scope, command.action))
        parts.append(MONOREPO_STRUCTURE)
        parts.append(section("Technical Context", context.technology or FALLBACK_TECHNOLOGY))
        parts.append(section("Project Structure", context.folder_structure or FALLBACK_STRUCTURE))
        parts.append(section("Code Conventions", context.conventions or FALLBACK_CONVENTIONS))
        parts.append(DEVELOPMENT_PRINCIPLES)

        return "\n".join(parts)

    def build_user_section(self, command: ParsedCommand, context: RetrievedContext) -> str:
        parts = [section("Task", f"{command.action} {command.requirement}")]

        if context.examples.strip():
            parts.append(section("Similar Examples", f"{SIMILAR_EXAMPLES_INTRO}\n\n{context.examples}"))

        parts.append(IMPLEMENTATION_INSTRUCTIONS)
        return "\n".join(parts)


def render_rag_status(context: RetrievedContext, scope: str) -> str:
    """Banner telling the agent whether retrieval found anything."""
    banner = "=" * 59
    found = context.found

    if any(found.values()):
        lines = [
            banner,
            "RAG CONTEXT LOADED SUCCESSFULLY",
            banner,
            "This prompt includes context retrieved from the monorepo documentation "
            "using semantic search.",
        ]
        labels = {
            "technology": "Technology",
            "folder_structure": "Structure",
            "conventions": "Conventions",
            "examples": "Examples",
        }
        for aspect, label in labels.items():
            lines.append(f"- {label} context: {'Found' if found[aspect] else 'Not found'}")
    else:
        lines = [
            banner,
            "RAG CONTEXT NOT FOUND - USING FALLBACKS",
            banner,
            f'No context was found in Supabase for scope "{scope}".',
            "Using default fallback context. Make sure embeddings are available in Supabase.",
        ]
    lines.append(banner)
    return "\n".join(lines) + "\n\n"


def render_dev_task_prompt(prompt: StructuredPrompt, context: RetrievedContext, scope: str) -> str:
    """Single text message: status banner, system section, separator, user section."""
    return f"{render_rag_status(context, scope)}{prompt.system_section}\n\n---\n\n{prompt.user_section}"
