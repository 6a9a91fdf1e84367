"""Prompt assembly for PRD → Tasks → Subtasks generation."""

from dataclasses import dataclass

from devctx.core.command_parser import GENERATE_TASKS_ACTION, ParsedCommand
from devctx.core.context_retrieval import RetrievedContext
from devctx.core.prompt_builder import (
    FALLBACK_TECHNOLOGY,
    MONOREPO_STRUCTURE,
    context_information,
    role_statement,
)
from devctx.core.template_retrieval import TemplateBundle

DEFAULT_STRUCTURE = """Feature-driven architecture:
- Each feature in `src/features/` directory
- Shared components in `src/components/`
- Utilities in `src/utils/`
- Types in `src/types/`"""

DEFAULT_CONVENTIONS = """Follow these conventions:
- **Components**: PascalCase (e.g., `UserProfile.tsx`)
- **Functions**: camelCase (e.g., `getUserData`)
- **Constants**: UPPER_SNAKE_CASE (e.g., `API_BASE_URL`)
- **Imports**: Group by type (external, internal, relative)
- **Path aliases**: Use `~/components` instead of relative paths"""

TEMPLATES_INTRO = (
    "You have access to three templates that guide the generation process. "
    "Use these templates to generate a complete document with PRD, Tasks, and Subtasks."
)

GENERATION_INSTRUCTIONS = """## Generation Instructions

You must generate a **single, complete Markdown document** that includes:

### Step 1: Generate PRD

1. Review the PRD template above
2. If needed, ask 3-5 clarifying questions (with numbered options) to understand the requirements better
3. Generate a complete PRD following the template structure:
   - Introduction/Overview
   - Goals
   - User Stories
   - Functional Requirements
   - Non-Goals (Out of Scope)
   - Design Considerations (if applicable)
   - Technical Considerations (if applicable)
   - Success Metrics
   - Open Questions

### Step 2: Generate Tasks

1. Review the Tasks template above
2. Based on the PRD you generated, create a task list following the template format
3. **IMPORTANT**: Always include task 0.0 "Create feature branch" as the first task
4. Generate 4-6 high-level parent tasks (numbered 1.0, 2.0, 3.0, etc.)
5. For each parent task, generate detailed subtasks (numbered 1.1, 1.2, 2.1, etc.)
6. Include a "Relevant Files" section listing all files that will be created or modified
7. Use checkboxes format: `- [ ]` for incomplete tasks

### Step 3: Format Output

Generate a single Markdown document with this structure:

```markdown
# PRD: [Feature Name]

[Complete PRD content here]

---

# Tasks: [Feature Name]

## Relevant Files

[List of relevant files]

## Tasks

- [ ] 0.0 Create feature branch
- [ ] 0.1 Create and checkout a new branch
- [ ] 1.0 Parent Task 1
- [ ] 1.1 Subtask 1.1
- [ ] 1.2 Subtask 1.2
- [ ] 2.0 Parent Task 2
- [ ] 2.1 Subtask 2.1
[Continue with all tasks and subtasks]
```
"""

IMPORTANT_NOTES = """## Important Notes

- Generate **everything in a single response** - do not wait for user confirmation between steps
- The final document should be ready for the user to review and copy
- Adapt all templates to the CRAC monorepo conventions shown in the context above
- Use the technical context, structure, and conventions from RAG to make tasks specific and actionable
- Ensure tasks are detailed enough for a junior developer to implement
- Include acceptance criteria where appropriate
"""


@dataclass(frozen=True)
class TaskGenerationPrompt:
    prompt: str
    metadata: dict[str, dict[str, bool]]


def _context_block(title: str, retrieved: str, default: str, noun: str) -> str:
    if retrieved.strip():
        return (
            f"## {title} (from RAG)\n\n"
            f"*The following {noun} retrieved from the monorepo documentation:*\n\n"
            f"{retrieved}\n"
        )
    return f"## {title} (default)\n\n{default}\n"


class TaskPromptBuilder:
    """Builds the single prompt used to generate PRD, tasks and subtasks."""

    def build_task_generation_prompt(
        self,
        command: ParsedCommand,
        templates: TemplateBundle,
        context: RetrievedContext,
    ) -> TaskGenerationPrompt:
        """
        Build a complete task generation prompt.

        Args:
            command: Parsed command (scope and requirement are used)
            templates: Retrieved templates or their placeholders
            context: Retrieved monorepo context

        Returns:
            TaskGenerationPrompt with prompt text and found/not-found metadata
        """
        parts = [
            role_statement(command.scope, role="Full-Stack Engineer and Product Manager"),
            context_information(command.scope, GENERATE_TASKS_ACTION),
            MONOREPO_STRUCTURE,
            _context_block(
                "Technical Context", context.technology, FALLBACK_TECHNOLOGY, "context was"
            ),
            _context_block(
                "Project Structure",
                context.folder_structure,
                DEFAULT_STRUCTURE,
                "structure information was",
            ),
            _context_block(
                "Code Conventions", context.conventions, DEFAULT_CONVENTIONS, "conventions were"
            ),
            f"## Templates for Task Generation\n\n{TEMPLATES_INTRO}\n",
            f"### Template 1: PRD (Product Requirements Document)\n\n{templates.prd_template}\n\n---\n",
            f"### Template 2: Tasks Generation\n\n{templates.tasks_template}\n\n---\n",
            f"### Template 3: Subtasks Implementation\n\n{templates.subtasks_template}\n\n---\n",
            "## Task Requirements\n\n"
            "Based on the user's request, you need to generate a complete task documentation for:\n\n"
            f"- **Scope**: {command.scope}\n"
            f"- **Requirements**: {command.requirement}\n",
            GENERATION_INSTRUCTIONS,
            IMPORTANT_NOTES,
        ]

        metadata = {
            "templates": templates.found,
            "context": {
                "technology": bool(context.technology.strip()),
                "structure": bool(context.folder_structure.strip()),
                "conventions": bool(context.conventions.strip()),
            },
        }

        return TaskGenerationPrompt(prompt="\n".join(parts), metadata=metadata)
