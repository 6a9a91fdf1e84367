"""Caller-facing operations: dev task prompt, task generation prompt, rules lookup.

Each ``build_*`` function returns its artifact or raises a typed
DevContextError. The ``run_*`` functions are what the hosting layer calls:
they never raise for pipeline errors and render failures as text.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from devctx.core.command_parser import (
    ParsedCommand,
    normalize_generate_action,
    parse_command,
)
from devctx.core.context_retrieval import ContextRetriever, RetrievedContext
from devctx.core.errors import DevContextError, EmptyInputError, ErrorKind, render_error
from devctx.core.logging import get_logger, log_with_context
from devctx.core.prompt_builder import PromptBuilder, StructuredPrompt, render_dev_task_prompt
from devctx.core.rules_provider import RulesProvider, RulesResult, render_rules
from devctx.core.task_prompt_builder import TaskGenerationPrompt, TaskPromptBuilder
from devctx.core.template_retrieval import TemplateRetriever

logger = get_logger(__name__)

DEV_TASK_EMPTY = "Command cannot be empty. Please provide a development command."
GENERATE_TASKS_EMPTY = "Command cannot be empty. Please provide a command for task generation."


@dataclass(frozen=True)
class PromptOutcome:
    """Rendered text plus the status a caller may want to report."""

    text: str
    error_kind: ErrorKind | None = None
    context_found: dict[str, bool] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.error_kind is not None


@dataclass(frozen=True)
class DevTaskResult:
    command: ParsedCommand
    context: RetrievedContext
    prompt: StructuredPrompt


class PromptService:
    """Wires parser, retrievers and builders for the three operations."""

    def __init__(
        self,
        context_retriever: ContextRetriever | None = None,
        template_retriever: TemplateRetriever | None = None,
        prompt_builder: PromptBuilder | None = None,
        task_prompt_builder: TaskPromptBuilder | None = None,
        rules_provider: RulesProvider | None = None,
    ):
        self.context_retriever = context_retriever or ContextRetriever()
        self.template_retriever = template_retriever or TemplateRetriever(self.context_retriever)
        self.prompt_builder = prompt_builder or PromptBuilder(self.context_retriever)
        self.task_prompt_builder = task_prompt_builder or TaskPromptBuilder()
        self.rules_provider = rules_provider or RulesProvider(
            context_retriever=self.context_retriever
        )

    # -------------------------------------------------------------------------
    # Dev task
    # -------------------------------------------------------------------------

    async def build_dev_task(self, command: str | None) -> DevTaskResult:
        """
        Parse a command, retrieve context and assemble the structured prompt.

        Raises:
            EmptyInputError: If the command is empty
            ScopeNotFoundError: If the parsed scope is not active
            BackendQueryError / EmbeddingError: If retrieval fails
        """
        if not command or not command.strip():
            raise EmptyInputError(DEV_TASK_EMPTY)

        parsed = parse_command(command)
        log_with_context(
            logger,
            logging.INFO,
            "Parsed dev task command",
            action=parsed.action,
            scope=parsed.scope,
        )

        context = await self.context_retriever.search_context(
            parsed.requirement, parsed.scope, parsed.action
        )
        prompt = await self.prompt_builder.build_prompt(parsed, context)
        return DevTaskResult(command=parsed, context=context, prompt=prompt)

    async def run_dev_task(self, command: str | None) -> PromptOutcome:
        """Dev task prompt as a single text message, errors rendered as text."""
        try:
            result = await self.build_dev_task(command)
        except DevContextError as e:
            return self._failure(e, "context-aware prompt")

        return PromptOutcome(
            text=render_dev_task_prompt(result.prompt, result.context, result.command.scope),
            context_found=result.context.found,
        )

    # -------------------------------------------------------------------------
    # Task generation
    # -------------------------------------------------------------------------

    async def build_task_generation(self, command: str | None) -> TaskGenerationPrompt:
        """
        Retrieve templates and context concurrently and build the generation prompt.

        Raises:
            EmptyInputError: If the command is empty
            ScopeNotFoundError / BackendQueryError / EmbeddingError: From context retrieval
        """
        if not command or not command.strip():
            raise EmptyInputError(GENERATE_TASKS_EMPTY)

        parsed = normalize_generate_action(parse_command(command))

        templates_task = asyncio.ensure_future(self.template_retriever.search_templates())
        try:
            context = await self.context_retriever.search_context(
                parsed.requirement, parsed.scope, parsed.action
            )
            templates = await templates_task
        finally:
            if not templates_task.done():
                templates_task.cancel()

        return self.task_prompt_builder.build_task_generation_prompt(parsed, templates, context)

    async def run_generate_tasks(self, command: str | None) -> PromptOutcome:
        """Task generation prompt text, errors rendered as text."""
        try:
            generated = await self.build_task_generation(command)
        except DevContextError as e:
            return self._failure(e, "task prompt")

        return PromptOutcome(text=generated.prompt, context_found=generated.metadata["context"])

    # -------------------------------------------------------------------------
    # Rules lookup
    # -------------------------------------------------------------------------

    async def get_rules(self, context: str | None = None) -> tuple[RulesResult, str]:
        """Detect rule types, load static rules and search related documentation."""
        result = self.rules_provider.get_rules(context)
        related = await self.rules_provider.search_related_documentation(
            context, result.rule_types
        )
        return result, render_rules(result, related)

    # -------------------------------------------------------------------------

    @staticmethod
    def _failure(error: DevContextError, operation: str) -> PromptOutcome:
        if error.kind is ErrorKind.EMPTY_INPUT:
            logger.info(f"Rejected empty command for {operation}")
        else:
            logger.error(f"Error generating {operation}: {error}", exc_info=error)
        return PromptOutcome(text=render_error(error, operation), error_kind=error.kind)
