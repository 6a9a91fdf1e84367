"""Retrieval of the PRD, task list and subtask templates.

Templates are supplementary scaffolding, so each slot degrades on its
own: an empty or failed lookup yields a placeholder instead of failing
the call.
"""

import asyncio
from dataclasses import dataclass

from devctx.core.content_categories import TemplateCategory
from devctx.core.context_retrieval import ContextRetriever, combine_results
from devctx.core.errors import DevContextError
from devctx.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TemplateSlot:
    name: str
    query: str
    category: str
    placeholder: str


TEMPLATE_SLOTS = (
    TemplateSlot(
        name="prd_template",
        query="create-prd product requirements document template guide",
        category=TemplateCategory.PRD,
        placeholder="# PRD Template\n\n*Template not found in embeddings. Using fallback.*",
    ),
    TemplateSlot(
        name="tasks_template",
        query="generate-tasks task list template guide",
        category=TemplateCategory.TASKS,
        placeholder="# Tasks Template\n\n*Template not found in embeddings. Using fallback.*",
    ),
    TemplateSlot(
        name="subtasks_template",
        query="implement-task subtask implementation template guide",
        category=TemplateCategory.SUBTASKS,
        placeholder="# Subtasks Template\n\n*Template not found in embeddings. Using fallback.*",
    ),
)


@dataclass(frozen=True)
class TemplateBundle:
    """Template content per slot, or the slot's placeholder."""

    prd_template: str
    tasks_template: str
    subtasks_template: str

    @property
    def found(self) -> dict[str, bool]:
        """Whether each slot holds retrieved content rather than its placeholder."""
        return {
            slot.name.removesuffix("_template"): getattr(self, slot.name) != slot.placeholder
            for slot in TEMPLATE_SLOTS
        }


class TemplateRetriever:
    """Semantic search for the three task generation templates."""

    def __init__(self, retriever: ContextRetriever | None = None):
        self.retriever = retriever or ContextRetriever()

    async def _search_slot(self, slot: TemplateSlot) -> str:
        settings = self.retriever.settings
        try:
            embedding = await self.retriever.embed(slot.query)
            results = await self.retriever.search(
                embedding,
                [settings.SHARED_APPLICATION],
                [slot.category],
                settings.TEMPLATE_TOP_K,
            )
        except DevContextError as e:
            logger.warning(f"Template lookup failed for {slot.name}: {e}")
            return slot.placeholder

        if not results:
            logger.info(f"Template not found for {slot.name}, using fallback")
            return slot.placeholder

        return combine_results(results, include_distance=False)

    async def search_templates(self) -> TemplateBundle:
        """Look up all three templates concurrently."""
        contents = await asyncio.gather(*(self._search_slot(slot) for slot in TEMPLATE_SLOTS))
        return TemplateBundle(**{slot.name: content for slot, content in zip(TEMPLATE_SLOTS, contents)})
