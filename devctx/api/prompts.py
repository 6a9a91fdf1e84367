"""API endpoints for context-aware prompt generation."""

from functools import lru_cache

from fastapi import APIRouter, Depends

from devctx.core.errors import render_error
from devctx.core.logging import get_logger
from devctx.core.schemas_prompts import CommandRequest, PromptResponse
from devctx.services.prompt_service import PromptOutcome, PromptService

logger = get_logger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_prompt_service() -> PromptService:
    """Process-wide service; its clients are shared across requests."""
    return PromptService()


def _to_response(outcome: PromptOutcome) -> PromptResponse:
    return PromptResponse(
        text=outcome.text,
        is_error=outcome.is_error,
        error_kind=outcome.error_kind.value if outcome.error_kind else None,
        context_found=outcome.context_found,
    )


@router.post("/dev-task", response_model=PromptResponse)
async def dev_task(
    request: CommandRequest,
    service: PromptService = Depends(get_prompt_service),
) -> PromptResponse:
    """
    Generate a context-aware development prompt.

    Parses the command, retrieves technology, structure, conventions and
    example context for the scope, and returns the assembled prompt.
    Pipeline errors come back as readable text with is_error set.
    """
    try:
        outcome = await service.run_dev_task(request.command)
    except Exception as e:
        logger.exception("Unexpected error in dev_task")
        return PromptResponse(
            text=render_error(e, "context-aware prompt"), is_error=True, error_kind="internal"
        )
    return _to_response(outcome)


@router.post("/generate-tasks", response_model=PromptResponse)
async def generate_tasks(
    request: CommandRequest,
    service: PromptService = Depends(get_prompt_service),
) -> PromptResponse:
    """Generate a PRD → Tasks → Subtasks documentation prompt."""
    try:
        outcome = await service.run_generate_tasks(request.command)
    except Exception as e:
        logger.exception("Unexpected error in generate_tasks")
        return PromptResponse(
            text=render_error(e, "task prompt"), is_error=True, error_kind="internal"
        )
    return _to_response(outcome)
