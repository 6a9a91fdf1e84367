"""API endpoints for CRAC rules."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from devctx.api.prompts import get_prompt_service
from devctx.core.logging import get_logger
from devctx.core.rules_reader import RulesReader
from devctx.core.schemas_prompts import RulesRequest, RulesResponse
from devctx.services.prompt_service import PromptService

logger = get_logger(__name__)

router = APIRouter()


@router.post("/tools/crac-rules", response_model=RulesResponse)
async def get_crac_rules(
    request: RulesRequest,
    service: PromptService = Depends(get_prompt_service),
) -> RulesResponse:
    """
    Get the CRAC rules relevant to a task.

    Detects which rule types the context needs (testing, structure,
    endpoints, code style) and returns the matching rule documents.
    Call this before implementing code, tests, services or structures.
    """
    result, text = await service.get_rules(request.context)
    return RulesResponse(
        text=text,
        rule_types=[rule_type.value for rule_type in result.rule_types],
        description=result.description,
    )


@router.get("/rules/{name}", response_class=PlainTextResponse)
async def read_rules(name: str) -> PlainTextResponse:
    """Raw rule document: crac-config, endpoints or all."""
    try:
        text = RulesReader().read(name)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except FileNotFoundError as e:
        logger.error(f"Rule document missing: {e}")
        raise HTTPException(status_code=500, detail="Rule document unavailable") from e
    return PlainTextResponse(text, media_type="text/markdown")
