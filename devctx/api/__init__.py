"""API router for v1 endpoints."""

from fastapi import APIRouter, Depends

from devctx.api import info, prompts, rules
from devctx.core.auth_middleware import require_api_key

router = APIRouter(dependencies=[Depends(require_api_key)])

# Prompt generation: dev tasks and PRD/tasks/subtasks generation
router.include_router(prompts.router, prefix="/prompts", tags=["prompts"])

# CRAC rules tool and raw rule documents
router.include_router(rules.router, tags=["rules"])

# Server information
router.include_router(info.router, tags=["info"])
