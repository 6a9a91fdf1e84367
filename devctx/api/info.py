"""Server information endpoint."""

from fastapi import APIRouter, Query

from devctx import __version__

router = APIRouter()

SERVER_NAME = "crac"

INFO = {
    "server": {"name": SERVER_NAME, "version": __version__},
    "tools": ["get_info", "get_crac_rules"],
    "resources": ["crac-rules://crac-config", "crac-rules://endpoints", "crac-rules://all"],
    "prompts": ["dev_task", "generate_tasks"],
}


@router.get("/info")
async def get_info(
    section: str | None = Query(
        default=None, description="Specific section (server, tools, resources, prompts)"
    ),
) -> dict:
    """Generic server information, optionally limited to one section."""
    if section and section.lower() in INFO:
        key = section.lower()
        return {key: INFO[key]}
    return INFO
