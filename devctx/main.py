"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from devctx import __version__
from devctx.api import router as api_router
from devctx.core.config import load_settings
from devctx.core.errors import render_error
from devctx.core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Validate configuration before serving; a misconfigured process does not start."""
    try:
        settings = load_settings()
    except Exception as e:
        logger.error(render_error(e, "service configuration"))
        raise
    logger.info(f"Service starting (env={settings.DEVCTX_ENV}, model={settings.EMBEDDING_MODEL})")
    yield


app = FastAPI(
    title="Dev Context Prompts",
    description="RAG-backed prompt orchestration for coding agents",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok", "service": "devctx"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
