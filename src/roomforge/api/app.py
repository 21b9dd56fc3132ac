"""
RoomForge - FastAPI application.

Routes:
- POST /api/v1/chat - one chat turn, returns a response envelope
- GET/DELETE /api/v1/chat/history - caller's session history
- /api/v1/admin/knowledge - teach, update, list and delete canonical QA
- /api/v1/admin/pending - review queue: list, inspect, approve, reject
- GET /health
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from roomforge import __version__
from roomforge.api.dependencies import Container, build_container
from roomforge.api.models import HealthResponse
from roomforge.api.routes import chat_router, knowledge_router, pending_router
from roomforge.core.exceptions import RoomForgeError
from roomforge.core.logging import setup_logging
from roomforge.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(
    container: Optional[Container] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the application; without a container one is wired from settings on startup."""
    settings = settings or (container.settings if container else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(settings.app.log_level)
        if getattr(app.state, "container", None) is None:
            app.state.container = build_container(settings)
        logger.info(f"Starting RoomForge {__version__} ({settings.app.environment})")
        await app.state.container.startup()
        try:
            yield
        finally:
            logger.info("Shutting down RoomForge...")
            await app.state.container.shutdown()

    app = FastAPI(
        title="RoomForge",
        version=__version__,
        description="Natural-language questions over the rental marketplace database",
        lifespan=lifespan,
    )
    app.state.container = container

    app.include_router(chat_router, prefix="/api")
    app.include_router(knowledge_router, prefix="/api")
    app.include_router(pending_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health(request: Request) -> HealthResponse:
        current = request.app.state.container
        return HealthResponse(
            status="healthy",
            version=__version__,
            sessions=current.sessions.session_count if current else 0,
        )

    @app.exception_handler(RoomForgeError)
    async def roomforge_error_handler(request: Request, exc: RoomForgeError):
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=500,
            content={"detail": exc.message, "code": exc.code},
        )

    return app
