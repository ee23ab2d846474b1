"""FastAPI application factory for the rotation status API."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from loguru import logger

from .config import Settings
from .manager import RotationManager
from .routers import rotation_router


def create_app(manager: RotationManager, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or manager.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Rotation status API listening on {settings.host}:{settings.port}")
        yield
        logger.info("Rotation status API stopped")

    app = FastAPI(title="RandomGamesPlayedWhileIdle status", lifespan=lifespan)
    app.state.settings = settings
    app.state.manager = manager

    app.include_router(rotation_router.router)

    return app


def start_status_server(manager: RotationManager, settings: Settings) -> asyncio.Task:
    """Serve the status API on the running event loop as a background task."""
    import uvicorn

    config = uvicorn.Config(
        create_app(manager, settings),
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug_mode else "warning",
    )
    server = uvicorn.Server(config)
    return asyncio.get_running_loop().create_task(server.serve(), name="rotation-status-api")
