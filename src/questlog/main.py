"""FastAPI application factory.

Run with ``uvicorn questlog.main:create_app --factory``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from questlog.auth.router import router as auth_router
from questlog.challenges.router import router as challenges_router
from questlog.config import Settings, get_settings
from questlog.health.router import router as health_router
from questlog.middleware import setup_middleware
from questlog.progress.router import router as progress_router
from questlog.quests.router import router as quests_router
from questlog.repositories.base import Repositories
from questlog.repositories.factory import open_repositories
from questlog.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect the storage backend unless repositories were injected."""
    if getattr(app.state, "repositories", None) is not None:
        yield
        return

    async with open_repositories(app.state.settings) as repositories:
        app.state.repositories = repositories
        yield
        app.state.repositories = None
    logger.info("storage_backend_closed")


def create_app(settings: Settings | None = None, repositories: Repositories | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Defaults to the environment (``get_settings()``). A missing
            session signing key raises here, before anything is served.
        repositories: Pre-built repositories. When omitted, the backend named
            by ``settings.storage_backend`` is connected during startup.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Questlog API",
        description="Quests, location-bound challenges, and who took part in them",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repositories = repositories

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(quests_router)
    app.include_router(challenges_router)
    app.include_router(progress_router)

    return app
