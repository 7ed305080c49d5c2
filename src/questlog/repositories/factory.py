"""Build the repository bundle selected by ``Settings.storage_backend``."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from questlog.config import Settings
from questlog.database import check_connection as check_database
from questlog.database import create_engine, create_session_factory, create_tables
from questlog.redis_client import check_connection as check_redis
from questlog.redis_client import create_redis
from questlog.repositories.base import Repositories
from questlog.repositories.keyvalue import redis_repositories
from questlog.repositories.memory import memory_repositories
from questlog.repositories.sql import sql_repositories

logger = structlog.get_logger()


@asynccontextmanager
async def open_repositories(settings: Settings) -> AsyncIterator[Repositories]:
    """
    Connect the configured backend and yield its repositories.

    The backend is probed before anything is yielded, so an unreachable
    store fails startup instead of failing the first request.
    """
    if settings.storage_backend == "memory":
        logger.info("storage_backend_ready", backend="memory")
        yield memory_repositories()
        return

    if settings.storage_backend == "redis":
        client = create_redis(settings.redis_url, settings.redis_socket_timeout_seconds)
        try:
            await check_redis(client)
            logger.info("storage_backend_ready", backend="redis")
            yield redis_repositories(client, settings.redis_key_prefix)
        finally:
            await client.aclose()
        return

    engine = create_engine(settings.database_url, settings.database_pool_timeout_seconds)
    try:
        await check_database(engine)
        if settings.database_create_tables:
            await create_tables(engine)
        logger.info("storage_backend_ready", backend="sql")
        yield sql_repositories(create_session_factory(engine))
    finally:
        await engine.dispose()
