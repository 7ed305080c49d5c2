"""Backend fixtures: every repository test runs against memory, sql and redis."""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from redis.exceptions import RedisError

from questlog.database import create_engine, create_session_factory, create_tables
from questlog.redis_client import create_redis
from questlog.repositories.base import Repositories
from questlog.repositories.keyvalue import redis_repositories
from questlog.repositories.memory import memory_repositories
from questlog.repositories.sql import sql_repositories

TEST_REDIS_URL = os.environ.get("QUESTLOG_TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest_asyncio.fixture(params=["memory", "sql", "redis"])
async def repos(request: pytest.FixtureRequest, tmp_path) -> AsyncGenerator[Repositories, None]:
    """A fresh, empty repository bundle for the parametrized backend."""
    if request.param == "memory":
        yield memory_repositories()
        return

    if request.param == "sql":
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'questlog.db'}")
        await create_tables(engine)
        try:
            yield sql_repositories(create_session_factory(engine))
        finally:
            await engine.dispose()
        return

    client = create_redis(TEST_REDIS_URL, socket_timeout=1.0)
    try:
        await client.ping()
    except (RedisError, OSError):
        await client.aclose()
        pytest.skip(f"no Redis server at {TEST_REDIS_URL}")
    prefix = f"questlog-test-{uuid.uuid4().hex}"
    try:
        yield redis_repositories(client, prefix)
    finally:
        async for key in client.scan_iter(match=f"{prefix}:*"):
            await client.delete(key)
        await client.aclose()
