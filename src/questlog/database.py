"""Async SQLAlchemy engine and session management."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from questlog.db import models as _models  # noqa: F401  (registers tables on Base.metadata)
from questlog.db.base import Base


def create_engine(url: str, pool_timeout: int = 10) -> AsyncEngine:
    """Create the async engine. SQLite gets foreign key enforcement switched on."""
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=False)

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:  # noqa: ANN401
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_async_engine(
        url,
        pool_size=20,
        max_overflow=10,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
        echo=False,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory handed to the SQL repositories."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def check_connection(engine: AsyncEngine) -> None:
    """Round-trip ``SELECT 1``. Raises if the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_tables(engine: AsyncEngine) -> None:
    """Create every table that does not exist yet (development and tests)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
