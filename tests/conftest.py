"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient, Response

from questlog.auth.tokens import issue_token
from questlog.config import Settings
from questlog.main import create_app
from questlog.repositories.base import Repositories
from questlog.repositories.memory import MemoryStore, memory_repositories

SECRET_KEY = "test-secret-key-0123456789abcdef0123456789"
OTHER_KEY = "another-secret-key-fedcba9876543210fedcba98"


@pytest.fixture
def settings() -> Settings:
    """Settings for an app wired to injected in-memory repositories."""
    return Settings(
        session_secret_key=SECRET_KEY,
        storage_backend="memory",
        log_format="console",
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
def store() -> MemoryStore:
    """A fresh, isolated in-memory store per test."""
    return MemoryStore()


@pytest.fixture
def repositories(store: MemoryStore) -> Repositories:
    return memory_repositories(store)


@pytest.fixture
def app(settings: Settings, repositories: Repositories) -> FastAPI:
    return create_app(settings, repositories)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client.

    Plain http, so the Secure session cookie is never replayed by the
    client's cookie jar; tests pass the cookie explicitly.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def session_token_from(response: Response) -> str:
    """Extract the session token from a Set-Cookie header."""
    header = response.headers["set-cookie"]
    first = header.split(";", 1)[0]
    name, _, value = first.partition("=")
    assert name == "session_token"
    return value


def cookie_header(token: str) -> dict[str, str]:
    return {"Cookie": f"session_token={token}"}


def make_token(
    user_id: str,
    *,
    key: str = SECRET_KEY,
    issued_at: datetime | None = None,
    ttl: timedelta = timedelta(hours=8),
) -> str:
    """Sign a token directly, bypassing login."""
    issued_at = issued_at or datetime.now(timezone.utc)
    return issue_token(user_id, issued_at, issued_at + ttl, key)


async def register(
    client: AsyncClient,
    username: str = "Ann",
    email: str = "ann@x.io",
    password: str = "pw",
) -> dict:
    """Register a user through the API. Returns its body plus ready-made auth headers."""
    response = await client.post("/api/v1/auth/register", json={
        "username": username,
        "email": email,
        "password": password,
    })
    assert response.status_code == 201, response.text
    data = response.json()
    token = session_token_from(response)
    return {**data, "token": token, "headers": cookie_header(token)}


@pytest_asyncio.fixture
async def ann(client: AsyncClient) -> dict:
    """A registered user with a live session."""
    return await register(client)


async def create_quest(client: AsyncClient, **overrides) -> dict:
    body = {"title": "Temple Run", "description": "Visit every temple", "price": 0, "difficulty": "Easy"}
    body.update(overrides)
    response = await client.post("/api/v1/quests", json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def create_challenge(client: AsyncClient, quest_id: str, **overrides) -> dict:
    body = {
        "name": "Kinkaku-ji",
        "description": "The golden pavilion",
        "quest_id": quest_id,
        "latitude": 35.0394,
        "longitude": 135.7292,
        "stamp_name": "Golden",
        "stamp_image_color": "stamps/kinkaku.png",
        "stamp_image_gray": "stamps/kinkaku_gray.png",
        "flavor_text": "Shines in the sun",
    }
    body.update(overrides)
    response = await client.post("/api/v1/challenges", json=body)
    assert response.status_code == 201, response.text
    return response.json()
