"""Tests for middleware: request ID, CORS, error handlers."""

from dataclasses import replace

from httpx import ASGITransport, AsyncClient

from questlog.config import Settings
from questlog.errors import BackendError
from questlog.main import create_app
from questlog.repositories.base import Repositories


class _FailingQuests:
    """Quest repository whose store is unreachable."""

    async def all(self):
        raise BackendError

    async def find(self, quest_id: str):
        raise RuntimeError("boom")


class TestRequestId:
    async def test_generates_request_id(self, client: AsyncClient):
        response = await client.get("/health")
        assert "x-request-id" in response.headers
        assert len(response.headers["x-request-id"]) == 36

    async def test_propagates_request_id(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-Id": "custom-id-123"})
        assert response.headers["x-request-id"] == "custom-id-123"


class TestCors:
    async def test_allowed_origin_with_credentials(self, client: AsyncClient):
        response = await client.options(
            "/api/v1/quests",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
        assert response.headers["access-control-allow-credentials"] == "true"

    async def test_unknown_origin(self, client: AsyncClient):
        response = await client.get("/health", headers={"Origin": "https://evil.example"})
        assert "access-control-allow-origin" not in response.headers


class TestErrorHandlers:
    async def test_unknown_route_is_json_404(self, client: AsyncClient):
        response = await client.get("/nonexistent-endpoint")
        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found"}

    async def test_backend_error_is_503(self, settings: Settings, repositories: Repositories):
        app = create_app(settings, replace(repositories, quests=_FailingQuests()))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/api/v1/quests")
        assert response.status_code == 503
        assert response.json() == {"detail": "Storage backend unavailable"}

    async def test_unhandled_error_is_json_500(self, settings: Settings, repositories: Repositories):
        app = create_app(settings, replace(repositories, quests=_FailingQuests()))
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/v1/quests/anything")
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
