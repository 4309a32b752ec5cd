"""
Integration tests for health, root and application-wide behavior.
"""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from core.config import settings
from core.database import get_db
from main import app


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"] == settings.version
        assert body["uptime"] >= 0
        assert body["memory"]["maxRssBytes"] > 0
        assert body["timestamp"]

    @pytest.mark.asyncio
    async def test_database_down_is_503(self, async_client: AsyncClient):
        broken_session = AsyncMock()
        broken_session.execute.side_effect = OperationalError(
            "SELECT 1", {}, ConnectionRefusedError("connection refused")
        )

        async def override_get_db():
            yield broken_session

        app.dependency_overrides[get_db] = override_get_db

        response = await async_client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["database"] == "disconnected"


class TestRoot:
    @pytest.mark.asyncio
    async def test_banner(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Welcome to Visigence API"
        assert body["health"] == "/health"


class TestApplicationBehavior:
    @pytest.mark.asyncio
    async def test_unknown_route(self, async_client: AsyncClient):
        response = await async_client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Route not found"}

    @pytest.mark.asyncio
    async def test_security_headers(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "Content-Security-Policy" in response.headers
        assert "X-Response-Time" in response.headers

    @pytest.mark.asyncio
    async def test_request_id_generated(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_request_id_propagated(self, async_client: AsyncClient):
        response = await async_client.get("/", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
