"""
Atelier Backend — Health and Middleware Tests
===============================================

What we test:
    ✅ /health: degraded without integrations, healthy with them, 503 when
       the database is unreachable
    ✅ Rate limiter: 429 with Retry-After once the window is full
    ✅ Request IDs: generated when absent, client value capped
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from atelier.config import settings


def fake_engine(fail=False):
    conn = MagicMock()
    conn.execute = AsyncMock()
    ctx = MagicMock()
    if fail:
        ctx.__aenter__ = AsyncMock(side_effect=OSError("connection refused"))
    else:
        ctx.__aenter__ = AsyncMock(return_value=conn)
    ctx.__aexit__ = AsyncMock(return_value=False)
    engine = MagicMock()
    engine.connect.return_value = ctx
    return engine


class TestHealth:
    @pytest.mark.asyncio
    async def test_degraded_without_integrations(self, test_client):
        with patch("atelier.routes.health.engine", fake_engine()):
            response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["database"] == "connected"
        assert body["square"] == "not_configured"
        assert body["email"] == "not_configured"
        assert body["studio_mode"] == "landing"

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        with patch("atelier.routes.health.engine", fake_engine()), \
             patch.object(settings, "square_access_token", "sq"), \
             patch.object(settings, "square_location_id", "LOC"), \
             patch.object(settings, "resend_api_key", "re"):
            response = await test_client.get("/health")
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_database_down(self, test_client):
        with patch("atelier.routes.health.engine", fake_engine(fail=True)):
            response = await test_client.get("/health")
        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["database"] == "disconnected"


class TestMiddleware:
    @pytest.mark.asyncio
    async def test_rate_limit(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 10)
        statuses = [
            (await test_client.get("/api/studio/zones")).status_code for _ in range(12)
        ]
        assert statuses[-1] == 429

        response = await test_client.get("/api/studio/zones")
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        body = response.json()
        assert body["error"] == "rate_limit_exceeded"
        assert body["request_id"]
        assert response.headers["X-Request-ID"] == body["request_id"]

        response = await test_client.get(
            "/api/studio/zones", headers={"X-Request-ID": "trace-429"}
        )
        assert response.status_code == 429
        assert response.json()["request_id"] == "trace-429"
        assert response.headers["X-Request-ID"] == "trace-429"

    @pytest.mark.asyncio
    async def test_health_is_not_rate_limited(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 10)
        with patch("atelier.routes.health.engine", fake_engine()):
            for _ in range(12):
                assert (await test_client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        with patch("atelier.routes.health.engine", fake_engine()):
            response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_client_request_id_is_capped(self, test_client):
        with patch("atelier.routes.health.engine", fake_engine()):
            response = await test_client.get("/health", headers={"X-Request-ID": "x" * 100})
        assert response.headers["X-Request-ID"] == "x" * 64
