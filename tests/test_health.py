"""
Tests for health, readiness and metrics endpoints.
"""

import pytest

from medvoice.gateway import health


class TestHealth:
    @pytest.mark.asyncio
    async def test_basic_health(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "message": "MedVoice API is running"}

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/health/live")
        assert response.json()["status"] == "alive"

    @pytest.mark.asyncio
    async def test_ready_with_database(self, client):
        response = await client.get("/health/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_not_ready_when_database_fails(self, client, monkeypatch):
        async def _failing_ping():
            raise ConnectionError("connection refused")

        monkeypatch.setattr(health, "ping_database", _failing_ping)

        response = await client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["database"]["error"] == "connection refused"

    @pytest.mark.asyncio
    async def test_metrics_exposition(self, client, metrics):
        await client.get("/api/health")
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "medvoice_http_requests_total" in response.text
