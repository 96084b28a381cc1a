"""
Tests for GET /health.
"""
import pytest

from config import settings


class TestHealth:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_healthy(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] is True
        assert body["payments"] == {"simulationMode": True, "webhookVerification": True}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_reports_missing_server_key(self, client, monkeypatch):
        monkeypatch.setattr(settings, "midtrans_server_key", "")
        body = (await client.get("/health")).json()
        assert body["payments"]["webhookVerification"] is False
