"""Tests for the health endpoints."""

import pytest

from devsocial.schemas.health import CheckStatus, DependencyCheck, ReadinessResponse

NOT_READY = ReadinessResponse(
    status="not_ready",
    checks={"postgres": DependencyCheck(status=CheckStatus.down, error="unavailable")},
)


class TestLiveness:
    @pytest.mark.asyncio
    async def test_health_is_healthy(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_live(self, client):
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}


class TestReadiness:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/health/ready", "/api/health"])
    async def test_ready(self, client, fake_health_service, path):
        response = await client.get(path)

        assert response.status_code == 200
        assert response.json()["status"] == "ready"
        assert fake_health_service.check_readiness_calls == [{"debug": False}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/health/ready", "/api/health"])
    async def test_not_ready_returns_503(self, client, fake_health_service, path):
        fake_health_service.set_response(NOT_READY)

        response = await client.get(path)

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        assert body["checks"]["postgres"]["status"] == "down"


class TestIsolation:
    @pytest.mark.asyncio
    async def test_every_request_runs_the_worker_hooks(
        self, client, fake_cache, fake_operation_metrics
    ):
        await client.get("/health")
        await client.get("/health/live")

        assert len(fake_operation_metrics.operations) == 2
        assert {op.kind for op in fake_operation_metrics.operations} == {"request"}
        assert "active_users" in fake_cache.forgotten
        assert "online_count" in fake_cache.forgotten

    @pytest.mark.asyncio
    async def test_response_carries_request_id(self, client):
        response = await client.get("/health")

        assert response.headers["X-Request-ID"]
