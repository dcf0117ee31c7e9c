"""Integration tests for health, readiness and metrics endpoints

Tests cover:
- /health component reporting (database, Redis, tenant cache)
- Redis outage reported as degraded, not unhealthy
- /ready
- /metrics exposition including tenant resolution counters
- X-Request-ID propagation
"""

import pytest
from fastapi.testclient import TestClient

from conftest import BASE_DOMAIN
from models import Business
from observability import router as observability_router
from observability.health import ComponentHealth, HealthStatus


pytestmark = pytest.mark.integration


@pytest.fixture
def redis_up(monkeypatch):
    monkeypatch.setattr(
        observability_router,
        "check_redis_health",
        lambda: ComponentHealth(status=HealthStatus.HEALTHY, message="Redis connection OK", latency_ms=0.1),
    )


@pytest.fixture
def redis_down(monkeypatch):
    monkeypatch.setattr(
        observability_router,
        "check_redis_health",
        lambda: ComponentHealth(status=HealthStatus.DEGRADED, message="Redis unavailable: connection refused"),
    )


class TestHealth:

    def test_all_healthy(self, client: TestClient, redis_up):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert set(data["components"]) == {"database", "redis", "tenant_cache"}
        assert data["components"]["tenant_cache"]["message"] == "0 entries, hit rate 0.0%"

    def test_redis_outage_is_degraded(self, client: TestClient, redis_down):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["components"]["redis"]["status"] == "degraded"

    def test_cache_stats_in_health(self, client: TestClient, redis_up, business: Business):
        client.get("/api/v1/tenants/current", headers={"Host": f"acme.{BASE_DOMAIN}"})
        client.get("/api/v1/tenants/current", headers={"Host": f"acme.{BASE_DOMAIN}"})

        message = client.get("/health").json()["components"]["tenant_cache"]["message"]
        assert message.startswith("1 entries")


class TestReady:

    def test_ready(self, client: TestClient):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestMetrics:

    def test_exposes_tenant_metrics(self, client: TestClient, business: Business):
        client.get("/api/v1/tenants/current", headers={"Host": f"acme.{BASE_DOMAIN}"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert "ordira_tenant_resolutions_total" in body
        assert "ordira_tenant_cache_entries 1.0" in body


class TestRequestId:

    def test_generated_when_absent(self, client: TestClient):
        response = client.get("/api/v1")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]

    def test_echoed_when_present(self, client: TestClient):
        response = client.get("/api/v1", headers={"X-Request-ID": "trace-abc"})
        assert response.headers["X-Request-ID"] == "trace-abc"
