"""Tests for health aggregation, caching and drain reporting."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.tablehost.core import health
from src.tablehost.core.health import collect_health, reset_health_cache, setup_health_endpoint
from src.tablehost.core.shutdown import request_tracker

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _reset_health_state():
    reset_health_cache()
    request_tracker.reset()
    yield
    reset_health_cache()
    request_tracker.reset()


@pytest.fixture
def checks(monkeypatch) -> dict[str, str]:
    """Patch the dependency checks to return whatever the test puts in this dict."""
    results = {"database": "healthy", "temporal": "healthy", "redis": "not_configured"}
    calls = {"count": 0}

    async def database() -> str:
        calls["count"] += 1
        return results["database"]

    async def temporal() -> str:
        return results["temporal"]

    async def redis() -> str:
        return results["redis"]

    monkeypatch.setattr(health, "_check_database", database)
    monkeypatch.setattr(health, "_check_temporal", temporal)
    monkeypatch.setattr(health, "_check_redis", redis)
    results["calls"] = calls  # type: ignore[assignment]
    return results


@pytest.fixture
async def client():
    app = FastAPI()
    setup_health_endpoint(app)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestCollectHealth:
    async def test_all_healthy(self, checks):
        report = await collect_health()
        assert report["status"] == "healthy"
        assert report["redis"] == "not_configured"

    async def test_database_failure_is_unhealthy(self, checks):
        checks["database"] = "unhealthy: connection refused"
        assert (await collect_health())["status"] == "unhealthy"

    @pytest.mark.parametrize("dependency", ["temporal", "redis"])
    async def test_optional_dependency_failure_degrades(self, checks, dependency):
        checks[dependency] = "unhealthy: timeout"
        assert (await collect_health())["status"] == "degraded"


class TestHealthEndpoint:
    async def test_second_call_is_cached(self, checks, client):
        first = await client.get("/health")
        second = await client.get("/health")

        assert first.status_code == 200
        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        assert checks["calls"]["count"] == 1

    async def test_unhealthy_returns_503(self, checks, client):
        checks["database"] = "unhealthy: down"

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    async def test_draining_during_shutdown(self, checks, client):
        await request_tracker.start_shutdown()

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "draining"
