"""Health check endpoint with dependency validation and caching."""

import secrets
import time
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from src.tablehost.core.config import get_settings
from src.tablehost.core.db import get_session
from src.tablehost.core.redis import get_redis
from src.tablehost.core.shutdown import request_tracker
from src.tablehost.temporal.client import get_temporal_client

HEALTH_CACHE_TTL = 10  # seconds

_health_cache: dict[str, Any] | None = None
_health_cache_time: float = 0


def reset_health_cache() -> None:
    """Reset health cache (for testing)."""
    global _health_cache, _health_cache_time
    _health_cache = None
    _health_cache_time = 0


async def _check_database() -> str:
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        return f"unhealthy: {e!s}"
    return "healthy"


async def _check_temporal() -> str:
    try:
        await get_temporal_client()
    except Exception as e:
        return f"unhealthy: {e!s}"
    return "healthy"


async def _check_redis() -> str:
    redis = await get_redis()
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()  # type: ignore[misc]
    except Exception as e:
        return f"unhealthy: {e!s}"
    return "healthy"


async def collect_health() -> dict[str, Any]:
    """Run all checks. Database failure is unhealthy; the rest only degrade."""
    report: dict[str, Any] = {
        "status": "healthy",
        "database": await _check_database(),
        "temporal": await _check_temporal(),
        "redis": await _check_redis(),
        "cached": False,
        "timestamp": time.time(),
    }
    if report["database"] != "healthy":
        report["status"] = "unhealthy"
    elif any(report[name].startswith("unhealthy") for name in ("temporal", "redis")):
        report["status"] = "degraded"
    return report


def setup_health_endpoint(app: FastAPI) -> None:
    """Configure the /health endpoint."""

    @app.get("/health", include_in_schema=False)
    async def health() -> JSONResponse:
        global _health_cache, _health_cache_time

        if request_tracker.is_shutting_down:
            return JSONResponse(
                content={
                    "status": "draining",
                    "in_flight_requests": request_tracker.in_flight_count,
                    "message": "Server is shutting down",
                },
                status_code=503,
            )

        now = time.time()
        if _health_cache and (now - _health_cache_time) < HEALTH_CACHE_TTL:
            cached = {
                **_health_cache,
                "cached": True,
                "cache_age_seconds": round(now - _health_cache_time, 1),
            }
            return JSONResponse(
                content=cached,
                status_code=200 if cached["status"] == "healthy" else 503,
            )

        report = await collect_health()
        _health_cache = report
        _health_cache_time = now

        return JSONResponse(
            content=report,
            status_code=200 if report["status"] == "healthy" else 503,
        )


def setup_metrics(app: FastAPI) -> None:
    """Configure Prometheus metrics with optional API key protection."""
    settings = get_settings()
    instrumentator = Instrumentator().instrument(app)

    if not settings.metrics_api_key:
        instrumentator.expose(app, endpoint="/metrics")
        return

    api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

    async def verify_metrics_key(api_key: str | None = Depends(api_key_header)) -> None:
        if (
            api_key is None
            or settings.metrics_api_key is None
            or not secrets.compare_digest(api_key, settings.metrics_api_key)
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing metrics API key",
            )

    instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
