"""Tests for security headers and no-store caching rules."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.tablehost.api.middlewares.security_headers import (
    SecurityHeadersMiddleware,
    is_no_store_path,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/api/v1/provisioning", True),
        ("/api/v1/provisioning/attempts/123/audit", True),
        ("/api/v1/tenants/abc/owner/setup-link", True),
        ("/api/v1/tenants/abc/owner", True),
        ("/api/v1/audit", True),
        ("/api/v1/tenants", False),
        ("/api/v1/tenants/abc/widgets", False),
        ("/api/v1/provisioningx", False),
        ("/health", False),
    ],
)
def test_is_no_store_path(path, expected):
    assert is_no_store_path(path) is expected


@pytest.fixture
async def client():
    app = FastAPI()
    app.add_middleware(SecurityHeadersMiddleware)

    @app.get("/api/v1/provisioning")
    async def provisioning():
        return {}

    @app.get("/api/v1/tenants")
    async def tenants():
        return {}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def test_security_headers_added(client):
    response = await client.get("/api/v1/tenants")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
    assert "Cache-Control" not in response.headers


async def test_provisioning_responses_not_cached(client):
    response = await client.get("/api/v1/provisioning")

    assert response.headers["Cache-Control"] == "no-store"
    assert response.headers["Pragma"] == "no-cache"
