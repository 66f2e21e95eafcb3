"""Tests for the error taxonomy and exception handlers."""

from uuid import uuid4

import pytest
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from src.tablehost.core.exceptions import (
    EmailUnavailableError,
    IdempotencyInProgressError,
    IdempotencyKeyReusedError,
    NotFoundError,
    ProvisioningFailedError,
    ReservedEmailError,
    ReservedSlugError,
    SlugUnavailableError,
    TablehostError,
    TransientInfrastructureError,
    VerificationFailedError,
    VersionConflictError,
    error_from_code,
    setup_exception_handlers,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("error_cls", "code", "status_code", "retryable"),
    [
        (SlugUnavailableError, "SLUG_UNAVAILABLE", 409, False),
        (EmailUnavailableError, "EMAIL_UNAVAILABLE", 409, False),
        (ReservedSlugError, "RESERVED_SLUG", 422, False),
        (ReservedEmailError, "RESERVED_EMAIL", 422, False),
        (IdempotencyKeyReusedError, "IDEMPOTENCY_KEY_REUSED", 422, False),
        (IdempotencyInProgressError, "IDEMPOTENCY_IN_PROGRESS", 409, True),
        (TransientInfrastructureError, "TRANSIENT_FAILURE", 503, True),
        (VerificationFailedError, "VERIFICATION_FAILED", 500, False),
        (ProvisioningFailedError, "PROVISIONING_FAILED", 500, False),
        (NotFoundError, "NOT_FOUND", 404, False),
        (VersionConflictError, "VERSION_CONFLICT", 409, False),
    ],
)
def test_error_taxonomy(error_cls, code, status_code, retryable):
    error = error_cls()
    assert (error.code, error.status_code, error.retryable) == (code, status_code, retryable)
    assert error.message == error_cls.default_message


class TestErrorFromCode:
    def test_rebuilds_known_error(self):
        error = error_from_code("SLUG_UNAVAILABLE", "Slug taken", retryable=False)
        assert isinstance(error, SlugUnavailableError)
        assert error.message == "Slug taken"

    def test_keeps_stored_retryable_flag(self):
        assert error_from_code("TRANSIENT_FAILURE", None, retryable=True).retryable is True

    def test_unknown_code_keeps_code(self):
        error = error_from_code("LEGACY_CODE", "Old failure")
        assert type(error) is TablehostError
        assert error.code == "LEGACY_CODE"

    def test_missing_code_is_internal_error(self):
        assert error_from_code(None, None).code == "INTERNAL_ERROR"


def test_to_dict_omits_empty_details():
    assert NotFoundError("Tenant not found").to_dict() == {
        "code": "NOT_FOUND",
        "message": "Tenant not found",
        "retryable": False,
    }
    assert "details" in SlugUnavailableError(details={"reason": "tenants"}).to_dict()


class _Body(BaseModel):
    slug: str


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    app.add_middleware(CorrelationIdMiddleware)

    @app.get("/conflict")
    async def conflict():
        raise SlugUnavailableError(details={"reason": "tenants"})

    @app.get("/transient")
    async def transient():
        raise TransientInfrastructureError()

    @app.get("/http")
    async def http():
        raise HTTPException(status_code=403, detail="Platform admin access required")

    @app.post("/validate")
    async def validate(body: _Body):
        return body

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    return app


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestExceptionHandlers:
    async def test_domain_error_shape(self, client):
        request_id = str(uuid4())

        response = await client.get("/conflict", headers={"X-Request-ID": request_id})

        assert response.status_code == 409
        assert response.json() == {
            "code": "SLUG_UNAVAILABLE",
            "message": "This tenant slug is already taken",
            "retryable": False,
            "details": {"reason": "tenants"},
            "request_id": request_id,
        }

    async def test_retryable_flag_rendered(self, client):
        response = await client.get("/transient")

        assert response.status_code == 503
        body = response.json()
        assert body["retryable"] is True
        assert body["request_id"] == response.headers["X-Request-ID"]

    async def test_http_exception_includes_request_id(self, client):
        response = await client.get("/http")

        assert response.status_code == 403
        assert response.json()["detail"] == "Platform admin access required"
        assert response.json()["request_id"]

    async def test_validation_error(self, client):
        response = await client.post("/validate", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["retryable"] is False
        assert body["details"]["errors"][0]["loc"] == ["body", "slug"]

    async def test_unknown_route_includes_request_id(self, client):
        response = await client.get("/missing")

        assert response.status_code == 404
        assert "request_id" in response.json()

    async def test_unhandled_error_is_generic(self, client):
        response = await client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "unexpected" not in response.text
