"""Error taxonomy and exception handlers.

Every domain failure carries a stable ``code``, a user-facing ``message``,
the HTTP status it maps to and whether the client may retry. Handlers render
them as ``{code, message, retryable, request_id}``.
"""

from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.tablehost.core.logging import get_logger

logger = get_logger(__name__)


class TablehostError(Exception):
    """Base class for errors that are reported to API clients."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    retryable: bool = False
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        retryable: bool | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationConflictError(TablehostError):
    """A uniqueness rule rejected the request. Not retried."""

    code = "CONFLICT"
    status_code = 409
    default_message = "Resource already exists"


class SlugUnavailableError(ValidationConflictError):
    code = "SLUG_UNAVAILABLE"
    default_message = "This tenant slug is already taken"


class EmailUnavailableError(ValidationConflictError):
    code = "EMAIL_UNAVAILABLE"
    default_message = "This email address is already in use"


class InvalidRequestError(TablehostError):
    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "Invalid request"


class ReservedSlugError(InvalidRequestError):
    code = "RESERVED_SLUG"
    default_message = "This tenant slug is reserved"


class ReservedEmailError(InvalidRequestError):
    code = "RESERVED_EMAIL"
    default_message = "This email domain is reserved for system accounts"


class IdempotencyKeyReusedError(InvalidRequestError):
    code = "IDEMPOTENCY_KEY_REUSED"
    default_message = "Idempotency key was already used with a different request"


class IdempotencyInProgressError(TablehostError):
    code = "IDEMPOTENCY_IN_PROGRESS"
    status_code = 409
    retryable = True
    default_message = "A request with this idempotency key is still being processed"


class TransientInfrastructureError(TablehostError):
    """A dependency failed; partial work was rolled back and the client may retry."""

    code = "TRANSIENT_FAILURE"
    status_code = 503
    retryable = True
    default_message = "A dependency is temporarily unavailable, please retry"


class VerificationFailedError(TablehostError):
    code = "VERIFICATION_FAILED"
    status_code = 500
    default_message = "Provisioned records failed consistency verification"


class ProvisioningFailedError(TablehostError):
    """Generic failure shown when cleanup itself did not complete."""

    code = "PROVISIONING_FAILED"
    status_code = 500
    default_message = "Tenant provisioning failed"


class NotFoundError(TablehostError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class VersionConflictError(TablehostError):
    code = "VERSION_CONFLICT"
    status_code = 409
    default_message = "Resource was modified by another request"


_ERRORS_BY_CODE: dict[str, type[TablehostError]] = {
    cls.code: cls
    for cls in (
        SlugUnavailableError,
        EmailUnavailableError,
        InvalidRequestError,
        ReservedSlugError,
        ReservedEmailError,
        IdempotencyKeyReusedError,
        IdempotencyInProgressError,
        TransientInfrastructureError,
        VerificationFailedError,
        ProvisioningFailedError,
        NotFoundError,
        VersionConflictError,
    )
}


def error_from_code(
    code: str | None,
    message: str | None,
    retryable: bool = False,
) -> TablehostError:
    """Rebuild a stored error (e.g. when replaying a failed idempotency key)."""
    cls = _ERRORS_BY_CODE.get(code or "", TablehostError)
    return cls(message, code=code or None, retryable=retryable)


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(TablehostError)
    async def tablehost_error_handler(request: Request, exc: TablehostError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                code=exc.code,
                error_message=exc.message,
                path=request.url.path,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={**exc.to_dict(), "request_id": correlation_id.get()},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "code": InvalidRequestError.code,
                "message": InvalidRequestError.default_message,
                "retryable": False,
                "details": {"errors": jsonable_encoder(exc.errors())},
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "request_id": correlation_id.get()},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "request_id": correlation_id.get()},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "code": "INTERNAL_ERROR",
                "message": "Internal server error",
                "retryable": False,
                "request_id": request_id,
            },
        )
