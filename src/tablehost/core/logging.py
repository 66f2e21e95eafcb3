"""Logging configuration using structlog."""

import logging
import sys
from uuid import UUID

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars


def setup_logging(debug: bool = False) -> None:
    """Configure structlog for structured logging.

    Args:
        debug: If True, use colored console output. If False, use JSON for production.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )

    shared_processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.typing.Processor
    if debug:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Quiet chatty libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("temporalio").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)


def bind_request_context(request_id: str | None) -> None:
    """Bind the correlation ID to all subsequent log calls."""
    if request_id:
        bind_contextvars(request_id=request_id)


def bind_principal_context(
    principal_id: UUID,
    tenant_id: UUID | None = None,
    email: str | None = None,
) -> None:
    """Bind the authenticated principal (and optionally the tenant) to log context.

    Args:
        principal_id: Identity-provider id of the caller.
        tenant_id: Tenant the request operates on, when known.
        email: Only logged if settings.log_user_emails is True.
    """
    from src.tablehost.core.config import get_settings

    bind_contextvars(principal_id=str(principal_id))
    if tenant_id is not None:
        bind_contextvars(tenant_id=str(tenant_id))

    if email and get_settings().log_user_emails:
        bind_contextvars(principal_email=email)


def bind_provisioning_context(attempt_id: UUID, idempotency_key: str) -> None:
    """Bind a provisioning attempt so every stage log line can be correlated."""
    bind_contextvars(attempt_id=str(attempt_id), idempotency_key=idempotency_key)


def clear_request_context() -> None:
    """Clear all request-scoped context."""
    clear_contextvars()
