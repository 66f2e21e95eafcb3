"""Tests for structured logging context."""

from types import SimpleNamespace
from uuid import uuid7

import pytest
import structlog
from structlog.testing import CapturingLogger

from src.tablehost.core.logging import (
    bind_principal_context,
    bind_provisioning_context,
    bind_request_context,
    clear_request_context,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def capturing_logger():
    """Route structlog output to a CapturingLogger for the test."""
    cap_logger = CapturingLogger()
    old_config = structlog.get_config()

    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=lambda *args, **kwargs: cap_logger,
        cache_logger_on_first_use=False,
    )

    clear_request_context()
    yield cap_logger
    clear_request_context()
    structlog.configure(**old_config)


def _last_entry(capturing_logger: CapturingLogger) -> dict:
    structlog.get_logger().info("test message")
    return capturing_logger.calls[-1].kwargs


def test_bind_request_context(capturing_logger):
    bind_request_context("test-request-123")
    assert _last_entry(capturing_logger)["request_id"] == "test-request-123"


def test_bind_request_context_with_none(capturing_logger):
    bind_request_context(None)
    assert "request_id" not in _last_entry(capturing_logger)


def test_bind_principal_context_without_email(capturing_logger):
    """Emails stay out of logs unless log_user_emails is enabled."""
    principal_id, tenant_id = uuid7(), uuid7()

    bind_principal_context(principal_id, tenant_id, "owner@example.com")

    entry = _last_entry(capturing_logger)
    assert entry["principal_id"] == str(principal_id)
    assert entry["tenant_id"] == str(tenant_id)
    assert "principal_email" not in entry


def test_bind_principal_context_with_email_logging(capturing_logger, monkeypatch):
    monkeypatch.setattr(
        "src.tablehost.core.config.get_settings",
        lambda: SimpleNamespace(log_user_emails=True),
    )

    bind_principal_context(uuid7(), email="owner@example.com")

    entry = _last_entry(capturing_logger)
    assert entry["principal_email"] == "owner@example.com"
    assert "tenant_id" not in entry


def test_bind_provisioning_context(capturing_logger):
    attempt_id = uuid7()

    bind_provisioning_context(attempt_id, "key-1")

    entry = _last_entry(capturing_logger)
    assert entry["attempt_id"] == str(attempt_id)
    assert entry["idempotency_key"] == "key-1"


def test_clear_request_context(capturing_logger):
    bind_request_context("req-1")
    bind_principal_context(uuid7())

    clear_request_context()

    entry = _last_entry(capturing_logger)
    assert "request_id" not in entry
    assert "principal_id" not in entry
