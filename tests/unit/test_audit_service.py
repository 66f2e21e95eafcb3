"""Unit tests for AuditService."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid7

import pytest

from src.tablehost.core.audit_context import set_audit_context
from src.tablehost.models import AuditAction, AuditStatus
from src.tablehost.services.audit_service import AuditService

pytestmark = pytest.mark.unit


@pytest.fixture
def mock_audit_repo() -> MagicMock:
    repo = MagicMock()
    repo.add = MagicMock()
    return repo


@pytest.fixture
def mock_session() -> AsyncMock:
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def audit_service(mock_audit_repo, mock_session) -> AuditService:
    return AuditService(mock_audit_repo, mock_session)


def _added(repo: MagicMock):
    return repo.add.call_args[0][0]


class TestLogAction:
    """Tests for log_action method."""

    async def test_records_entry_and_commits(self, audit_service, mock_audit_repo, mock_session):
        result = await audit_service.log_action(
            AuditAction.TENANT_PROVISION, entity_type="tenant"
        )

        assert result is not None
        mock_audit_repo.add.assert_called_once()
        mock_session.commit.assert_awaited_once()

    async def test_records_actor_tenant_and_entity(self, audit_service, mock_audit_repo):
        actor_id, tenant_id, entity_id = uuid7(), uuid7(), uuid7()

        await audit_service.log_action(
            AuditAction.OWNER_EMAIL_CHANGE,
            entity_type="owner",
            entity_id=entity_id,
            actor_id=actor_id,
            tenant_id=tenant_id,
            changes={"email": {"old": "a@example.com", "new": "b@example.com"}},
        )

        entry = _added(mock_audit_repo)
        assert entry.action == "owner.email_change"
        assert entry.actor_id == actor_id
        assert entry.tenant_id == tenant_id
        assert entry.entity_id == entity_id
        assert entry.changes["email"]["new"] == "b@example.com"
        assert entry.status == "success"

    async def test_failure_status_and_truncated_error(self, audit_service, mock_audit_repo):
        await audit_service.log_action(
            AuditAction.OWNER_SETUP_LINK_RESEND,
            entity_type="owner",
            status=AuditStatus.FAILURE,
            error_message="x" * 2000,
        )

        entry = _added(mock_audit_repo)
        assert entry.status == "failure"
        assert len(entry.error_message) == 1000

    async def test_captures_request_context(self, audit_service, mock_audit_repo):
        set_audit_context(ip_address="192.168.1.1", user_agent="Mozilla/5.0", request_id="abc")

        await audit_service.log_action(AuditAction.TENANT_PROVISION, entity_type="tenant")

        entry = _added(mock_audit_repo)
        assert entry.ip_address == "192.168.1.1"
        assert entry.user_agent == "Mozilla/5.0"
        assert entry.request_id == "abc"

    async def test_without_request_context(self, audit_service, mock_audit_repo):
        await audit_service.log_action(AuditAction.TENANT_PROVISION, entity_type="tenant")

        entry = _added(mock_audit_repo)
        assert entry.ip_address is None
        assert entry.request_id is None

    async def test_accepts_string_action(self, audit_service, mock_audit_repo):
        await audit_service.log_action("custom.action", entity_type="custom")
        assert _added(mock_audit_repo).action == "custom.action"

    async def test_database_error_does_not_raise(self, audit_service, mock_session):
        mock_session.commit.side_effect = Exception("DB Error")

        result = await audit_service.log_action(
            AuditAction.TENANT_PROVISION, entity_type="tenant"
        )

        assert result is None
        mock_session.rollback.assert_awaited_once()


class TestListLogs:
    async def test_passes_filters_to_repository(self, audit_service, mock_audit_repo):
        mock_audit_repo.list_filtered = AsyncMock(return_value=([], None, False))
        tenant_id = uuid7()

        await audit_service.list_logs(
            cursor="abc", limit=25, tenant_id=tenant_id, action="tenant.provision"
        )

        mock_audit_repo.list_filtered.assert_awaited_once_with(
            cursor="abc",
            limit=25,
            tenant_id=tenant_id,
            actor_id=None,
            action="tenant.provision",
        )
