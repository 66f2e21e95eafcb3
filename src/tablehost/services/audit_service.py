"""Audit logging service - records administrative actions on tenants."""

import contextlib
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.audit_context import get_audit_context
from src.tablehost.core.logging import get_logger
from src.tablehost.models import AuditAction, AuditLog, AuditStatus
from src.tablehost.repositories import AuditLogRepository

logger = get_logger(__name__)


class AuditService:
    """Service for recording audit logs.

    Fire-and-forget design: logging failures should not block business operations.
    """

    def __init__(self, audit_repo: AuditLogRepository, session: AsyncSession):
        self.audit_repo = audit_repo
        self.session = session

    async def log_action(
        self,
        action: AuditAction | str,
        entity_type: str,
        entity_id: UUID | None = None,
        actor_id: UUID | None = None,
        tenant_id: UUID | None = None,
        changes: dict[str, Any] | None = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        error_message: str | None = None,
    ) -> AuditLog | None:
        """Record an audit log entry.

        Request metadata (IP, user agent, request_id) comes from the audit
        context. Failures are logged but do not raise exceptions.

        Args:
            action: The action being performed (AuditAction enum or string)
            entity_type: Type of entity affected (e.g., "tenant", "owner")
            entity_id: ID of the affected entity
            actor_id: Principal performing the action
            tenant_id: Tenant the action concerns
            changes: Dictionary of changes for update operations
            status: Success or failure status
            error_message: Error details if status is failure

        Returns:
            The created AuditLog, or None if logging failed
        """
        action_value = action.value if isinstance(action, AuditAction) else action
        try:
            ctx = get_audit_context()

            audit_log = AuditLog(
                tenant_id=tenant_id,
                actor_id=actor_id,
                action=action_value,
                entity_type=entity_type,
                entity_id=entity_id,
                changes=changes,
                ip_address=ctx.ip_address if ctx else None,
                user_agent=ctx.user_agent if ctx else None,
                request_id=ctx.request_id if ctx else None,
                status=status.value if isinstance(status, AuditStatus) else status,
                error_message=error_message[:1000] if error_message else None,
            )

            self.audit_repo.add(audit_log)
            await self.session.commit()

            logger.debug(
                "Audit log recorded",
                action=audit_log.action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id else None,
            )
            return audit_log

        except Exception as e:
            logger.warning(
                "Failed to record audit log",
                action=action_value,
                entity_type=entity_type,
                error=str(e),
            )
            # The audit session is isolated from business transactions
            with contextlib.suppress(Exception):
                await self.session.rollback()
            return None

    async def list_logs(
        self,
        cursor: str | None = None,
        limit: int = 50,
        tenant_id: UUID | None = None,
        actor_id: UUID | None = None,
        action: str | None = None,
    ) -> tuple[list[AuditLog], str | None, bool]:
        return await self.audit_repo.list_filtered(
            cursor=cursor,
            limit=limit,
            tenant_id=tenant_id,
            actor_id=actor_id,
            action=action,
        )
