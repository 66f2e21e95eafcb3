"""Repository for AuditLog entity."""

from uuid import UUID

from sqlmodel import select

from src.tablehost.models.public import AuditLog
from src.tablehost.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    model = AuditLog

    async def list_filtered(
        self,
        cursor: str | None = None,
        limit: int = 50,
        tenant_id: UUID | None = None,
        actor_id: UUID | None = None,
        action: str | None = None,
    ) -> tuple[list[AuditLog], str | None, bool]:
        """List audit logs, newest first, with optional filters.

        Args:
            cursor: Pagination cursor
            limit: Maximum items to return
            tenant_id: Only entries about this tenant
            actor_id: Only entries by this principal
            action: Only this action type

        Returns:
            Tuple of (logs, next_cursor, has_more)
        """
        query = select(AuditLog)
        if tenant_id:
            query = query.where(AuditLog.tenant_id == tenant_id)
        if actor_id:
            query = query.where(AuditLog.actor_id == actor_id)
        if action:
            query = query.where(AuditLog.action == action)
        return await self.paginate(query, cursor, limit, AuditLog.created_at)
