"""Tenant lookup service."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.models import Tenant
from src.tablehost.repositories import TenantRepository


class TenantService:
    def __init__(self, tenant_repo: TenantRepository, session: AsyncSession):
        self.tenant_repo = tenant_repo
        self.session = session

    async def list_accessible(
        self, principal_id: UUID, cursor: str | None, limit: int
    ) -> tuple[list[Tenant], str | None, bool]:
        """List tenants the principal has an access mapping for.

        Args:
            principal_id: Identity-provider id of the caller
            cursor: Optional cursor for pagination
            limit: Maximum number of results

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        return await self.tenant_repo.list_accessible_paginated(principal_id, cursor, limit)

    async def get_by_slug(self, slug: str) -> Tenant | None:
        return await self.tenant_repo.get_by_slug(slug)
