"""Repositories for tenants and access mappings."""

from typing import Any, cast
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.tablehost.core.isolation import ACCESS_GRANTING_STATUSES
from src.tablehost.models.base import utc_now
from src.tablehost.models.public import Tenant, TenantAccess
from src.tablehost.repositories.base import BaseRepository

_GRANTING = [status.value for status in ACCESS_GRANTING_STATUSES]


class TenantRepository(BaseRepository[Tenant]):
    model = Tenant

    async def get_by_slug(self, slug: str) -> Tenant | None:
        result = await self.session.execute(select(Tenant).where(Tenant.slug == slug))
        return result.scalar_one_or_none()

    async def exists_by_slug(self, slug: str) -> bool:
        return await self.get_by_slug(slug) is not None

    async def email_in_use(self, email: str, exclude_tenant_id: UUID | None = None) -> bool:
        query = select(Tenant.id).where(func.lower(Tenant.email) == email.lower())
        if exclude_tenant_id is not None:
            query = query.where(Tenant.id != exclude_tenant_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def get_owner_reference(self, tenant_id: UUID) -> tuple[UUID, str, str] | None:
        """(owner_id, slug, email) as stored, bypassing the identity map."""
        result = await self.session.execute(
            select(Tenant.owner_id, Tenant.slug, Tenant.email).where(Tenant.id == tenant_id)
        )
        row = result.first()
        return (row[0], row[1], row[2]) if row else None

    async def list_accessible_paginated(
        self, user_id: UUID, cursor: str | None, limit: int
    ) -> tuple[list[Tenant], str | None, bool]:
        """Tenants the principal can reach through an access mapping."""
        query = (
            select(Tenant)
            .join(TenantAccess, Tenant.id == TenantAccess.tenant_id)  # type: ignore[arg-type]
            .where(
                TenantAccess.user_id == user_id,
                TenantAccess.status.in_(_GRANTING),  # type: ignore[attr-defined]
                Tenant.is_active == True,  # noqa: E712
            )
        )
        return await self.paginate(query, cursor, limit, Tenant.created_at)

    async def set_status(self, tenant_id: UUID, status: str) -> bool:
        result = await self.session.execute(
            update(Tenant)
            .where(Tenant.id == tenant_id)  # type: ignore[arg-type]
            .values(status=status, updated_at=utc_now())
        )
        return (cast(CursorResult[Any], result).rowcount or 0) > 0

    async def update_email(self, tenant_id: UUID, email: str) -> None:
        await self.session.execute(
            update(Tenant)
            .where(Tenant.id == tenant_id)  # type: ignore[arg-type]
            .values(email=email, updated_at=utc_now())
        )

    async def delete_uncompleted(self, tenant_id: UUID) -> int:
        """Delete a tenant that never reached completed. Dependent rows cascade."""
        result = await self.session.execute(
            delete(Tenant).where(
                Tenant.id == tenant_id,  # type: ignore[arg-type]
                Tenant.status != "completed",  # type: ignore[arg-type]
            )
        )
        return cast(CursorResult[Any], result).rowcount or 0


class TenantAccessRepository(BaseRepository[TenantAccess]):
    model = TenantAccess

    async def get_for(self, user_id: UUID, tenant_id: UUID) -> TenantAccess | None:
        result = await self.session.execute(
            select(TenantAccess).where(
                TenantAccess.user_id == user_id,
                TenantAccess.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def has_access(self, user_id: UUID, tenant_id: UUID) -> bool:
        access = await self.get_for(user_id, tenant_id)
        return access is not None and access.status in _GRANTING

    async def email_in_use(self, email: str, exclude_user_id: UUID | None = None) -> bool:
        query = select(TenantAccess.id).where(func.lower(TenantAccess.email) == email.lower())
        if exclude_user_id is not None:
            query = query.where(TenantAccess.user_id != exclude_user_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def set_status_for_tenant(self, tenant_id: UUID, status: str) -> None:
        await self.session.execute(
            update(TenantAccess)
            .where(TenantAccess.tenant_id == tenant_id)  # type: ignore[arg-type]
            .values(status=status)
        )

    async def update_email_for_user(self, user_id: UUID, email: str) -> None:
        await self.session.execute(
            update(TenantAccess)
            .where(TenantAccess.user_id == user_id)  # type: ignore[arg-type]
            .values(email=email)
        )

