"""Tenant access dependencies for principal-facing tenant routes."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.api.dependencies.auth import CurrentPrincipal
from src.tablehost.api.dependencies.db import DBSession
from src.tablehost.core.db import get_session
from src.tablehost.core.logging import bind_principal_context
from src.tablehost.models import Tenant
from src.tablehost.repositories import TenantAccessRepository, TenantRepository


async def get_scoped_db_session(principal: CurrentPrincipal) -> AsyncGenerator[AsyncSession]:
    """Session whose tenant-scoped tables only show the principal's tenants."""
    async with get_session(principal_id=principal.id) as session:
        yield session


ScopedDBSession = Annotated[AsyncSession, Depends(get_scoped_db_session)]


async def get_accessible_tenant(
    tenant_id: Annotated[UUID, Path()],
    principal: CurrentPrincipal,
    session: DBSession,
) -> Tenant:
    """Resolve the path tenant if the principal has an access mapping for it.

    Missing and inaccessible tenants both answer 404.
    """
    tenant = await TenantRepository(session).get_by_id(tenant_id)
    if tenant is None or not await TenantAccessRepository(session).has_access(
        principal.id, tenant_id
    ):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found",
        )

    if not tenant.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant is inactive",
        )

    bind_principal_context(principal.id, tenant.id)
    return tenant


AccessibleTenant = Annotated[Tenant, Depends(get_accessible_tenant)]
