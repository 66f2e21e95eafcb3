"""Tenant lookup endpoints."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.tablehost.api.dependencies import CurrentPrincipal, PlatformAdmin, TenantServiceDep
from src.tablehost.schemas.pagination import PaginatedResponse
from src.tablehost.schemas.tenant import TenantRead, TenantStatusResponse

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get(
    "",
    response_model=PaginatedResponse[TenantRead],
    responses={
        200: {
            "description": "Paginated list of tenants",
            "content": {
                "application/json": {
                    "example": {
                        "items": [
                            {
                                "id": "0192b3c4-5d6e-7f80-9a1b-2c3d4e5f6a7b",
                                "name": "Acme Bistro",
                                "slug": "acme-bistro",
                                "status": "completed",
                            }
                        ],
                        "next_cursor": "MjAyNi0wMS0yMFQxNDo0NTowMC4wMDAwMDA=",
                        "has_more": True,
                    }
                }
            },
        }
    },
)
async def list_tenants(
    principal: CurrentPrincipal,
    service: TenantServiceDep,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Number of items per page")] = 50,
) -> PaginatedResponse[TenantRead]:
    """List tenants the caller has access to.

    Pass the `next_cursor` from a response to get the next page.
    """
    tenants, next_cursor, has_more = await service.list_accessible(principal.id, cursor, limit)
    return PaginatedResponse(
        items=[TenantRead.model_validate(t) for t in tenants],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/{slug}/status",
    response_model=TenantStatusResponse,
    responses={
        200: {
            "description": "Tenant provisioning status",
            "content": {
                "application/json": {
                    "example": {
                        "tenant_id": "0192b3c4-5d6e-7f80-9a1b-2c3d4e5f6a7b",
                        "slug": "acme-bistro",
                        "status": "completed",
                        "is_active": True,
                    }
                }
            },
        },
        404: {"description": "Tenant not found"},
    },
)
async def get_tenant_status(
    slug: str,
    _: PlatformAdmin,
    service: TenantServiceDep,
) -> TenantStatusResponse:
    """
    Check tenant provisioning status.

    Returns:
    - pending: Provisioning is in progress
    - completed: Tenant is ready to use
    - failed: Provisioning failed
    """
    tenant = await service.get_by_slug(slug)
    if tenant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant '{slug}' not found",
        )

    return TenantStatusResponse(
        tenant_id=tenant.id,
        slug=tenant.slug,
        status=tenant.status,
        is_active=tenant.is_active,
    )


@router.get(
    "/{slug}",
    response_model=TenantRead,
    responses={404: {"description": "Tenant not found"}},
)
async def get_tenant(slug: str, _: PlatformAdmin, service: TenantServiceDep) -> TenantRead:
    """Get tenant by slug."""
    tenant = await service.get_by_slug(slug)
    if tenant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant '{slug}' not found",
        )
    return TenantRead.model_validate(tenant)
