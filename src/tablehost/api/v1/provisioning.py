"""Tenant provisioning endpoints - platform admins only."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.tablehost.api.dependencies import PlatformAdmin, ProvisioningServiceDep
from src.tablehost.schemas.pagination import PaginatedResponse
from src.tablehost.schemas.provisioning import (
    ProvisioningAuditRead,
    ProvisioningCleanupItem,
    ProvisionTenantRequest,
    ProvisionTenantResponse,
)

router = APIRouter(prefix="/provisioning", tags=["provisioning"])

_ERROR_EXAMPLE = {
    "code": "SLUG_UNAVAILABLE",
    "message": "This tenant slug is already taken",
    "retryable": False,
    "request_id": "0b0e7c5e-5a3b-4c39-9d0c-6d1f3c1b9a10",
}


@router.post(
    "/tenants",
    response_model=ProvisionTenantResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {
            "description": "Tenant provisioned (or replayed for a known idempotency key)",
            "content": {
                "application/json": {
                    "example": {
                        "tenantId": "0192b3c4-5d6e-7f80-9a1b-2c3d4e5f6a7b",
                        "slug": "acme-bistro",
                        "status": "completed",
                        "setupLinkSent": True,
                        "replayed": False,
                    }
                }
            },
        },
        409: {
            "description": "Slug or email unavailable, or key still in progress",
            "content": {"application/json": {"example": _ERROR_EXAMPLE}},
        },
        422: {"description": "Reserved slug or email, reused idempotency key"},
        503: {"description": "Transient dependency failure, retry with a new idempotency key"},
    },
)
async def provision_tenant(
    request: ProvisionTenantRequest,
    admin: PlatformAdmin,
    service: ProvisioningServiceDep,
) -> ProvisionTenantResponse:
    """Provision a tenant with its owner account.

    Either the tenant, owner principal, access mapping and default widget
    configuration all exist afterwards, or none of them do. The owner gets a
    setup link by email; no password is ever set or returned.

    Repeating a request with the same `idempotencyKey` returns the original
    outcome, including a stored failure. After a retryable failure, retry with
    a new idempotency key.
    """
    return await service.provision(request, actor_id=admin.user_id)


@router.get(
    "/cleanup-queue",
    response_model=PaginatedResponse[ProvisioningCleanupItem],
    responses={200: {"description": "Attempts flagged for manual cleanup"}},
)
async def list_cleanup_queue(
    _: PlatformAdmin,
    service: ProvisioningServiceDep,
    cursor: Annotated[str | None, Query(description="Pagination cursor")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 50,
) -> PaginatedResponse[ProvisioningCleanupItem]:
    """List failed attempts whose rollback could not remove everything."""
    items, next_cursor, has_more = await service.list_cleanup_queue(cursor, limit)
    return PaginatedResponse(
        items=[ProvisioningCleanupItem.model_validate(item) for item in items],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/{attempt_id}/audit",
    response_model=list[ProvisioningAuditRead],
    responses={404: {"description": "Unknown attempt"}},
)
async def get_audit_trail(
    attempt_id: UUID,
    _: PlatformAdmin,
    service: ProvisioningServiceDep,
) -> list[ProvisioningAuditRead]:
    """Stage trail of one provisioning attempt, in order."""
    records = await service.get_audit_trail(attempt_id)
    return [ProvisioningAuditRead.model_validate(record) for record in records]
