"""Owner credential endpoints - platform admins only.

No endpoint here sets or reveals a password: owners choose their own
through the emailed setup link.
"""

from uuid import UUID

from fastapi import APIRouter

from src.tablehost.api.dependencies import CredentialServiceDep, PlatformAdmin
from src.tablehost.schemas.credential import (
    OwnerEmailUpdate,
    OwnerEmailUpdateResponse,
    OwnerSetupLinkResponse,
)

router = APIRouter(prefix="/tenants/{tenant_id}/owner", tags=["credentials"])


@router.post(
    "/setup-link",
    response_model=OwnerSetupLinkResponse,
    responses={
        404: {"description": "Tenant not found or not provisioned"},
        503: {"description": "Setup link could not be sent, retry later"},
    },
)
async def resend_setup_link(
    tenant_id: UUID,
    admin: PlatformAdmin,
    service: CredentialServiceDep,
) -> OwnerSetupLinkResponse:
    """Email the tenant owner a new setup link."""
    return await service.resend_setup_link(tenant_id, actor_id=admin.user_id)


@router.patch(
    "/email",
    response_model=OwnerEmailUpdateResponse,
    responses={
        404: {"description": "Tenant not found or not provisioned"},
        409: {"description": "Email already in use"},
        422: {"description": "Email domain is reserved"},
    },
)
async def change_owner_email(
    tenant_id: UUID,
    request: OwnerEmailUpdate,
    admin: PlatformAdmin,
    service: CredentialServiceDep,
) -> OwnerEmailUpdateResponse:
    """Change the owner's login and contact email, then send a setup link to it."""
    return await service.change_owner_email(tenant_id, request.email, actor_id=admin.user_id)
