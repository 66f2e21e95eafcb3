from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class TenantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    email: str
    owner_id: UUID
    plan: str
    timezone: str
    currency: str
    status: str
    is_active: bool
    created_at: datetime


class TenantStatusResponse(BaseModel):
    """Provisioning status of a tenant: pending, completed or failed."""

    tenant_id: UUID
    slug: str
    status: str
    is_active: bool
