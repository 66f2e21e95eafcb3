"""Tenant registry and the access mapping that drives row-level isolation."""

from datetime import datetime
from uuid import UUID, uuid7

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from src.tablehost.core.security.validators import MAX_TENANT_SLUG_LENGTH
from src.tablehost.models.base import utc_now
from src.tablehost.models.enums import AccessStatus, TenantPlan, TenantStatus


class Tenant(SQLModel, table=True):
    """A restaurant account.

    ``owner_id`` always references an existing identity-provider principal:
    the principal is created before this row is inserted.
    """

    __tablename__ = "tenants"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    name: str = Field(max_length=100, index=True)
    slug: str = Field(max_length=MAX_TENANT_SLUG_LENGTH, unique=True, index=True)
    email: str = Field(max_length=255, unique=True, index=True)
    owner_id: UUID = Field(index=True)
    plan: str = Field(default=TenantPlan.STARTER.value, max_length=20)
    timezone: str = Field(default="UTC", max_length=64)
    currency: str = Field(default="USD", max_length=3)
    status: str = Field(default=TenantStatus.PENDING.value, max_length=20)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_completed(self) -> bool:
        return self.status == TenantStatus.COMPLETED.value


class TenantAccess(SQLModel, table=True):
    """Grants a principal access to one tenant's rows."""

    __tablename__ = "tenant_access"
    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_tenant_access_user_tenant"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    user_id: UUID = Field(index=True)
    tenant_id: UUID = Field(foreign_key="public.tenants.id", ondelete="CASCADE", index=True)
    email: str = Field(max_length=255, index=True)
    status: str = Field(default=AccessStatus.PENDING.value, max_length=20)
    provisioned_by: UUID | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
