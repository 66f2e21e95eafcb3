"""Provisioning API schemas.

The provisioning endpoint speaks camelCase (``idempotencyKey``,
``setupLinkSent``) to match the admin dashboard client.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from src.tablehost.core.security.validators import (
    normalize_email,
    normalize_slug,
    validate_tenant_slug_format,
)
from src.tablehost.models.enums import TenantPlan

_CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProvisionTenantRequest(BaseModel):
    model_config = _CAMEL_CONFIG

    slug: str = Field(
        min_length=1,
        max_length=100,
        json_schema_extra={"examples": ["acme-bistro"]},
    )
    email: EmailStr
    plan: TenantPlan = TenantPlan.STARTER
    idempotency_key: str = Field(min_length=1, max_length=255)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    owner_name: str | None = Field(default=None, max_length=200)
    timezone: str = Field(default="UTC", max_length=64)
    currency: str = Field(default="USD", min_length=3, max_length=3)

    @field_validator("slug")
    @classmethod
    def normalize_and_validate_slug(cls, v: str) -> str:
        return validate_tenant_slug_format(normalize_slug(v))

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("currency")
    @classmethod
    def uppercase_currency(cls, v: str) -> str:
        return v.upper()

    @property
    def display_name(self) -> str:
        return self.name or self.slug.replace("-", " ").title()


class ProvisionTenantResponse(BaseModel):
    """Provisioning result. Never carries a credential."""

    model_config = _CAMEL_CONFIG

    tenant_id: UUID
    slug: str
    status: str
    setup_link_sent: bool = True
    replayed: bool = False


class ProvisioningAuditRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attempt_id: UUID
    sequence: int
    stage: str
    tenant_id: UUID | None
    error_code: str | None
    error_message: str | None
    details: dict[str, Any] | None
    request_id: str | None
    created_at: datetime


class ProvisioningCleanupItem(BaseModel):
    """A failed attempt whose identity principal could not be removed."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    idempotency_key: str
    slug: str
    email: str
    orphaned_owner_id: UUID | None
    error_code: str | None
    error_message: str | None
    created_at: datetime
    completed_at: datetime | None
