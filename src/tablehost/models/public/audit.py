"""Audit log model for administrative actions on tenants."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid7

from sqlalchemy import Column, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.tablehost.models.base import utc_now


class AuditAction(str, Enum):
    """Audit action types for type-safe logging."""

    # Owner credentials
    OWNER_SETUP_LINK_RESEND = "owner.setup_link_resend"
    OWNER_EMAIL_CHANGE = "owner.email_change"

    # Tenant
    TENANT_PROVISION = "tenant.provision"

    # Widgets
    WIDGET_CONFIG_UPDATE = "widget_config.update"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class AuditLog(SQLModel, table=True):
    """Who did what to which tenant, with request metadata."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_tenant_created", "tenant_id", "created_at"),
        Index("ix_audit_logs_actor_created", "actor_id", "created_at"),
        Index("ix_audit_logs_action_created", "action", "created_at"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)

    tenant_id: UUID | None = Field(default=None, index=True)
    actor_id: UUID | None = Field(default=None, index=True)

    action: str = Field(max_length=50)
    entity_type: str = Field(max_length=50)  # "tenant", "owner", "widget_config"
    entity_id: UUID | None = Field(default=None)

    changes: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSONB, nullable=True),
    )

    # Request metadata
    ip_address: str | None = Field(max_length=45, default=None)
    user_agent: str | None = Field(max_length=500, default=None)
    request_id: str | None = Field(max_length=36, default=None)

    status: str = Field(default=AuditStatus.SUCCESS.value, max_length=20)
    error_message: str | None = Field(max_length=1000, default=None)

    created_at: datetime = Field(default_factory=utc_now)
