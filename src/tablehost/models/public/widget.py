"""Tenant-scoped widget tables. Row access is filtered by the isolation policy."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid7

from sqlalchemy import Column, Index, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.tablehost.models.base import utc_now
from src.tablehost.models.enums import WidgetType


class WidgetConfig(SQLModel, table=True):
    """Per-tenant widget configuration.

    ``configuration`` is validated against the versioned schema in
    ``schemas.widget`` before it is stored; ``version`` guards concurrent
    updates.
    """

    __tablename__ = "widget_configs"
    __table_args__ = (
        UniqueConstraint("tenant_id", "widget_type", name="uq_widget_configs_tenant_type"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    tenant_id: UUID = Field(foreign_key="public.tenants.id", ondelete="CASCADE", index=True)
    widget_type: str = Field(default=WidgetType.BOOKING.value, max_length=20)
    schema_version: int = Field(default=1)
    version: int = Field(default=1)
    configuration: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    )
    updated_by: UUID | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class WidgetEvent(SQLModel, table=True):
    """Append-only analytics event emitted by an embedded widget."""

    __tablename__ = "widget_events"
    __table_args__ = (
        Index("ix_widget_events_tenant_type_created", "tenant_id", "widget_type", "created_at"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    tenant_id: UUID = Field(foreign_key="public.tenants.id", ondelete="CASCADE")
    widget_type: str = Field(max_length=20)
    event_type: str = Field(max_length=30)
    session_id: str | None = Field(default=None, max_length=64)
    properties: dict[str, Any] | None = Field(default=None, sa_column=Column(JSONB, nullable=True))
    created_at: datetime = Field(default_factory=utc_now)


class WidgetDraft(SQLModel, table=True):
    """In-progress widget session state (e.g. a half-filled catering order)."""

    __tablename__ = "widget_drafts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "session_id", name="uq_widget_drafts_tenant_session"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    tenant_id: UUID = Field(foreign_key="public.tenants.id", ondelete="CASCADE", index=True)
    session_id: str = Field(max_length=64)
    widget_type: str = Field(default=WidgetType.CATERING.value, max_length=20)
    current_step: str | None = Field(default=None, max_length=50)
    draft_data: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    )
    version: int = Field(default=1)
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
