"""Idempotency records and the append-only provisioning audit trail."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid7

from sqlalchemy import Column, Index, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.tablehost.core.security.validators import MAX_TENANT_SLUG_LENGTH
from src.tablehost.models.base import utc_now
from src.tablehost.models.enums import ProvisioningStatus

TERMINAL_STAGE_PREDICATE = "stage IN ('completed', 'failed', 'rolled_back')"


class ProvisioningRequest(SQLModel, table=True):
    """One provisioning attempt, keyed by the client's idempotency key.

    ``holds_reservation`` is true while the attempt owns its slug and email;
    partial unique indexes make that reservation atomic across concurrent
    attempts.
    """

    __tablename__ = "provisioning_requests"
    __table_args__ = (
        Index(
            "uq_provisioning_requests_reserved_slug",
            "slug",
            unique=True,
            postgresql_where=text("holds_reservation"),
        ),
        Index(
            "uq_provisioning_requests_reserved_email",
            "email",
            unique=True,
            postgresql_where=text("holds_reservation"),
        ),
        Index("ix_provisioning_requests_status_created", "status", "created_at"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    idempotency_key: str = Field(max_length=255, unique=True, index=True)
    actor_id: UUID = Field(index=True)
    slug: str = Field(max_length=MAX_TENANT_SLUG_LENGTH)
    email: str = Field(max_length=255)
    plan: str = Field(max_length=20)
    request_data: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    )
    status: str = Field(default=ProvisioningStatus.PROCESSING.value, max_length=20)
    holds_reservation: bool = Field(default=False)

    tenant_id: UUID | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)
    response: dict[str, Any] | None = Field(default=None, sa_column=Column(JSONB, nullable=True))

    error_code: str | None = Field(default=None, max_length=50)
    error_message: str | None = Field(default=None, max_length=1000)
    retryable: bool = Field(default=False)

    requires_manual_cleanup: bool = Field(default=False)
    orphaned_owner_id: UUID | None = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    completed_at: datetime | None = Field(default=None)

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            ProvisioningStatus.COMPLETED.value,
            ProvisioningStatus.FAILED.value,
        )


class ProvisioningAuditRecord(SQLModel, table=True):
    """One stage of one provisioning attempt.

    ``attempt_id`` intentionally has no foreign key: the trail outlives
    pruned idempotency records.
    """

    __tablename__ = "provisioning_audit"
    __table_args__ = (
        UniqueConstraint("attempt_id", "sequence", name="uq_provisioning_audit_attempt_sequence"),
        Index(
            "uq_provisioning_audit_one_terminal",
            "attempt_id",
            unique=True,
            postgresql_where=text(TERMINAL_STAGE_PREDICATE),
        ),
        Index("ix_provisioning_audit_tenant_created", "tenant_id", "created_at"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    attempt_id: UUID = Field(index=True)
    idempotency_key: str = Field(max_length=255)
    actor_id: UUID | None = Field(default=None)
    tenant_id: UUID | None = Field(default=None)
    stage: str = Field(max_length=30)
    sequence: int
    error_code: str | None = Field(default=None, max_length=50)
    error_message: str | None = Field(default=None, max_length=1000)
    details: dict[str, Any] | None = Field(default=None, sa_column=Column(JSONB, nullable=True))
    request_id: str | None = Field(default=None, max_length=36)
    created_at: datetime = Field(default_factory=utc_now)
