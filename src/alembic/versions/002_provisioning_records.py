"""Provisioning idempotency records and audit trail

Revision ID: 002
Revises: 001
Create Date: 2026-09-01 00:10:00.000000

Partial unique indexes on (slug) and (email) WHERE holds_reservation make the
slug/email reservation atomic across concurrent attempts. A second partial
unique index allows at most one terminal stage per attempt.
"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "provisioning_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "idempotency_key", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False
        ),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("slug", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("plan", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column(
            "request_data",
            JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="processing",
        ),
        sa.Column(
            "holds_reservation", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("tenant_id", sa.Uuid(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        sa.Column("response", JSONB(), nullable=True),
        sa.Column("error_code", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column("error_message", sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=True),
        sa.Column("retryable", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "requires_manual_cleanup",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("orphaned_owner_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('processing', 'completed', 'failed')",
            name="ck_provisioning_requests_status",
        ),
        schema="public",
    )
    op.create_index(
        "ix_provisioning_requests_idempotency_key",
        "provisioning_requests",
        ["idempotency_key"],
        unique=True,
        schema="public",
    )
    op.create_index(
        "ix_provisioning_requests_actor_id",
        "provisioning_requests",
        ["actor_id"],
        schema="public",
    )
    op.create_index(
        "ix_provisioning_requests_status_created",
        "provisioning_requests",
        ["status", "created_at"],
        schema="public",
    )
    op.execute(
        """
        CREATE UNIQUE INDEX uq_provisioning_requests_reserved_slug
        ON public.provisioning_requests (slug)
        WHERE holds_reservation
        """
    )
    op.execute(
        """
        CREATE UNIQUE INDEX uq_provisioning_requests_reserved_email
        ON public.provisioning_requests (email)
        WHERE holds_reservation
        """
    )

    op.create_table(
        "provisioning_audit",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("attempt_id", sa.Uuid(), nullable=False),
        sa.Column(
            "idempotency_key", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False
        ),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("tenant_id", sa.Uuid(), nullable=True),
        sa.Column("stage", sqlmodel.sql.sqltypes.AutoString(length=30), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("error_code", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column("error_message", sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=True),
        sa.Column("details", JSONB(), nullable=True),
        sa.Column("request_id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "attempt_id", "sequence", name="uq_provisioning_audit_attempt_sequence"
        ),
        sa.CheckConstraint(
            "stage IN ('initiated', 'auth_user_created', 'database_updated', "
            "'completed', 'failed', 'rolled_back')",
            name="ck_provisioning_audit_stage",
        ),
        schema="public",
    )
    op.create_index(
        "ix_provisioning_audit_attempt_id", "provisioning_audit", ["attempt_id"], schema="public"
    )
    op.create_index(
        "ix_provisioning_audit_tenant_created",
        "provisioning_audit",
        ["tenant_id", "created_at"],
        schema="public",
    )
    op.execute(
        """
        CREATE UNIQUE INDEX uq_provisioning_audit_one_terminal
        ON public.provisioning_audit (attempt_id)
        WHERE stage IN ('completed', 'failed', 'rolled_back')
        """
    )


def downgrade() -> None:
    op.drop_table("provisioning_audit", schema="public")
    op.drop_table("provisioning_requests", schema="public")
