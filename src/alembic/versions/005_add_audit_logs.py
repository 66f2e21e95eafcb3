"""Add audit_logs table

Revision ID: 005
Revises: 004
Create Date: 2026-09-01 00:40:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

revision: str = "005"
down_revision: str | None = "004"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=True),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=True),
        sa.Column("changes", JSONB(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("request_id", sa.String(length=36), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="success"),
        sa.Column("error_message", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )

    # No FK on tenant_id: entries survive rolled-back tenants
    op.create_index("ix_audit_logs_tenant_id", "audit_logs", ["tenant_id"], schema="public")
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"], schema="public")
    op.create_index(
        "ix_audit_logs_tenant_created",
        "audit_logs",
        ["tenant_id", "created_at"],
        schema="public",
    )
    op.create_index(
        "ix_audit_logs_actor_created",
        "audit_logs",
        ["actor_id", "created_at"],
        schema="public",
    )
    op.create_index(
        "ix_audit_logs_action_created",
        "audit_logs",
        ["action", "created_at"],
        schema="public",
    )


def downgrade() -> None:
    op.drop_index("ix_audit_logs_action_created", "audit_logs", schema="public")
    op.drop_index("ix_audit_logs_actor_created", "audit_logs", schema="public")
    op.drop_index("ix_audit_logs_tenant_created", "audit_logs", schema="public")
    op.drop_index("ix_audit_logs_actor_id", "audit_logs", schema="public")
    op.drop_index("ix_audit_logs_tenant_id", "audit_logs", schema="public")
    op.drop_table("audit_logs", schema="public")
