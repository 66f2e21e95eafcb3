"""Widget configs, events and drafts

Revision ID: 003
Revises: 002
Create Date: 2026-09-01 00:20:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "widget_configs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("widget_type", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("schema_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "configuration",
            JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["public.tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "widget_type", name="uq_widget_configs_tenant_type"),
        sa.CheckConstraint(
            "widget_type IN ('booking', 'catering')", name="ck_widget_configs_widget_type"
        ),
        schema="public",
    )
    op.create_index(
        "ix_widget_configs_tenant_id", "widget_configs", ["tenant_id"], schema="public"
    )

    op.create_table(
        "widget_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("widget_type", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("event_type", sqlmodel.sql.sqltypes.AutoString(length=30), nullable=False),
        sa.Column("session_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("properties", JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["public.tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        "ix_widget_events_tenant_type_created",
        "widget_events",
        ["tenant_id", "widget_type", "created_at"],
        schema="public",
    )

    op.create_table(
        "widget_drafts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("session_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column("widget_type", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("current_step", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column(
            "draft_data",
            JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["public.tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "session_id", name="uq_widget_drafts_tenant_session"),
        schema="public",
    )
    op.create_index("ix_widget_drafts_tenant_id", "widget_drafts", ["tenant_id"], schema="public")
    op.create_index(
        "ix_widget_drafts_expires_at", "widget_drafts", ["expires_at"], schema="public"
    )


def downgrade() -> None:
    op.drop_table("widget_drafts", schema="public")
    op.drop_table("widget_events", schema="public")
    op.drop_table("widget_configs", schema="public")
