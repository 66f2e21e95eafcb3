"""Tenants, access mapping, profiles and employees

Revision ID: 001
Revises:
Create Date: 2026-09-01 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Tenants
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("slug", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column(
            "plan",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="starter",
        ),
        sa.Column(
            "timezone",
            sqlmodel.sql.sqltypes.AutoString(length=64),
            nullable=False,
            server_default="UTC",
        ),
        sa.Column(
            "currency",
            sqlmodel.sql.sqltypes.AutoString(length=3),
            nullable=False,
            server_default="USD",
        ),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "slug ~ '^[a-z0-9]+(-[a-z0-9]+)*$' AND length(slug) >= 3",
            name="ck_tenants_slug_format",
        ),
        sa.CheckConstraint("email = lower(email)", name="ck_tenants_email_lowercase"),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'failed')",
            name="ck_tenants_status",
        ),
        schema="public",
    )
    op.create_index("ix_tenants_name", "tenants", ["name"], schema="public")
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True, schema="public")
    op.create_index("ix_tenants_email", "tenants", ["email"], unique=True, schema="public")
    op.create_index("ix_tenants_owner_id", "tenants", ["owner_id"], schema="public")

    # 2. Access mapping (drives row-level isolation)
    op.create_table(
        "tenant_access",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("provisioned_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["public.tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "tenant_id", name="uq_tenant_access_user_tenant"),
        schema="public",
    )
    op.create_index("ix_tenant_access_user_id", "tenant_access", ["user_id"], schema="public")
    op.create_index("ix_tenant_access_tenant_id", "tenant_access", ["tenant_id"], schema="public")
    op.create_index("ix_tenant_access_email", "tenant_access", ["email"], schema="public")

    # 3. Profiles
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("full_name", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=True),
        sa.Column(
            "role",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="owner",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"], unique=True, schema="public")
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True, schema="public")

    # 4. Employees (platform staff)
    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column(
            "role",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="SUPPORT",
        ),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="ACTIVE",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index("ix_employees_user_id", "employees", ["user_id"], unique=True, schema="public")
    op.create_index("ix_employees_email", "employees", ["email"], unique=True, schema="public")


def downgrade() -> None:
    op.drop_table("employees", schema="public")
    op.drop_table("profiles", schema="public")
    op.drop_table("tenant_access", schema="public")
    op.drop_table("tenants", schema="public")
