"""Row-level tenant isolation on widget tables

Revision ID: 004
Revises: 003
Create Date: 2026-09-01 00:30:00.000000

Creates the non-login role that principal-scoped sessions assume and enables
FORCE ROW LEVEL SECURITY with a single policy per tenant-scoped table. The
policy text comes from src.tablehost.core.isolation so runtime and schema agree.
"""

from collections.abc import Sequence

from alembic import op
from src.tablehost.core.config import get_settings
from src.tablehost.core.isolation import (
    TENANT_SCOPED_TABLES,
    disable_isolation_statements,
    enable_isolation_statements,
)

revision: str = "004"
down_revision: str | None = "003"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    role = get_settings().database_rls_role

    op.execute(
        f"""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = '{role}') THEN
                CREATE ROLE {role} NOLOGIN;
            END IF;
        END
        $$
        """
    )
    # Lets the pooled login role SET ROLE into it
    op.execute(f"GRANT {role} TO CURRENT_USER")
    op.execute(f"GRANT USAGE ON SCHEMA public TO {role}")
    op.execute(f"GRANT SELECT ON public.tenants, public.tenant_access TO {role}")

    for table in TENANT_SCOPED_TABLES:
        for statement in enable_isolation_statements(table, role):
            op.execute(statement)


def downgrade() -> None:
    role = get_settings().database_rls_role

    for table in TENANT_SCOPED_TABLES:
        for statement in disable_isolation_statements(table, role):
            op.execute(statement)

    op.execute(f"REVOKE SELECT ON public.tenants, public.tenant_access FROM {role}")
    op.execute(f"REVOKE USAGE ON SCHEMA public FROM {role}")
