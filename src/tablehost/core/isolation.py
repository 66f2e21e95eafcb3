"""Row-level tenant isolation.

Tenant-scoped tables are protected by PostgreSQL row-level security. A row is
visible (and writable) when its ``tenant_id`` appears in ``tenant_access`` for
the requesting principal with an access-granting status. The database
evaluates the policy; application queries never add tenant filters of their
own.

Two connection-level settings drive the policy:

- ``app.current_user_id``: principal id for scoped sessions.
- ``app.rls_bypass``: ``on`` for service sessions (provisioning, public
  ingestion, maintenance) that must see every tenant.

Principal-scoped sessions additionally ``SET ROLE`` to a non-login role so
the policy applies even when the pool connects as a superuser or table owner.
"""

from typing import Final
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from src.tablehost.models.enums import AccessStatus

CURRENT_PRINCIPAL_SETTING: Final[str] = "app.current_user_id"
RLS_BYPASS_SETTING: Final[str] = "app.rls_bypass"
POLICY_NAME: Final[str] = "tenant_isolation"

# PENDING grants access so an owner is not locked out between the tenant insert
# and the final status flip.
ACCESS_GRANTING_STATUSES: Final[tuple[AccessStatus, ...]] = (
    AccessStatus.PENDING,
    AccessStatus.COMPLETED,
)

TENANT_SCOPED_TABLES: Final[tuple[str, ...]] = (
    "widget_configs",
    "widget_events",
    "widget_drafts",
)


def tenant_visibility_predicate() -> str:
    """SQL boolean expression used for both USING and WITH CHECK."""
    statuses = ", ".join(f"'{status.value}'" for status in ACCESS_GRANTING_STATUSES)
    principal = f"NULLIF(current_setting('{CURRENT_PRINCIPAL_SETTING}', true), '')::uuid"
    return (
        f"current_setting('{RLS_BYPASS_SETTING}', true) = 'on' "
        "OR tenant_id IN ("
        "SELECT ta.tenant_id FROM public.tenant_access ta "
        f"WHERE ta.user_id = {principal} "
        f"AND ta.status IN ({statuses}))"
    )


def enable_isolation_statements(table: str, role: str) -> list[str]:
    """DDL that turns on row-level security for one tenant-scoped table."""
    predicate = tenant_visibility_predicate()
    return [
        f"ALTER TABLE public.{table} ENABLE ROW LEVEL SECURITY",
        f"ALTER TABLE public.{table} FORCE ROW LEVEL SECURITY",
        f"DROP POLICY IF EXISTS {POLICY_NAME} ON public.{table}",
        (
            f"CREATE POLICY {POLICY_NAME} ON public.{table} "
            f"USING ({predicate}) WITH CHECK ({predicate})"
        ),
        f"GRANT SELECT, INSERT, UPDATE, DELETE ON public.{table} TO {role}",
    ]


def disable_isolation_statements(table: str, role: str) -> list[str]:
    return [
        f"REVOKE ALL ON public.{table} FROM {role}",
        f"DROP POLICY IF EXISTS {POLICY_NAME} ON public.{table}",
        f"ALTER TABLE public.{table} NO FORCE ROW LEVEL SECURITY",
        f"ALTER TABLE public.{table} DISABLE ROW LEVEL SECURITY",
    ]


async def apply_principal_scope(
    connection: AsyncConnection,
    principal_id: UUID,
    role: str,
) -> None:
    """Scope a pooled connection to one principal."""
    await _set(connection, RLS_BYPASS_SETTING, "off")
    await _set(connection, CURRENT_PRINCIPAL_SETTING, str(principal_id))
    quoted_role = await connection.scalar(text("SELECT quote_ident(:role)").bindparams(role=role))
    await connection.execute(text(f"SET ROLE {quoted_role}"))


async def apply_service_scope(connection: AsyncConnection) -> None:
    """Let a trusted service session see every tenant."""
    await _set(connection, CURRENT_PRINCIPAL_SETTING, "")
    await _set(connection, RLS_BYPASS_SETTING, "on")


async def reset_scope(connection: AsyncConnection) -> None:
    """Undo any scope before the connection returns to the pool."""
    await connection.execute(text("RESET ROLE"))
    await _set(connection, CURRENT_PRINCIPAL_SETTING, "")
    await _set(connection, RLS_BYPASS_SETTING, "off")


async def _set(connection: AsyncConnection, name: str, value: str) -> None:
    await connection.execute(
        text("SELECT set_config(:name, :value, false)").bindparams(name=name, value=value)
    )
