"""Database session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.tablehost.core.config import get_settings
from src.tablehost.core.db.engine import get_engine
from src.tablehost.core.isolation import apply_principal_scope, apply_service_scope, reset_scope


@asynccontextmanager
async def get_session(
    principal_id: UUID | None = None,
    engine: AsyncEngine | None = None,
) -> AsyncGenerator[AsyncSession]:
    """Create a database session, optionally scoped to one principal.

    Args:
        principal_id: If provided, tenant-scoped tables only show rows of
                      tenants this principal has access to. If None, the
                      session is a service session that sees every tenant.
        engine: Optional engine override for testing.

    Yields:
        AsyncSession bound to a connection carrying the isolation scope.
    """
    if engine is None:
        engine = get_engine()

    async with engine.connect() as connection:
        try:
            if principal_id is not None:
                await apply_principal_scope(
                    connection, principal_id, get_settings().database_rls_role
                )
            else:
                await apply_service_scope(connection)
            await connection.commit()

            session_factory = async_sessionmaker(
                bind=connection,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            async with session_factory() as session:
                yield session
        finally:
            # Scope is connection-level: always clear it before returning to the pool
            if not connection.closed:
                await connection.rollback()
                await reset_scope(connection)
                await connection.commit()
