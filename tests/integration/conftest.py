"""Integration test fixtures for database and HTTP client operations.

These fixtures require external resources (PostgreSQL database).
Uses polyfactory for type-safe test data generation.
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.tablehost.api.dependencies.identity import get_identity_provider
from src.tablehost.core import db
from src.tablehost.core import redis as redis_core
from src.tablehost.core.config import get_settings
from src.tablehost.core.db import get_session, run_migrations_sync
from src.tablehost.main import create_app
from src.tablehost.models import Employee, WidgetType
from src.tablehost.schemas.widget import default_widget_configuration
from tests.factories import (
    EmployeeFactory,
    TenantAccessFactory,
    TenantFactory,
    WidgetConfigFactory,
)
from tests.helpers import FakeIdentityProvider, TenantWithOwner, auth_headers
from tests.utils.cleanup import cleanup_principal, cleanup_tenant_cascade


@pytest.fixture(autouse=True)
async def _reset_redis_between_tests() -> AsyncGenerator[None]:
    """Reset Redis state between tests.

    Redis clients hold references to their event loop; a stale client from a
    previous test's loop fails with 'Event loop is closed'.
    """
    redis_core.reset_redis_state()
    yield
    await redis_core.close_redis()


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine and ensure migrations are applied."""
    await db.dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)

    await asyncio.to_thread(run_migrations_sync)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Service session (sees every tenant).

    Does NOT auto-commit: call `await session.commit()` to persist changes.
    """
    async with get_session(engine=engine) as session:
        yield session


@pytest.fixture
async def client(fake_identity: FakeIdentityProvider) -> AsyncGenerator[AsyncClient]:
    """HTTP client against a fresh app wired to the in-memory identity provider."""
    await db.dispose_engine()

    app = create_app()
    app.dependency_overrides[get_identity_provider] = lambda: fake_identity
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    await db.dispose_engine()


@pytest.fixture
async def platform_admin(engine: AsyncEngine, db_session: AsyncSession) -> AsyncGenerator[dict]:
    """An active ADMIN employee and bearer headers for it."""
    employee: Employee = EmployeeFactory.build()
    db_session.add(employee)
    await db_session.commit()

    yield {
        "id": employee.user_id,
        "email": employee.email,
        "headers": auth_headers(employee.user_id, employee.email),
    }

    async with engine.connect() as conn:
        await cleanup_principal(conn, employee.user_id)
        await conn.commit()


async def _create_tenant_with_owner(session: AsyncSession) -> TenantWithOwner:
    tenant = TenantFactory.build()
    session.add(tenant)
    await session.flush()

    session.add(
        TenantAccessFactory.build(
            user_id=tenant.owner_id, tenant_id=tenant.id, email=tenant.email
        )
    )
    for widget_type in WidgetType:
        session.add(
            WidgetConfigFactory.build(
                tenant_id=tenant.id,
                widget_type=widget_type.value,
                configuration=default_widget_configuration(widget_type),
            )
        )
    await session.commit()
    return TenantWithOwner(tenant=tenant, headers=auth_headers(tenant.owner_id, tenant.email))


@pytest.fixture
async def tenant_a(
    engine: AsyncEngine, db_session: AsyncSession
) -> AsyncGenerator[TenantWithOwner]:
    """Completed tenant with owner access mapping and default widget configs."""
    created = await _create_tenant_with_owner(db_session)
    yield created
    async with engine.connect() as conn:
        await cleanup_tenant_cascade(conn, created.tenant.id)
        await cleanup_principal(conn, created.tenant.owner_id)
        await conn.commit()


@pytest.fixture
async def tenant_b(
    engine: AsyncEngine, db_session: AsyncSession
) -> AsyncGenerator[TenantWithOwner]:
    """A second, unrelated tenant for isolation checks."""
    created = await _create_tenant_with_owner(db_session)
    yield created
    async with engine.connect() as conn:
        await cleanup_tenant_cascade(conn, created.tenant.id)
        await cleanup_principal(conn, created.tenant.owner_id)
        await conn.commit()
