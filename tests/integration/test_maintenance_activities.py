"""Integration tests for maintenance activities against a real database."""

from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import select
from temporalio.testing import ActivityEnvironment

from src.tablehost.core.db import dispose_sync_engine
from src.tablehost.models import (
    AccessStatus,
    ProvisioningAuditRecord,
    ProvisioningRequest,
    ProvisioningStage,
    ProvisioningStatus,
    Tenant,
    TenantAccess,
    WidgetDraft,
)
from src.tablehost.models.base import utc_now
from src.tablehost.temporal.activities import (
    count_orphaned_principals,
    delete_expired_widget_drafts,
    expire_stale_provisioning_requests,
    prune_provisioning_requests,
)
from tests.factories import (
    ProvisioningRequestFactory,
    TenantAccessFactory,
    TenantFactory,
    WidgetDraftFactory,
    generate_uuid7,
)
from tests.helpers import TenantWithOwner
from tests.utils.cleanup import cleanup_provisioning

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


@pytest.fixture
def activity_env() -> ActivityEnvironment:
    return ActivityEnvironment()


@pytest.fixture(autouse=True)
def _dispose_sync_engine() -> None:
    yield
    dispose_sync_engine()


@pytest.fixture
async def records(
    engine: AsyncEngine, db_session: AsyncSession
) -> AsyncGenerator[list[ProvisioningRequest]]:
    """Collects provisioning records added by a test and removes them afterwards."""
    added: list[ProvisioningRequest] = []
    yield added
    async with engine.connect() as conn:
        for record in added:
            await cleanup_provisioning(conn, record.idempotency_key)
        await conn.commit()


async def _store(session: AsyncSession, records: list, *new: ProvisioningRequest) -> None:
    session.add_all(new)
    await session.commit()
    records.extend(new)


async def _reload(session: AsyncSession, record_id) -> ProvisioningRequest | None:
    result = await session.execute(
        select(ProvisioningRequest)
        .where(ProvisioningRequest.id == record_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


class TestExpireStaleProvisioningRequests:
    async def test_stale_attempt_expired(
        self, activity_env: ActivityEnvironment, db_session: AsyncSession, records: list
    ):
        stale = ProvisioningRequestFactory.build(created_at=utc_now() - timedelta(hours=2))
        fresh = ProvisioningRequestFactory.build()
        await _store(db_session, records, stale, fresh)

        count = await activity_env.run(expire_stale_provisioning_requests, 30)

        assert count >= 1
        expired = await _reload(db_session, stale.id)
        assert expired.status == ProvisioningStatus.FAILED.value
        assert expired.retryable is True
        assert expired.requires_manual_cleanup is True
        assert expired.completed_at is not None

        untouched = await _reload(db_session, fresh.id)
        assert untouched.status == ProvisioningStatus.PROCESSING.value

    async def test_failed_stage_appended_once(
        self, activity_env: ActivityEnvironment, db_session: AsyncSession, records: list
    ):
        stale = ProvisioningRequestFactory.build(created_at=utc_now() - timedelta(hours=2))
        await _store(db_session, records, stale)

        await activity_env.run(expire_stale_provisioning_requests, 30)
        await activity_env.run(expire_stale_provisioning_requests, 30)

        result = await db_session.execute(
            select(ProvisioningAuditRecord).where(ProvisioningAuditRecord.attempt_id == stale.id)
        )
        trail = list(result.scalars().all())
        assert [record.stage for record in trail] == [ProvisioningStage.FAILED.value]
        assert trail[0].details == {"expired_after_minutes": 30}

    async def test_created_principal_and_pending_tenant_handled(
        self, activity_env: ActivityEnvironment, db_session: AsyncSession, records: list
    ):
        stale = ProvisioningRequestFactory.build(created_at=utc_now() - timedelta(hours=2))
        owner_id = generate_uuid7()
        tenant = TenantFactory.pending(slug=stale.slug, email=stale.email, owner_id=owner_id)
        await _store(db_session, records, stale)
        db_session.add(tenant)
        await db_session.commit()
        db_session.add(
            TenantAccessFactory.build(
                user_id=owner_id,
                tenant_id=tenant.id,
                email=stale.email,
                status=AccessStatus.PENDING.value,
            )
        )
        for sequence, (stage, tenant_id, details) in enumerate(
            [
                (ProvisioningStage.INITIATED, None, None),
                (ProvisioningStage.AUTH_USER_CREATED, None, {"owner_id": str(owner_id)}),
                (ProvisioningStage.DATABASE_UPDATED, tenant.id, None),
            ],
            start=1,
        ):
            db_session.add(
                ProvisioningAuditRecord(
                    attempt_id=stale.id,
                    idempotency_key=stale.idempotency_key,
                    actor_id=stale.actor_id,
                    tenant_id=tenant_id,
                    stage=stage.value,
                    sequence=sequence,
                    details=details,
                )
            )
        await db_session.commit()
        tenant_id = tenant.id
        before = await activity_env.run(count_orphaned_principals)

        await activity_env.run(expire_stale_provisioning_requests, 30)

        expired = await _reload(db_session, stale.id)
        assert expired.orphaned_owner_id == owner_id
        assert expired.requires_manual_cleanup is True
        assert await activity_env.run(count_orphaned_principals) == before + 1

        db_session.expunge_all()
        assert await db_session.get(Tenant, tenant_id) is None
        mappings = await db_session.execute(
            select(TenantAccess).where(TenantAccess.user_id == owner_id)
        )
        assert mappings.scalars().all() == []

        result = await db_session.execute(
            select(ProvisioningAuditRecord)
            .where(ProvisioningAuditRecord.attempt_id == stale.id)
            .order_by(ProvisioningAuditRecord.sequence)
        )
        failed = result.scalars().all()[-1]
        assert failed.stage == ProvisioningStage.FAILED.value
        assert failed.details == {
            "expired_after_minutes": 30,
            "tenant_deleted": True,
            "owner_id": str(owner_id),
        }


class TestPruneProvisioningRequests:
    async def test_old_finished_records_pruned(
        self, activity_env: ActivityEnvironment, db_session: AsyncSession, records: list
    ):
        old = utc_now() - timedelta(days=60)
        old_completed = ProvisioningRequestFactory.completed(created_at=old)
        old_failed = ProvisioningRequestFactory.failed(created_at=old)
        recent_completed = ProvisioningRequestFactory.completed()
        old_processing = ProvisioningRequestFactory.build(created_at=old)
        flagged = ProvisioningRequestFactory.failed(
            created_at=old,
            requires_manual_cleanup=True,
            orphaned_owner_id=generate_uuid7(),
        )
        await _store(
            db_session,
            records,
            old_completed,
            old_failed,
            recent_completed,
            old_processing,
            flagged,
        )

        count = await activity_env.run(prune_provisioning_requests, 30)

        assert count >= 2
        assert await _reload(db_session, old_completed.id) is None
        assert await _reload(db_session, old_failed.id) is None
        assert await _reload(db_session, recent_completed.id) is not None
        assert await _reload(db_session, old_processing.id) is not None
        assert await _reload(db_session, flagged.id) is not None


class TestDeleteExpiredWidgetDrafts:
    async def test_only_expired_drafts_deleted(
        self,
        activity_env: ActivityEnvironment,
        db_session: AsyncSession,
        tenant_a: TenantWithOwner,
    ):
        expired = WidgetDraftFactory.expired(tenant_id=tenant_a.tenant.id)
        live = WidgetDraftFactory.build(tenant_id=tenant_a.tenant.id)
        db_session.add_all([expired, live])
        await db_session.commit()

        count = await activity_env.run(delete_expired_widget_drafts)

        assert count >= 1
        remaining = await db_session.execute(
            select(WidgetDraft.id).where(WidgetDraft.tenant_id == tenant_a.tenant.id)
        )
        assert list(remaining.scalars().all()) == [live.id]


class TestCountOrphanedPrincipals:
    async def test_flagged_records_counted(
        self, activity_env: ActivityEnvironment, db_session: AsyncSession, records: list
    ):
        before = await activity_env.run(count_orphaned_principals)

        await _store(
            db_session,
            records,
            ProvisioningRequestFactory.failed(
                requires_manual_cleanup=True, orphaned_owner_id=generate_uuid7()
            ),
            ProvisioningRequestFactory.failed(requires_manual_cleanup=True),
        )

        after = await activity_env.run(count_orphaned_principals)

        assert after == before + 1
