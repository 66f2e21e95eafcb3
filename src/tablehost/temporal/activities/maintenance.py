"""Maintenance activities for provisioning records and widget drafts.

Each activity runs its blocking database work in a thread on the sync
engine and touches rows in one transaction, so a retried activity picks up
where a failed one left off.
"""

import asyncio
from collections.abc import Sequence
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func
from sqlmodel import select
from temporalio import activity

from src.tablehost.core.exceptions import ProvisioningFailedError
from src.tablehost.models import (
    TERMINAL_STAGES,
    ProvisioningAuditRecord,
    ProvisioningRequest,
    ProvisioningStage,
    ProvisioningStatus,
    Tenant,
    TenantStatus,
    WidgetDraft,
)
from src.tablehost.models.base import utc_now

from ._db import service_session

STALE_ATTEMPT_MESSAGE = "Provisioning attempt did not finish and was expired"


def _created_resources(
    trail: Sequence[ProvisioningAuditRecord],
) -> tuple[UUID | None, UUID | None]:
    """Owner principal and tenant an attempt recorded creating, if any."""
    owner_id: UUID | None = None
    tenant_id: UUID | None = None
    for record in trail:
        details = record.details or {}
        if record.stage == ProvisioningStage.AUTH_USER_CREATED.value and "owner_id" in details:
            owner_id = UUID(details["owner_id"])
        elif record.stage == ProvisioningStage.DATABASE_UPDATED.value:
            tenant_id = record.tenant_id
    return owner_id, tenant_id


def _sync_expire_stale_provisioning_requests(stale_minutes: int) -> int:
    cutoff = utc_now() - timedelta(minutes=stale_minutes)
    terminal = [stage.value for stage in TERMINAL_STAGES]

    with service_session() as session:
        stale = session.scalars(
            select(ProvisioningRequest)
            .where(
                ProvisioningRequest.status == ProvisioningStatus.PROCESSING.value,
                ProvisioningRequest.created_at < cutoff,
            )
            .with_for_update(skip_locked=True)
        ).all()

        for request in stale:
            trail = session.scalars(
                select(ProvisioningAuditRecord).where(
                    ProvisioningAuditRecord.attempt_id == request.id
                )
            ).all()
            owner_id, tenant_id = _created_resources(trail)

            # The principal may exist at the identity provider even without a
            # recorded stage; the process can die between create and record
            request.status = ProvisioningStatus.FAILED.value
            request.holds_reservation = False
            request.error_code = ProvisioningFailedError.code
            request.error_message = STALE_ATTEMPT_MESSAGE
            request.retryable = True
            request.requires_manual_cleanup = True
            request.owner_id = owner_id
            request.orphaned_owner_id = owner_id
            request.completed_at = utc_now()
            session.add(request)

            details: dict[str, Any] = {"expired_after_minutes": stale_minutes}
            if tenant_id is not None:
                # Its pending access mapping would keep granting the orphan access
                deleted = session.execute(
                    delete(Tenant).where(
                        Tenant.id == tenant_id,  # type: ignore[arg-type]
                        Tenant.status != TenantStatus.COMPLETED.value,  # type: ignore[arg-type]
                    )
                )
                details["tenant_deleted"] = bool(deleted.rowcount)
            if owner_id is not None:
                details["owner_id"] = str(owner_id)

            if any(record.stage in terminal for record in trail):
                continue

            session.add(
                ProvisioningAuditRecord(
                    attempt_id=request.id,
                    idempotency_key=request.idempotency_key,
                    actor_id=request.actor_id,
                    tenant_id=tenant_id or request.tenant_id,
                    stage=ProvisioningStage.FAILED.value,
                    sequence=max((record.sequence for record in trail), default=0) + 1,
                    error_code=ProvisioningFailedError.code,
                    error_message=STALE_ATTEMPT_MESSAGE,
                    details=details,
                )
            )

        session.commit()
        return len(stale)


@activity.defn
async def expire_stale_provisioning_requests(stale_minutes: int) -> int:
    """
    Fail provisioning attempts stuck in ``processing``.

    An attempt only stays in ``processing`` when the process handling it
    died. The attempt becomes a retryable failure, releases its slug and
    email reservation, and is flagged for manual cleanup because an owner
    principal may already exist at the identity provider. A principal the
    trail records as created is kept as the orphaned owner, and a tenant row
    that never completed is deleted along with its access mapping.

    Idempotency: Expired attempts are no longer ``processing``, so a second
    run skips them. The audit stage is only appended when no terminal stage
    exists yet.

    Args:
        stale_minutes: Age after which a processing attempt is expired

    Returns:
        Number of attempts expired
    """
    activity.logger.info(f"Expiring provisioning attempts older than {stale_minutes} minutes")
    count = await asyncio.to_thread(_sync_expire_stale_provisioning_requests, stale_minutes)
    if count:
        activity.logger.warning(f"Expired {count} stale provisioning attempts")
    return count


def _sync_prune_provisioning_requests(retention_days: int) -> int:
    cutoff = utc_now() - timedelta(days=retention_days)
    with service_session() as session:
        result = session.execute(
            delete(ProvisioningRequest).where(
                ProvisioningRequest.status.in_(  # type: ignore[attr-defined]
                    [ProvisioningStatus.COMPLETED.value, ProvisioningStatus.FAILED.value]
                ),
                ProvisioningRequest.created_at < cutoff,
                ProvisioningRequest.requires_manual_cleanup == False,  # noqa: E712
            )
        )
        session.commit()
        return result.rowcount or 0


@activity.defn
async def prune_provisioning_requests(retention_days: int) -> int:
    """
    Delete finished idempotency records past the retention window.

    Records flagged for manual cleanup are kept until an operator resolves
    them. The audit trail is not touched.

    Args:
        retention_days: Number of days to keep finished records

    Returns:
        Number of records deleted
    """
    activity.logger.info(f"Pruning provisioning records older than {retention_days} days")
    count = await asyncio.to_thread(_sync_prune_provisioning_requests, retention_days)
    activity.logger.info(f"Deleted {count} provisioning records")
    return count


def _sync_delete_expired_widget_drafts() -> int:
    with service_session() as session:
        result = session.execute(delete(WidgetDraft).where(WidgetDraft.expires_at < utc_now()))
        session.commit()
        return result.rowcount or 0


@activity.defn
async def delete_expired_widget_drafts() -> int:
    """Delete widget drafts past their expiry. Returns the number deleted."""
    activity.logger.info("Deleting expired widget drafts")
    count = await asyncio.to_thread(_sync_delete_expired_widget_drafts)
    activity.logger.info(f"Deleted {count} expired widget drafts")
    return count


def _sync_count_orphaned_principals() -> int:
    with service_session() as session:
        return int(
            session.scalar(
                select(func.count())
                .select_from(ProvisioningRequest)
                .where(
                    ProvisioningRequest.requires_manual_cleanup == True,  # noqa: E712
                    ProvisioningRequest.orphaned_owner_id.is_not(None),  # type: ignore[union-attr]
                )
            )
            or 0
        )


@activity.defn
async def count_orphaned_principals() -> int:
    """
    Count owner principals left behind by failed rollbacks.

    Read-only: orphans are listed in the cleanup queue and removed by an
    operator, never automatically.
    """
    count = await asyncio.to_thread(_sync_count_orphaned_principals)
    if count:
        activity.logger.warning(f"{count} orphaned principals await manual cleanup")
    return count
