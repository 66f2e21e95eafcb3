"""Repositories for provisioning idempotency records and their audit trail."""

from typing import Any
from uuid import UUID, uuid7

from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from src.tablehost.models.base import utc_now
from src.tablehost.models.enums import TERMINAL_STAGES, ProvisioningStage, ProvisioningStatus
from src.tablehost.models.public import ProvisioningAuditRecord, ProvisioningRequest
from src.tablehost.repositories.base import BaseRepository

SLUG_RESERVATION_INDEX = "uq_provisioning_requests_reserved_slug"
EMAIL_RESERVATION_INDEX = "uq_provisioning_requests_reserved_email"


def violated_constraint(exc: IntegrityError) -> str | None:
    """Name of the unique index behind an IntegrityError, if it is a reservation index."""
    message = str(exc.orig)
    for name in (SLUG_RESERVATION_INDEX, EMAIL_RESERVATION_INDEX):
        if name in message:
            return name
    return None


class ProvisioningRequestRepository(BaseRepository[ProvisioningRequest]):
    model = ProvisioningRequest

    async def claim(
        self,
        idempotency_key: str,
        actor_id: UUID,
        slug: str,
        email: str,
        plan: str,
        request_data: dict[str, Any],
    ) -> UUID | None:
        """Insert a processing record for the key.

        Returns:
            The new attempt id, or None if the key was already claimed.
        """
        stmt = (
            pg_insert(ProvisioningRequest)
            .values(
                id=uuid7(),
                idempotency_key=idempotency_key,
                actor_id=actor_id,
                slug=slug,
                email=email,
                plan=plan,
                request_data=request_data,
                status=ProvisioningStatus.PROCESSING.value,
                holds_reservation=False,
                retryable=False,
                requires_manual_cleanup=False,
                created_at=utc_now(),
            )
            .on_conflict_do_nothing(index_elements=["idempotency_key"])
            .returning(ProvisioningRequest.id)  # type: ignore[arg-type]
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_key(self, idempotency_key: str) -> ProvisioningRequest | None:
        result = await self.session.execute(
            select(ProvisioningRequest).where(
                ProvisioningRequest.idempotency_key == idempotency_key
            )
        )
        return result.scalar_one_or_none()

    async def reserve(self, request_id: UUID) -> None:
        """Take the slug and email reservation.

        Raises:
            IntegrityError: Another in-flight attempt holds the slug or email.
                Use violated_constraint() to tell which.
        """
        await self.session.execute(
            update(ProvisioningRequest)
            .where(ProvisioningRequest.id == request_id)  # type: ignore[arg-type]
            .values(holds_reservation=True)
        )
        await self.session.flush()

    async def mark_completed(
        self,
        request_id: UUID,
        tenant_id: UUID,
        owner_id: UUID,
        response: dict[str, Any],
    ) -> None:
        # The reservation is no longer needed: tenants.slug/email are now unique
        await self.session.execute(
            update(ProvisioningRequest)
            .where(ProvisioningRequest.id == request_id)  # type: ignore[arg-type]
            .values(
                status=ProvisioningStatus.COMPLETED.value,
                holds_reservation=False,
                tenant_id=tenant_id,
                owner_id=owner_id,
                response=response,
                completed_at=utc_now(),
            )
        )

    async def mark_failed(
        self,
        request_id: UUID,
        error_code: str,
        error_message: str,
        retryable: bool,
        owner_id: UUID | None = None,
        orphaned_owner_id: UUID | None = None,
        requires_manual_cleanup: bool = False,
    ) -> None:
        await self.session.execute(
            update(ProvisioningRequest)
            .where(ProvisioningRequest.id == request_id)  # type: ignore[arg-type]
            .values(
                status=ProvisioningStatus.FAILED.value,
                holds_reservation=False,
                owner_id=owner_id,
                error_code=error_code,
                error_message=error_message[:1000],
                retryable=retryable,
                requires_manual_cleanup=requires_manual_cleanup or orphaned_owner_id is not None,
                orphaned_owner_id=orphaned_owner_id,
                completed_at=utc_now(),
            )
        )

    async def list_cleanup_queue(
        self, cursor: str | None, limit: int
    ) -> tuple[list[ProvisioningRequest], str | None, bool]:
        query = select(ProvisioningRequest).where(
            ProvisioningRequest.requires_manual_cleanup == True  # noqa: E712
        )
        return await self.paginate(query, cursor, limit, ProvisioningRequest.created_at)


class ProvisioningAuditRepository(BaseRepository[ProvisioningAuditRecord]):
    model = ProvisioningAuditRecord

    async def next_sequence(self, attempt_id: UUID) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.max(ProvisioningAuditRecord.sequence), 0)).where(
                ProvisioningAuditRecord.attempt_id == attempt_id
            )
        )
        return int(result.scalar_one()) + 1

    async def append(
        self,
        attempt_id: UUID,
        idempotency_key: str,
        stage: ProvisioningStage,
        *,
        actor_id: UUID | None = None,
        tenant_id: UUID | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> ProvisioningAuditRecord:
        record = ProvisioningAuditRecord(
            attempt_id=attempt_id,
            idempotency_key=idempotency_key,
            actor_id=actor_id,
            tenant_id=tenant_id,
            stage=stage.value,
            sequence=await self.next_sequence(attempt_id),
            error_code=error_code,
            error_message=error_message[:1000] if error_message else None,
            details=details,
            request_id=request_id,
        )
        self.add(record)
        await self.session.flush()
        return record

    async def list_for_attempt(self, attempt_id: UUID) -> list[ProvisioningAuditRecord]:
        result = await self.session.execute(
            select(ProvisioningAuditRecord)
            .where(ProvisioningAuditRecord.attempt_id == attempt_id)
            .order_by(ProvisioningAuditRecord.sequence)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def has_terminal_stage(self, attempt_id: UUID) -> bool:
        terminal = [stage.value for stage in TERMINAL_STAGES]
        result = await self.session.execute(
            select(ProvisioningAuditRecord.id)
            .where(
                ProvisioningAuditRecord.attempt_id == attempt_id,
                ProvisioningAuditRecord.stage.in_(terminal),  # type: ignore[attr-defined]
            )
            .limit(1)
        )
        return result.first() is not None
