"""Tenant provisioning orchestrator.

Produces a tenant with a real owner principal, or leaves nothing behind.

Stages, each recorded in ``provisioning_audit``:

1. ``initiated``: idempotency key claimed (same transaction as the claim).
2. Validation and reservation. Failures here end in ``failed``.
3. ``auth_user_created``: owner principal exists in the identity provider.
4. ``database_updated``: tenant, access mapping, profile and default widget
   configs inserted in one transaction.
5. Verification, then the setup link is dispatched.
6. ``completed``: tenant and mapping flipped to completed, response stored.

Any failure after the principal exists rolls everything back and ends in
``rolled_back``. Every terminal stage is written in the same transaction as
the idempotency record's final status.
"""

import asyncio
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.audit_context import get_request_id
from src.tablehost.core.config import get_settings
from src.tablehost.core.exceptions import (
    EmailUnavailableError,
    IdempotencyInProgressError,
    IdempotencyKeyReusedError,
    NotFoundError,
    ProvisioningFailedError,
    SlugUnavailableError,
    TablehostError,
    TransientInfrastructureError,
    VerificationFailedError,
    error_from_code,
)
from src.tablehost.core.identity import (
    IdentityProvider,
    IdentityProviderError,
    Principal,
    PrincipalAlreadyExistsError,
)
from src.tablehost.core.logging import bind_provisioning_context, get_logger
from src.tablehost.core.notifications import send_setup_link_email
from src.tablehost.models import (
    AccessStatus,
    Profile,
    ProfileRole,
    ProvisioningAuditRecord,
    ProvisioningRequest,
    ProvisioningStage,
    ProvisioningStatus,
    Tenant,
    TenantAccess,
    TenantStatus,
    WidgetConfig,
    WidgetType,
)
from src.tablehost.repositories import (
    ProfileRepository,
    ProvisioningAuditRepository,
    ProvisioningRequestRepository,
    TenantAccessRepository,
    TenantRepository,
    WidgetConfigRepository,
)
from src.tablehost.repositories.public.provisioning import (
    SLUG_RESERVATION_INDEX,
    violated_constraint,
)
from src.tablehost.schemas.provisioning import ProvisionTenantRequest, ProvisionTenantResponse
from src.tablehost.schemas.widget import default_widget_configuration
from src.tablehost.services.availability_service import AvailabilityService

logger = get_logger(__name__)

RETRY_WITH_NEW_KEY = "A dependency is temporarily unavailable, retry with a new idempotency key"


@dataclass(frozen=True)
class Attempt:
    id: UUID
    idempotency_key: str
    actor_id: UUID
    slug: str
    email: str


class ProvisioningService:
    def __init__(self, session: AsyncSession, identity: IdentityProvider):
        self.session = session
        self.identity = identity
        self.availability = AvailabilityService(session, identity)
        self.request_repo = ProvisioningRequestRepository(session)
        self.audit_repo = ProvisioningAuditRepository(session)
        self.tenant_repo = TenantRepository(session)
        self.access_repo = TenantAccessRepository(session)
        self.profile_repo = ProfileRepository(session)
        self.widget_config_repo = WidgetConfigRepository(session)

    async def provision(
        self,
        request: ProvisionTenantRequest,
        actor_id: UUID,
    ) -> ProvisionTenantResponse:
        """Provision a tenant, or replay the outcome of an earlier attempt with the same key.

        Raises:
            TablehostError: Validation, idempotency, transient or consistency failure.
                The error is also stored so a replay of the key raises it again.
        """
        attempt_id = await self.request_repo.claim(
            idempotency_key=request.idempotency_key,
            actor_id=actor_id,
            slug=request.slug,
            email=request.email,
            plan=request.plan.value,
            request_data=request.model_dump(mode="json", exclude={"idempotency_key"}),
        )
        if attempt_id is None:
            await self.session.rollback()
            return await self._replay(request)

        attempt = Attempt(
            id=attempt_id,
            idempotency_key=request.idempotency_key,
            actor_id=actor_id,
            slug=request.slug,
            email=request.email,
        )
        await self._record(attempt, ProvisioningStage.INITIATED)
        await self.session.commit()

        bind_provisioning_context(attempt.id, attempt.idempotency_key)
        logger.info("Provisioning started", slug=attempt.slug, plan=request.plan.value)

        try:
            await self._validate_and_reserve(attempt)
        except Exception as exc:
            error = _as_tablehost_error(exc)
            await self._fail(attempt, error)
            raise error from exc

        try:
            principal = await self._create_principal(attempt, request)
        except IdentityProviderError as exc:
            error = _as_tablehost_error(exc)
            surfaced = await self._fail_after_create_error(attempt, error)
            raise surfaced from exc
        except Exception as exc:
            error = _as_tablehost_error(exc)
            await self._fail(attempt, error)
            raise error from exc

        tenant_id: UUID | None = None
        try:
            await self._record(
                attempt,
                ProvisioningStage.AUTH_USER_CREATED,
                details={"owner_id": str(principal.id)},
            )
            await self.session.commit()

            tenant = await self._create_records(attempt, request, principal)
            tenant_id = tenant.id
            await self._verify(attempt, tenant, principal)
            await self._send_setup_link(attempt, tenant)
            return await self._finalize(attempt, tenant, principal)
        except Exception as exc:
            error = _as_tablehost_error(exc)
            surfaced = await self._rollback(attempt, principal.id, tenant_id, error)
            raise surfaced from exc

    async def get_audit_trail(self, attempt_id: UUID) -> list[ProvisioningAuditRecord]:
        records = await self.audit_repo.list_for_attempt(attempt_id)
        if not records:
            raise NotFoundError("Provisioning attempt not found")
        return records

    async def list_cleanup_queue(
        self, cursor: str | None = None, limit: int = 50
    ) -> tuple[list[ProvisioningRequest], str | None, bool]:
        """Failed attempts that left something behind (usually an orphaned principal)."""
        return await self.request_repo.list_cleanup_queue(cursor, limit)

    async def _replay(self, request: ProvisionTenantRequest) -> ProvisionTenantResponse:
        existing = await self.request_repo.get_by_key(request.idempotency_key)
        if existing is None:
            # Claimed and pruned between our insert and this read
            raise IdempotencyInProgressError()

        if (existing.slug, existing.email, existing.plan) != (
            request.slug,
            request.email,
            request.plan.value,
        ):
            raise IdempotencyKeyReusedError()

        if existing.status == ProvisioningStatus.COMPLETED.value and existing.response:
            logger.info(
                "Replaying completed provisioning",
                attempt_id=str(existing.id),
                tenant_id=str(existing.tenant_id),
            )
            return ProvisionTenantResponse.model_validate({**existing.response, "replayed": True})

        if existing.status == ProvisioningStatus.FAILED.value:
            raise error_from_code(existing.error_code, existing.error_message, existing.retryable)

        raise IdempotencyInProgressError()

    async def _validate_and_reserve(self, attempt: Attempt) -> None:
        self.availability.ensure_not_reserved(attempt.slug, attempt.email)
        await self.availability.ensure_slug_available(attempt.slug)
        await self.availability.ensure_email_available(attempt.email)

        try:
            await self.request_repo.reserve(attempt.id)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if violated_constraint(e) == SLUG_RESERVATION_INDEX:
                raise SlugUnavailableError(details={"reason": "in_progress"}) from e
            raise EmailUnavailableError(details={"reason": "in_progress"}) from e

        # A competing attempt may have completed and released its reservation
        # between the pre-checks and our reservation; its rows are visible now.
        await self.availability.ensure_slug_available(attempt.slug)
        await self.availability.ensure_email_available(attempt.email, check_identity=False)

    async def _create_principal(
        self, attempt: Attempt, request: ProvisionTenantRequest
    ) -> Principal:
        try:
            principal = await self.identity.create_principal(
                attempt.email,
                user_metadata={
                    "full_name": request.owner_name,
                    "tenant_slug": attempt.slug,
                    "role": ProfileRole.OWNER.value,
                },
            )
        except PrincipalAlreadyExistsError as e:
            raise EmailUnavailableError(details={"reason": "identity"}) from e

        logger.info("Owner principal created", owner_id=str(principal.id))
        return principal

    async def _create_records(
        self,
        attempt: Attempt,
        request: ProvisionTenantRequest,
        principal: Principal,
    ) -> Tenant:
        tenant = Tenant(
            name=request.display_name,
            slug=attempt.slug,
            email=attempt.email,
            owner_id=principal.id,
            plan=request.plan.value,
            timezone=request.timezone,
            currency=request.currency,
            status=TenantStatus.PENDING.value,
        )
        self.tenant_repo.add(tenant)
        await self.session.flush()

        self.access_repo.add(
            TenantAccess(
                user_id=principal.id,
                tenant_id=tenant.id,
                email=attempt.email,
                status=AccessStatus.PENDING.value,
                provisioned_by=attempt.actor_id,
            )
        )
        self.profile_repo.add(
            Profile(
                user_id=principal.id,
                email=attempt.email,
                full_name=request.owner_name,
                role=ProfileRole.OWNER.value,
            )
        )
        for widget_type in WidgetType:
            self.widget_config_repo.add(
                WidgetConfig(
                    tenant_id=tenant.id,
                    widget_type=widget_type.value,
                    configuration=default_widget_configuration(widget_type),
                    updated_by=attempt.actor_id,
                )
            )
        await self.session.flush()

        await self._record(attempt, ProvisioningStage.DATABASE_UPDATED, tenant_id=tenant.id)
        await self.session.commit()
        logger.info("Tenant records created", tenant_id=str(tenant.id))
        return tenant

    async def _verify(self, attempt: Attempt, tenant: Tenant, principal: Principal) -> None:
        """Check that tenant, owner reference, access mapping and principal agree."""
        mismatches: list[str] = []

        stored = await self.tenant_repo.get_owner_reference(tenant.id)
        if stored is None:
            mismatches.append("tenant_missing")
        else:
            owner_id, slug, email = stored
            if owner_id != principal.id:
                mismatches.append("owner_reference")
            if slug != attempt.slug or email != attempt.email:
                mismatches.append("tenant_fields")

        if not await self.access_repo.has_access(principal.id, tenant.id):
            mismatches.append("access_mapping")

        remote = await self.identity.get_principal(principal.id)
        if remote is None:
            mismatches.append("principal_missing")
        elif remote.email != attempt.email:
            mismatches.append("principal_email")

        if mismatches:
            logger.error(
                "Provisioning verification failed - data consistency incident",
                tenant_id=str(tenant.id),
                owner_id=str(principal.id),
                mismatches=mismatches,
            )
            raise VerificationFailedError(details={"mismatches": mismatches})

    async def _send_setup_link(self, attempt: Attempt, tenant: Tenant) -> None:
        link = await self.identity.generate_setup_link(
            attempt.email, get_settings().setup_link_redirect_url
        )
        sent = await asyncio.to_thread(send_setup_link_email, attempt.email, link, tenant.name)
        if not sent:
            raise TransientInfrastructureError(
                "The setup email could not be delivered, retry with a new idempotency key"
            )

    async def _finalize(
        self, attempt: Attempt, tenant: Tenant, principal: Principal
    ) -> ProvisionTenantResponse:
        await self.tenant_repo.set_status(tenant.id, TenantStatus.COMPLETED.value)
        await self.access_repo.set_status_for_tenant(tenant.id, AccessStatus.COMPLETED.value)

        response = ProvisionTenantResponse(
            tenant_id=tenant.id,
            slug=tenant.slug,
            status=TenantStatus.COMPLETED.value,
            setup_link_sent=True,
            replayed=False,
        )
        await self.request_repo.mark_completed(
            attempt.id,
            tenant_id=tenant.id,
            owner_id=principal.id,
            response=response.model_dump(mode="json", by_alias=True),
        )
        await self._record(attempt, ProvisioningStage.COMPLETED, tenant_id=tenant.id)
        await self.session.commit()

        logger.info("Provisioning completed", tenant_id=str(tenant.id), slug=tenant.slug)
        return response

    async def _fail_after_create_error(
        self, attempt: Attempt, error: TablehostError
    ) -> TablehostError:
        """Settle an attempt whose create-principal call raised.

        A create that timed out may still have gone through at the provider.
        A principal found for the attempt's email and slug is rolled back like
        any other; if the lookup fails too, the attempt is flagged for cleanup.
        """
        try:
            created = await self.identity.find_principal_by_email(attempt.email)
        except IdentityProviderError as e:
            logger.error(
                "Could not check for principal after failed create - manual cleanup required",
                error=str(e),
            )
            await self._fail(attempt, error, requires_manual_cleanup=True)
            return error

        if created is None or created.user_metadata.get("tenant_slug") != attempt.slug:
            await self._fail(attempt, error)
            return error

        logger.warning("Principal exists despite failed create", owner_id=str(created.id))
        return await self._rollback(attempt, created.id, None, error)

    async def _fail(
        self,
        attempt: Attempt,
        error: TablehostError,
        requires_manual_cleanup: bool = False,
    ) -> None:
        """Terminal ``failed`` for attempts that never created a principal."""
        await self.session.rollback()
        await self.request_repo.mark_failed(
            attempt.id,
            error_code=error.code,
            error_message=error.message,
            retryable=error.retryable,
            requires_manual_cleanup=requires_manual_cleanup,
        )
        await self._record(
            attempt,
            ProvisioningStage.FAILED,
            error_code=error.code,
            error_message=error.message,
            details=error.details or None,
        )
        await self.session.commit()

        log = logger.error if error.status_code >= 500 else logger.info
        log("Provisioning failed", code=error.code, retryable=error.retryable)

    async def _rollback(
        self,
        attempt: Attempt,
        owner_id: UUID,
        tenant_id: UUID | None,
        error: TablehostError,
    ) -> TablehostError:
        """Undo a partially provisioned tenant.

        Returns:
            The error to surface. A generic ProvisioningFailedError when cleanup
            itself did not finish.
        """
        logger.warning(
            "Rolling back provisioning",
            code=error.code,
            owner_id=str(owner_id),
            tenant_id=str(tenant_id) if tenant_id else None,
        )
        await self.session.rollback()
        cleanup_errors: list[str] = []

        try:
            if tenant_id is not None:
                await self.tenant_repo.delete_uncompleted(tenant_id)
            await self.profile_repo.delete_by_user_id(owner_id)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            cleanup_errors.append("database_rows")
            logger.error("Failed to delete partial tenant rows", error=str(e))

        orphaned_owner_id: UUID | None = None
        try:
            await self.identity.delete_principal(owner_id)
        except Exception as e:
            orphaned_owner_id = owner_id
            cleanup_errors.append("identity_principal")
            logger.error(
                "Failed to delete owner principal - manual cleanup required",
                owner_id=str(owner_id),
                error=str(e),
            )

        surfaced: TablehostError = error
        if cleanup_errors:
            surfaced = ProvisioningFailedError()

        details: dict[str, Any] = {
            "cause_code": error.code,
            "owner_id": str(owner_id),
            "owner_deleted": orphaned_owner_id is None,
        }
        if cleanup_errors:
            details["cleanup_errors"] = cleanup_errors
        if error.details:
            details["cause_details"] = error.details

        await self.request_repo.mark_failed(
            attempt.id,
            error_code=surfaced.code,
            error_message=surfaced.message,
            retryable=surfaced.retryable,
            owner_id=owner_id,
            orphaned_owner_id=orphaned_owner_id,
            requires_manual_cleanup=bool(cleanup_errors),
        )
        await self._record(
            attempt,
            ProvisioningStage.ROLLED_BACK,
            tenant_id=tenant_id,
            error_code=error.code,
            error_message=error.message,
            details=details,
        )
        await self.session.commit()

        logger.info(
            "Provisioning rolled back", code=surfaced.code, manual_cleanup=bool(cleanup_errors)
        )
        return surfaced

    async def _record(
        self,
        attempt: Attempt,
        stage: ProvisioningStage,
        *,
        tenant_id: UUID | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        await self.audit_repo.append(
            attempt.id,
            attempt.idempotency_key,
            stage,
            actor_id=attempt.actor_id,
            tenant_id=tenant_id,
            error_code=error_code,
            error_message=error_message,
            details=details,
            request_id=get_request_id(),
        )
        logger.debug("Provisioning stage recorded", stage=stage.value)


def _as_tablehost_error(exc: Exception) -> TablehostError:
    """Map any failure onto the error taxonomy."""
    if isinstance(exc, TablehostError):
        return exc
    if isinstance(exc, IntegrityError):
        message = str(exc.orig)
        if "slug" in message:
            return SlugUnavailableError(details={"reason": "tenants"})
        if "email" in message:
            return EmailUnavailableError(details={"reason": "tenants"})
        return ProvisioningFailedError()
    if isinstance(exc, IdentityProviderError | OperationalError | TimeoutError | ConnectionError):
        return TransientInfrastructureError(RETRY_WITH_NEW_KEY)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return TransientInfrastructureError(RETRY_WITH_NEW_KEY)
    logger.exception("Unexpected provisioning error", exc_info=exc)
    return ProvisioningFailedError()
