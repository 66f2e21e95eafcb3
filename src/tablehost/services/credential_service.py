"""Owner credential management.

Owners set their own password through the identity provider's setup link.
Nothing here ever sets, generates or returns a password.
"""

import asyncio
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.config import get_settings
from src.tablehost.core.exceptions import (
    EmailUnavailableError,
    NotFoundError,
    ReservedEmailError,
    TransientInfrastructureError,
)
from src.tablehost.core.identity import (
    IdentityProvider,
    IdentityProviderError,
    PrincipalAlreadyExistsError,
    PrincipalNotFoundError,
)
from src.tablehost.core.logging import get_logger
from src.tablehost.core.notifications import send_setup_link_email
from src.tablehost.core.security.validators import email_domain
from src.tablehost.models import AuditAction, AuditStatus, Tenant
from src.tablehost.repositories import (
    ProfileRepository,
    TenantAccessRepository,
    TenantRepository,
)
from src.tablehost.schemas.credential import OwnerEmailUpdateResponse, OwnerSetupLinkResponse
from src.tablehost.services.audit_service import AuditService
from src.tablehost.services.availability_service import AvailabilityService

logger = get_logger(__name__)


class CredentialService:
    def __init__(
        self,
        tenant_repo: TenantRepository,
        access_repo: TenantAccessRepository,
        profile_repo: ProfileRepository,
        availability: AvailabilityService,
        identity: IdentityProvider,
        audit_service: AuditService,
        session: AsyncSession,
    ):
        self.tenant_repo = tenant_repo
        self.access_repo = access_repo
        self.profile_repo = profile_repo
        self.availability = availability
        self.identity = identity
        self.audit_service = audit_service
        self.session = session

    async def resend_setup_link(self, tenant_id: UUID, actor_id: UUID) -> OwnerSetupLinkResponse:
        """Email the owner a fresh setup link.

        Raises:
            NotFoundError: Tenant does not exist or never completed provisioning
            TransientInfrastructureError: Link generation or delivery failed
        """
        tenant = await self._get_completed_tenant(tenant_id)

        try:
            await self._send_setup_link(tenant, tenant.email)
        except TransientInfrastructureError as e:
            await self.audit_service.log_action(
                AuditAction.OWNER_SETUP_LINK_RESEND,
                entity_type="owner",
                entity_id=tenant.owner_id,
                actor_id=actor_id,
                tenant_id=tenant.id,
                status=AuditStatus.FAILURE,
                error_message=e.message,
            )
            raise

        await self.audit_service.log_action(
            AuditAction.OWNER_SETUP_LINK_RESEND,
            entity_type="owner",
            entity_id=tenant.owner_id,
            actor_id=actor_id,
            tenant_id=tenant.id,
        )
        logger.info("Setup link re-sent", tenant_id=str(tenant.id))
        return OwnerSetupLinkResponse(tenant_id=tenant.id, setup_link_sent=True)

    async def change_owner_email(
        self, tenant_id: UUID, new_email: str, actor_id: UUID
    ) -> OwnerEmailUpdateResponse:
        """Move the owner (principal, tenant contact, profile, access mapping) to a new email.

        The identity provider is updated first; if the local update then hits a
        uniqueness conflict, the principal's email is switched back.

        Raises:
            NotFoundError: Tenant or its owner principal does not exist
            ReservedEmailError: Email uses a reserved system domain
            EmailUnavailableError: Email already belongs to someone else
        """
        tenant = await self._get_completed_tenant(tenant_id)
        owner_id = tenant.owner_id
        old_email = tenant.email

        if new_email == old_email:
            return OwnerEmailUpdateResponse(
                tenant_id=tenant.id, email=old_email, setup_link_sent=False
            )

        if email_domain(new_email) in get_settings().reserved_email_domains:
            raise ReservedEmailError()

        await self.availability.ensure_email_available(
            new_email, exclude_user_id=owner_id, exclude_tenant_id=tenant.id
        )

        try:
            await self.identity.update_principal_email(owner_id, new_email)
        except PrincipalAlreadyExistsError as e:
            raise EmailUnavailableError(details={"reason": "identity"}) from e
        except PrincipalNotFoundError as e:
            logger.error(
                "Owner principal missing", tenant_id=str(tenant.id), owner_id=str(owner_id)
            )
            raise NotFoundError("Owner account not found") from e

        try:
            await self.tenant_repo.update_email(tenant.id, new_email)
            await self.profile_repo.update_email(owner_id, new_email)
            await self.access_repo.update_email_for_user(owner_id, new_email)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            await self._restore_principal_email(owner_id, old_email)
            raise EmailUnavailableError() from e
        except Exception:
            await self.session.rollback()
            await self._restore_principal_email(owner_id, old_email)
            raise

        await self.audit_service.log_action(
            AuditAction.OWNER_EMAIL_CHANGE,
            entity_type="owner",
            entity_id=owner_id,
            actor_id=actor_id,
            tenant_id=tenant.id,
            changes={"email": {"old": old_email, "new": new_email}},
        )
        logger.info("Owner email changed", tenant_id=str(tenant.id))

        setup_link_sent = True
        try:
            await self._send_setup_link(tenant, new_email)
        except TransientInfrastructureError:
            # The change itself is committed; the owner can request another link
            setup_link_sent = False
            logger.warning("Setup link not sent after email change", tenant_id=str(tenant.id))

        return OwnerEmailUpdateResponse(
            tenant_id=tenant.id, email=new_email, setup_link_sent=setup_link_sent
        )

    async def _get_completed_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if tenant is None or not tenant.is_completed:
            raise NotFoundError("Tenant not found")
        return tenant

    async def _send_setup_link(self, tenant: Tenant, email: str) -> None:
        try:
            link = await self.identity.generate_setup_link(
                email, get_settings().setup_link_redirect_url
            )
        except IdentityProviderError as e:
            raise TransientInfrastructureError("Setup link could not be generated") from e

        sent = await asyncio.to_thread(send_setup_link_email, email, link, tenant.name)
        if not sent:
            raise TransientInfrastructureError("The setup email could not be delivered")

    async def _restore_principal_email(self, owner_id: UUID, email: str) -> None:
        try:
            await self.identity.update_principal_email(owner_id, email)
        except Exception as e:
            logger.error(
                "Failed to restore owner principal email - manual fix required",
                owner_id=str(owner_id),
                error=str(e),
            )
