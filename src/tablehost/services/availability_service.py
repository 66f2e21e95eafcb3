"""Slug and email availability across every table that holds them.

Pre-checks give precise, user-facing reasons. They are not what makes
provisioning race-safe; the reservation indexes and unique constraints are.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.config import get_settings
from src.tablehost.core.exceptions import (
    EmailUnavailableError,
    ReservedEmailError,
    ReservedSlugError,
    SlugUnavailableError,
)
from src.tablehost.core.identity import IdentityProvider
from src.tablehost.core.security.validators import email_domain
from src.tablehost.repositories import (
    EmployeeRepository,
    ProfileRepository,
    TenantAccessRepository,
    TenantRepository,
)

_EMAIL_OWNERS = {
    "identity": "an existing account",
    "profiles": "an existing user profile",
    "tenants": "another restaurant as its contact email",
    "employees": "a platform employee",
    "tenant_access": "an existing tenant user",
}


class AvailabilityService:
    def __init__(self, session: AsyncSession, identity: IdentityProvider):
        self.identity = identity
        self.tenant_repo = TenantRepository(session)
        self.access_repo = TenantAccessRepository(session)
        self.profile_repo = ProfileRepository(session)
        self.employee_repo = EmployeeRepository(session)

    def ensure_not_reserved(self, slug: str, email: str) -> None:
        settings = get_settings()
        if slug in settings.reserved_slugs:
            raise ReservedSlugError(details={"slug": slug})
        if email_domain(email) in settings.reserved_email_domains:
            raise ReservedEmailError()

    async def ensure_slug_available(self, slug: str) -> None:
        if await self.tenant_repo.exists_by_slug(slug):
            raise SlugUnavailableError(details={"reason": "tenants"})

    async def ensure_email_available(
        self,
        email: str,
        *,
        exclude_user_id: UUID | None = None,
        exclude_tenant_id: UUID | None = None,
        check_identity: bool = True,
    ) -> None:
        """Raise EmailUnavailableError naming the first table that already uses ``email``.

        Args:
            email: Normalized email
            exclude_user_id: Principal allowed to keep the email (credential changes)
            exclude_tenant_id: Tenant allowed to keep the email as contact
            check_identity: Also ask the identity provider
        """
        if check_identity:
            principal = await self.identity.find_principal_by_email(email)
            if principal is not None and principal.id != exclude_user_id:
                raise _email_taken("identity")

        if await self.profile_repo.email_in_use(email, exclude_user_id=exclude_user_id):
            raise _email_taken("profiles")
        if await self.tenant_repo.email_in_use(email, exclude_tenant_id=exclude_tenant_id):
            raise _email_taken("tenants")
        if await self.employee_repo.email_in_use(email):
            raise _email_taken("employees")
        if await self.access_repo.email_in_use(email, exclude_user_id=exclude_user_id):
            raise _email_taken("tenant_access")


def _email_taken(reason: str) -> EmailUnavailableError:
    return EmailUnavailableError(
        f"This email address is already used by {_EMAIL_OWNERS[reason]}",
        details={"reason": reason},
    )
