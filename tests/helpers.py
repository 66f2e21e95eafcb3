"""Test helpers: an in-memory identity provider and auth headers."""

from dataclasses import dataclass
from typing import Any
from uuid import UUID, uuid7

from src.tablehost.core.identity import (
    IdentityProvider,
    IdentityProviderError,
    Principal,
    PrincipalAlreadyExistsError,
    PrincipalNotFoundError,
)
from src.tablehost.core.security import create_access_token
from src.tablehost.models import Tenant


class FakeIdentityProvider(IdentityProvider):
    """Identity provider backed by a dict.

    Set the ``fail_*`` flags to make the matching call raise
    IdentityProviderError, as a provider outage would. ``fail_after_create``
    stores the principal before raising, like a create that timed out after
    the provider committed it.
    """

    def __init__(self) -> None:
        self.principals: dict[UUID, Principal] = {}
        self.setup_links: list[tuple[str, str]] = []
        self.deleted: list[UUID] = []
        self.fail_create = False
        self.fail_after_create = False
        self.fail_find = False
        self.fail_get = False
        self.fail_delete = False
        self.fail_update = False
        self.fail_setup_link = False

    def add(self, email: str, principal_id: UUID | None = None) -> Principal:
        principal = Principal(id=principal_id or uuid7(), email=email.lower())
        self.principals[principal.id] = principal
        return principal

    async def create_principal(
        self,
        email: str,
        user_metadata: dict[str, Any] | None = None,
    ) -> Principal:
        if self.fail_create:
            raise IdentityProviderError("create failed", status_code=503)
        if any(p.email == email.lower() for p in self.principals.values()):
            raise PrincipalAlreadyExistsError("exists", status_code=422)
        principal = Principal(id=uuid7(), email=email.lower(), user_metadata=user_metadata or {})
        self.principals[principal.id] = principal
        if self.fail_after_create:
            raise IdentityProviderError("Identity provider timed out")
        return principal

    async def get_principal(self, principal_id: UUID) -> Principal | None:
        if self.fail_get:
            raise IdentityProviderError("get failed", status_code=503)
        return self.principals.get(principal_id)

    async def find_principal_by_email(self, email: str) -> Principal | None:
        if self.fail_find:
            raise IdentityProviderError("find failed", status_code=503)
        for principal in self.principals.values():
            if principal.email == email.lower():
                return principal
        return None

    async def delete_principal(self, principal_id: UUID) -> bool:
        if self.fail_delete:
            raise IdentityProviderError("delete failed", status_code=503)
        self.deleted.append(principal_id)
        return self.principals.pop(principal_id, None) is not None

    async def update_principal_email(self, principal_id: UUID, email: str) -> Principal:
        if self.fail_update:
            raise IdentityProviderError("update failed", status_code=503)
        current = self.principals.get(principal_id)
        if current is None:
            raise PrincipalNotFoundError("not found", status_code=404)
        if any(
            p.email == email.lower() and p.id != principal_id for p in self.principals.values()
        ):
            raise PrincipalAlreadyExistsError("exists", status_code=422)
        updated = Principal(id=principal_id, email=email.lower())
        self.principals[principal_id] = updated
        return updated

    async def generate_setup_link(self, email: str, redirect_to: str) -> str:
        if self.fail_setup_link:
            raise IdentityProviderError("link failed", status_code=503)
        self.setup_links.append((email, redirect_to))
        return f"https://identity.test/verify?token=one-time&redirect_to={redirect_to}"


@dataclass
class TenantWithOwner:
    tenant: Tenant
    headers: dict[str, str]


def auth_headers(principal_id: UUID, email: str | None = None) -> dict[str, str]:
    """Bearer header with a token signed like the identity provider's."""
    return {"Authorization": f"Bearer {create_access_token(principal_id, email=email)}"}
