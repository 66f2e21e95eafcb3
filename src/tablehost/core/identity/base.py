"""Identity provider contract.

Owner credentials live in an external identity provider. This service only
creates, looks up, re-addresses and deletes principals there, and asks the
provider for one-time setup links. Passwords are never handled here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class Principal:
    """A user account held by the identity provider."""

    id: UUID
    email: str
    email_confirmed: bool = False
    user_metadata: dict[str, Any] = field(default_factory=dict)


class IdentityProviderError(Exception):
    """The provider failed or could not be reached. Safe to retry."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PrincipalAlreadyExistsError(IdentityProviderError):
    """A principal with this email already exists."""


class PrincipalNotFoundError(IdentityProviderError):
    """No principal with this id."""


class IdentityProvider(ABC):
    @abstractmethod
    async def create_principal(
        self,
        email: str,
        user_metadata: dict[str, Any] | None = None,
    ) -> Principal:
        """Create a principal without a password. The owner sets one via a setup link."""

    @abstractmethod
    async def get_principal(self, principal_id: UUID) -> Principal | None: ...

    @abstractmethod
    async def find_principal_by_email(self, email: str) -> Principal | None: ...

    @abstractmethod
    async def delete_principal(self, principal_id: UUID) -> bool:
        """Delete a principal. Returns False if it did not exist."""

    @abstractmethod
    async def update_principal_email(self, principal_id: UUID, email: str) -> Principal: ...

    @abstractmethod
    async def generate_setup_link(self, email: str, redirect_to: str) -> str:
        """Return a one-time link that lets the principal choose a password."""
