"""Authentication and authorization dependencies.

Access tokens are issued by the identity provider; this service only
verifies them. The token subject is the principal id used by the tenant
isolation policy.
"""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from src.tablehost.api.dependencies.db import DBSession
from src.tablehost.core.logging import bind_principal_context
from src.tablehost.core.security import decode_access_token
from src.tablehost.models import Employee
from src.tablehost.repositories import EmployeeRepository


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    id: UUID
    email: str | None = None


async def get_current_principal(
    authorization: Annotated[str | None, Header()] = None,
) -> AuthenticatedPrincipal:
    """Validate the bearer token and return the calling principal."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
        )

    payload = decode_access_token(authorization[7:])
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        principal_id = UUID(subject)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid subject in token",
        ) from e

    principal = AuthenticatedPrincipal(id=principal_id, email=payload.get("email"))
    bind_principal_context(principal.id, email=principal.email)
    return principal


CurrentPrincipal = Annotated[AuthenticatedPrincipal, Depends(get_current_principal)]


async def require_platform_admin(
    principal: CurrentPrincipal,
    session: DBSession,
) -> Employee:
    """Require an active platform admin (may provision and manage tenants)."""
    employee = await EmployeeRepository(session).get_by_user_id(principal.id)
    if employee is None or not employee.can_provision:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Platform admin privileges required",
        )
    return employee


PlatformAdmin = Annotated[Employee, Depends(require_platform_admin)]
