"""GoTrue admin API client.

Talks to ``/auth/v1/admin/*`` with the service key. The ``httpx.AsyncClient``
is injected so each request gets its own client (see
``api.dependencies.identity``) and tests can use ``httpx.MockTransport``.
"""

from typing import Any
from uuid import UUID

import httpx

from src.tablehost.core.identity.base import (
    IdentityProvider,
    IdentityProviderError,
    Principal,
    PrincipalAlreadyExistsError,
    PrincipalNotFoundError,
)
from src.tablehost.core.logging import get_logger

logger = get_logger(__name__)

ADMIN_PREFIX = "/auth/v1/admin"
_EMAIL_EXISTS_MARKERS = ("email_exists", "already been registered", "already exists")


class GoTrueIdentityProvider(IdentityProvider):
    def __init__(self, client: httpx.AsyncClient, base_url: str, service_key: str):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
            "Content-Type": "application/json",
        }

    async def create_principal(
        self,
        email: str,
        user_metadata: dict[str, Any] | None = None,
    ) -> Principal:
        response = await self._request(
            "POST",
            "/users",
            json={
                "email": email,
                "email_confirm": True,
                "user_metadata": user_metadata or {},
            },
        )
        if response.status_code in (409, 422) and _mentions_existing_email(response):
            raise PrincipalAlreadyExistsError(
                "Principal already exists", status_code=response.status_code
            )
        self._raise_for_status(response, "create principal")
        return _to_principal(response.json())

    async def get_principal(self, principal_id: UUID) -> Principal | None:
        response = await self._request("GET", f"/users/{principal_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "get principal")
        return _to_principal(response.json())

    async def find_principal_by_email(self, email: str) -> Principal | None:
        response = await self._request(
            "GET",
            "/users",
            params={"filter": email, "page": 1, "per_page": 50},
        )
        self._raise_for_status(response, "find principal")
        payload = response.json()
        users = payload.get("users", []) if isinstance(payload, dict) else payload
        wanted = email.lower()
        # The filter is a substring match; only an exact email counts
        for user in users:
            if (user.get("email") or "").lower() == wanted:
                return _to_principal(user)
        return None

    async def delete_principal(self, principal_id: UUID) -> bool:
        response = await self._request("DELETE", f"/users/{principal_id}")
        if response.status_code == 404:
            return False
        self._raise_for_status(response, "delete principal")
        return True

    async def update_principal_email(self, principal_id: UUID, email: str) -> Principal:
        response = await self._request(
            "PUT",
            f"/users/{principal_id}",
            json={"email": email, "email_confirm": True},
        )
        if response.status_code == 404:
            raise PrincipalNotFoundError("Principal not found", status_code=404)
        if response.status_code in (409, 422) and _mentions_existing_email(response):
            raise PrincipalAlreadyExistsError(
                "Email already registered", status_code=response.status_code
            )
        self._raise_for_status(response, "update principal email")
        return _to_principal(response.json())

    async def generate_setup_link(self, email: str, redirect_to: str) -> str:
        response = await self._request(
            "POST",
            "/generate_link",
            json={"type": "recovery", "email": email, "redirect_to": redirect_to},
        )
        self._raise_for_status(response, "generate setup link")
        payload = response.json()
        link = payload.get("action_link") or payload.get("properties", {}).get("action_link")
        if not link:
            raise IdentityProviderError("Identity provider returned no setup link")
        return str(link)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{ADMIN_PREFIX}{path}"
        try:
            return await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Identity provider timed out", method=method, path=path)
            raise IdentityProviderError("Identity provider timed out") from e
        except httpx.HTTPError as e:
            logger.warning("Identity provider unreachable", method=method, path=path, error=str(e))
            raise IdentityProviderError("Identity provider unreachable") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return
        logger.error(
            "Identity provider request failed",
            operation=operation,
            status_code=response.status_code,
        )
        raise IdentityProviderError(
            f"Identity provider failed to {operation}",
            status_code=response.status_code,
        )


def _mentions_existing_email(response: httpx.Response) -> bool:
    body = response.text.lower()
    return any(marker in body for marker in _EMAIL_EXISTS_MARKERS)


def _to_principal(data: dict[str, Any]) -> Principal:
    # generate_link and some proxies wrap the user object
    user = data.get("user", data)
    return Principal(
        id=UUID(str(user["id"])),
        email=(user.get("email") or "").lower(),
        email_confirmed=bool(user.get("email_confirmed_at")),
        user_metadata=user.get("user_metadata") or {},
    )
