"""Tests for the GoTrue admin client against httpx.MockTransport."""

import json
from collections.abc import Callable
from uuid import uuid7

import httpx
import pytest

from src.tablehost.core.identity import (
    IdentityProviderError,
    PrincipalAlreadyExistsError,
    PrincipalNotFoundError,
)
from src.tablehost.core.identity.gotrue import GoTrueIdentityProvider

pytestmark = pytest.mark.unit

BASE_URL = "https://identity.test"


def _provider(handler: Callable[[httpx.Request], httpx.Response]) -> GoTrueIdentityProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoTrueIdentityProvider(client, BASE_URL + "/", "service-key")


def _user(email: str = "owner@acme.example", **extra) -> dict:
    return {"id": str(uuid7()), "email": email, **extra}


class TestCreatePrincipal:
    async def test_posts_to_admin_users(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_user("Owner@Acme.example"))

        principal = await _provider(handler).create_principal(
            "owner@acme.example", user_metadata={"role": "owner"}
        )

        assert principal.email == "owner@acme.example"
        [request] = seen
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/auth/v1/admin/users"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"
        body = json.loads(request.content)
        assert body["email_confirm"] is True
        assert body["user_metadata"] == {"role": "owner"}
        assert "password" not in body

    @pytest.mark.parametrize(
        "status, message",
        [
            (422, {"error_code": "email_exists"}),
            (422, {"msg": "A user with this email address has already been registered"}),
            (409, {"msg": "User already exists"}),
        ],
    )
    async def test_duplicate_email(self, status, message):
        provider = _provider(lambda request: httpx.Response(status, json=message))

        with pytest.raises(PrincipalAlreadyExistsError):
            await provider.create_principal("owner@acme.example")

    async def test_other_422_is_generic_error(self):
        provider = _provider(lambda request: httpx.Response(422, json={"msg": "weak input"}))

        with pytest.raises(IdentityProviderError) as exc_info:
            await provider.create_principal("owner@acme.example")

        assert not isinstance(exc_info.value, PrincipalAlreadyExistsError)
        assert exc_info.value.status_code == 422

    async def test_server_error(self):
        provider = _provider(lambda request: httpx.Response(500))

        with pytest.raises(IdentityProviderError):
            await provider.create_principal("owner@acme.example")

    async def test_timeout_is_provider_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(IdentityProviderError):
            await _provider(handler).create_principal("owner@acme.example")

    async def test_connection_error_is_provider_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(IdentityProviderError):
            await _provider(handler).create_principal("owner@acme.example")


class TestLookup:
    async def test_get_principal(self):
        user = _user(email_confirmed_at="2026-01-01T00:00:00Z")
        provider = _provider(lambda request: httpx.Response(200, json=user))

        principal = await provider.get_principal(uuid7())

        assert str(principal.id) == user["id"]
        assert principal.email_confirmed is True

    async def test_get_missing_principal(self):
        provider = _provider(lambda request: httpx.Response(404))
        assert await provider.get_principal(uuid7()) is None

    async def test_find_by_email_requires_exact_match(self):
        users = {"users": [_user("owner@acme.example.org"), _user("OWNER@acme.example")]}
        provider = _provider(lambda request: httpx.Response(200, json=users))

        principal = await provider.find_principal_by_email("owner@acme.example")

        assert principal is not None
        assert principal.email == "owner@acme.example"

    async def test_find_by_email_no_match(self):
        users = {"users": [_user("someone.owner@acme.example")]}
        provider = _provider(lambda request: httpx.Response(200, json=users))

        assert await provider.find_principal_by_email("owner@acme.example") is None


class TestMutations:
    async def test_delete_principal(self):
        provider = _provider(lambda request: httpx.Response(200, json={}))
        assert await provider.delete_principal(uuid7()) is True

    async def test_delete_missing_principal(self):
        provider = _provider(lambda request: httpx.Response(404))
        assert await provider.delete_principal(uuid7()) is False

    async def test_update_email(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT"
            return httpx.Response(200, json=_user(json.loads(request.content)["email"]))

        principal = await _provider(handler).update_principal_email(uuid7(), "new@acme.example")

        assert principal.email == "new@acme.example"

    async def test_update_missing_principal(self):
        provider = _provider(lambda request: httpx.Response(404))

        with pytest.raises(PrincipalNotFoundError):
            await provider.update_principal_email(uuid7(), "new@acme.example")

    async def test_update_to_taken_email(self):
        provider = _provider(lambda request: httpx.Response(422, json={"code": "email_exists"}))

        with pytest.raises(PrincipalAlreadyExistsError):
            await provider.update_principal_email(uuid7(), "taken@acme.example")


class TestGenerateSetupLink:
    @pytest.mark.parametrize(
        "payload",
        [
            {"action_link": "https://identity.test/verify?token=t"},
            {"properties": {"action_link": "https://identity.test/verify?token=t"}},
        ],
    )
    async def test_returns_action_link(self, payload):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json=payload)

        link = await _provider(handler).generate_setup_link(
            "owner@acme.example", "https://app.test/auth/setup"
        )

        assert link == "https://identity.test/verify?token=t"
        assert seen[0]["type"] == "recovery"
        assert seen[0]["redirect_to"] == "https://app.test/auth/setup"

    async def test_missing_link_is_error(self):
        provider = _provider(lambda request: httpx.Response(200, json={"user": _user()}))

        with pytest.raises(IdentityProviderError):
            await provider.generate_setup_link("owner@acme.example", "https://app.test")
