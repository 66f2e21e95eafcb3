"""Integration tests for tenant lookup and the admin audit log."""

import pytest
from httpx import AsyncClient

from tests.helpers import FakeIdentityProvider, TenantWithOwner

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


class TestTenantLookup:
    async def test_status_for_admin(
        self, client: AsyncClient, platform_admin: dict, tenant_a: TenantWithOwner
    ):
        response = await client.get(
            f"/api/v1/tenants/{tenant_a.tenant.slug}/status", headers=platform_admin["headers"]
        )

        assert response.status_code == 200
        assert response.json() == {
            "tenant_id": str(tenant_a.tenant.id),
            "slug": tenant_a.tenant.slug,
            "status": "completed",
            "is_active": True,
        }

    async def test_get_by_slug(
        self, client: AsyncClient, platform_admin: dict, tenant_a: TenantWithOwner
    ):
        response = await client.get(
            f"/api/v1/tenants/{tenant_a.tenant.slug}", headers=platform_admin["headers"]
        )

        assert response.status_code == 200
        assert response.json()["owner_id"] == str(tenant_a.tenant.owner_id)
        assert "password" not in response.text

    async def test_unknown_slug(self, client: AsyncClient, platform_admin: dict):
        response = await client.get(
            "/api/v1/tenants/no-such-tenant/status", headers=platform_admin["headers"]
        )

        assert response.status_code == 404
        assert "request_id" in response.json()

    async def test_owner_cannot_look_up_tenants(
        self, client: AsyncClient, tenant_a: TenantWithOwner
    ):
        response = await client.get(
            f"/api/v1/tenants/{tenant_a.tenant.slug}/status", headers=tenant_a.headers
        )

        assert response.status_code == 403

    async def test_list_pagination(
        self,
        client: AsyncClient,
        tenant_a: TenantWithOwner,
    ):
        response = await client.get("/api/v1/tenants?limit=1", headers=tenant_a.headers)

        assert response.status_code == 200
        assert len(response.json()["items"]) == 1
        assert response.json()["next_cursor"] is None


class TestAuditLogs:
    async def test_setup_link_resend_is_listed(
        self,
        client: AsyncClient,
        fake_identity: FakeIdentityProvider,
        platform_admin: dict,
        tenant_a: TenantWithOwner,
    ):
        fake_identity.add(tenant_a.tenant.email, tenant_a.tenant.owner_id)
        resend = await client.post(
            f"/api/v1/tenants/{tenant_a.tenant.id}/owner/setup-link",
            headers={**platform_admin["headers"], "User-Agent": "ops-console/1.0"},
        )
        assert resend.status_code == 200

        response = await client.get(
            f"/api/v1/audit/logs?tenant_id={tenant_a.tenant.id}",
            headers=platform_admin["headers"],
        )

        assert response.status_code == 200
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["action"] == "owner.setup_link_resend"
        assert items[0]["actor_id"] == str(platform_admin["id"])
        assert items[0]["entity_id"] == str(tenant_a.tenant.owner_id)
        assert items[0]["user_agent"] == "ops-console/1.0"
        assert items[0]["request_id"] == resend.headers["X-Request-ID"]

    async def test_owner_cannot_read_audit_logs(
        self, client: AsyncClient, tenant_a: TenantWithOwner
    ):
        response = await client.get("/api/v1/audit/logs", headers=tenant_a.headers)

        assert response.status_code == 403
