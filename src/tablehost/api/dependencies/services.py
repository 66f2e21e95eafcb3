"""Service factory dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends

from src.tablehost.api.dependencies.db import DBSession
from src.tablehost.api.dependencies.identity import IdentityProviderDep
from src.tablehost.api.dependencies.repositories import (
    ProfileRepo,
    ScopedWidgetConfigRepo,
    ScopedWidgetEventRepo,
    TenantAccessRepo,
    TenantRepo,
    WidgetDraftRepo,
    WidgetEventRepo,
)
from src.tablehost.api.dependencies.tenant import ScopedDBSession
from src.tablehost.core.db import get_session
from src.tablehost.repositories import AuditLogRepository
from src.tablehost.services import (
    AuditService,
    AvailabilityService,
    CredentialService,
    ProvisioningService,
    TenantService,
    WidgetAnalyticsService,
    WidgetConfigService,
    WidgetDraftService,
    WidgetEventService,
)


async def get_audit_service() -> AsyncGenerator[AuditService]:
    """Get audit service with its own isolated session.

    Uses a dedicated session that commits independently from business transactions.
    This ensures audit logs are preserved even if the main transaction rolls back.
    """
    async with get_session() as session:
        yield AuditService(AuditLogRepository(session), session)


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]


def get_provisioning_service(
    session: DBSession,
    identity: IdentityProviderDep,
) -> ProvisioningService:
    """Get provisioning service (service session, sees every tenant)."""
    return ProvisioningService(session, identity)


def get_tenant_service(tenant_repo: TenantRepo, session: DBSession) -> TenantService:
    """Get tenant service."""
    return TenantService(tenant_repo, session)


def get_credential_service(
    tenant_repo: TenantRepo,
    access_repo: TenantAccessRepo,
    profile_repo: ProfileRepo,
    identity: IdentityProviderDep,
    audit_service: AuditServiceDep,
    session: DBSession,
) -> CredentialService:
    """Get owner credential service."""
    return CredentialService(
        tenant_repo,
        access_repo,
        profile_repo,
        AvailabilityService(session, identity),
        identity,
        audit_service,
        session,
    )


def get_widget_config_service(
    config_repo: ScopedWidgetConfigRepo,
    audit_service: AuditServiceDep,
    session: ScopedDBSession,
) -> WidgetConfigService:
    """Get widget config service on the caller's scoped session."""
    return WidgetConfigService(config_repo, audit_service, session)


def get_widget_analytics_service(
    event_repo: ScopedWidgetEventRepo,
    session: ScopedDBSession,
) -> WidgetAnalyticsService:
    """Get widget analytics service on the caller's scoped session."""
    return WidgetAnalyticsService(event_repo, session)


def get_widget_event_service(
    tenant_repo: TenantRepo,
    event_repo: WidgetEventRepo,
    session: DBSession,
) -> WidgetEventService:
    """Get public widget event service."""
    return WidgetEventService(tenant_repo, event_repo, session)


def get_widget_draft_service(
    tenant_repo: TenantRepo,
    draft_repo: WidgetDraftRepo,
    session: DBSession,
) -> WidgetDraftService:
    """Get public widget draft service."""
    return WidgetDraftService(tenant_repo, draft_repo, session)


ProvisioningServiceDep = Annotated[ProvisioningService, Depends(get_provisioning_service)]
TenantServiceDep = Annotated[TenantService, Depends(get_tenant_service)]
CredentialServiceDep = Annotated[CredentialService, Depends(get_credential_service)]
WidgetConfigServiceDep = Annotated[WidgetConfigService, Depends(get_widget_config_service)]
WidgetAnalyticsServiceDep = Annotated[
    WidgetAnalyticsService, Depends(get_widget_analytics_service)
]
WidgetEventServiceDep = Annotated[WidgetEventService, Depends(get_widget_event_service)]
WidgetDraftServiceDep = Annotated[WidgetDraftService, Depends(get_widget_draft_service)]
