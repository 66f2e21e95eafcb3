"""FastAPI dependency injection definitions."""

# Auth
from src.tablehost.api.dependencies.auth import (
    AuthenticatedPrincipal,
    CurrentPrincipal,
    PlatformAdmin,
    get_current_principal,
    require_platform_admin,
)

# Database
from src.tablehost.api.dependencies.db import DBSession, get_db_session

# Identity provider
from src.tablehost.api.dependencies.identity import IdentityProviderDep, get_identity_provider

# Repositories
from src.tablehost.api.dependencies.repositories import (
    ProfileRepo,
    ScopedWidgetConfigRepo,
    ScopedWidgetEventRepo,
    TenantAccessRepo,
    TenantRepo,
    WidgetDraftRepo,
    WidgetEventRepo,
)

# Services
from src.tablehost.api.dependencies.services import (
    AuditServiceDep,
    CredentialServiceDep,
    ProvisioningServiceDep,
    TenantServiceDep,
    WidgetAnalyticsServiceDep,
    WidgetConfigServiceDep,
    WidgetDraftServiceDep,
    WidgetEventServiceDep,
    get_audit_service,
    get_provisioning_service,
)

# Tenant
from src.tablehost.api.dependencies.tenant import (
    AccessibleTenant,
    ScopedDBSession,
    get_accessible_tenant,
    get_scoped_db_session,
)

__all__ = [
    # Auth
    "AuthenticatedPrincipal",
    "CurrentPrincipal",
    "PlatformAdmin",
    "get_current_principal",
    "require_platform_admin",
    # Database
    "DBSession",
    "ScopedDBSession",
    "get_db_session",
    "get_scoped_db_session",
    # Identity provider
    "IdentityProviderDep",
    "get_identity_provider",
    # Tenant
    "AccessibleTenant",
    "get_accessible_tenant",
    # Repositories
    "ProfileRepo",
    "ScopedWidgetConfigRepo",
    "ScopedWidgetEventRepo",
    "TenantAccessRepo",
    "TenantRepo",
    "WidgetDraftRepo",
    "WidgetEventRepo",
    # Services
    "AuditServiceDep",
    "CredentialServiceDep",
    "ProvisioningServiceDep",
    "TenantServiceDep",
    "WidgetAnalyticsServiceDep",
    "WidgetConfigServiceDep",
    "WidgetDraftServiceDep",
    "WidgetEventServiceDep",
    "get_audit_service",
    "get_provisioning_service",
]
