"""Repositories for tables in the public schema."""

from src.tablehost.repositories.public.audit import AuditLogRepository
from src.tablehost.repositories.public.identity import EmployeeRepository, ProfileRepository
from src.tablehost.repositories.public.provisioning import (
    ProvisioningAuditRepository,
    ProvisioningRequestRepository,
)
from src.tablehost.repositories.public.tenant import TenantAccessRepository, TenantRepository
from src.tablehost.repositories.public.widget import (
    WidgetConfigRepository,
    WidgetDraftRepository,
    WidgetEventRepository,
)

__all__ = [
    "AuditLogRepository",
    "EmployeeRepository",
    "ProfileRepository",
    "ProvisioningAuditRepository",
    "ProvisioningRequestRepository",
    "TenantAccessRepository",
    "TenantRepository",
    "WidgetConfigRepository",
    "WidgetDraftRepository",
    "WidgetEventRepository",
]
