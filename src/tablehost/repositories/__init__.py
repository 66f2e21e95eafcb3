"""Repository layer - data access abstraction."""

from src.tablehost.repositories.base import BaseRepository
from src.tablehost.repositories.public import (
    AuditLogRepository,
    EmployeeRepository,
    ProfileRepository,
    ProvisioningAuditRepository,
    ProvisioningRequestRepository,
    TenantAccessRepository,
    TenantRepository,
    WidgetConfigRepository,
    WidgetDraftRepository,
    WidgetEventRepository,
)

__all__ = [
    # Base
    "BaseRepository",
    # Public schema
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
