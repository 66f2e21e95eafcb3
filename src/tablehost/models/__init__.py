"""Model exports.

Import from here: `from src.tablehost.models import Tenant, TenantAccess`
"""

from src.tablehost.models.enums import (
    TERMINAL_STAGES,
    AccessStatus,
    EmployeeRole,
    EmployeeStatus,
    ProfileRole,
    ProvisioningStage,
    ProvisioningStatus,
    TenantPlan,
    TenantStatus,
    WidgetEventType,
    WidgetType,
)
from src.tablehost.models.public import (
    AuditAction,
    AuditLog,
    AuditStatus,
    Employee,
    Profile,
    ProvisioningAuditRecord,
    ProvisioningRequest,
    Tenant,
    TenantAccess,
    WidgetConfig,
    WidgetDraft,
    WidgetEvent,
)

__all__ = [
    # Enums
    "TERMINAL_STAGES",
    "AccessStatus",
    "AuditAction",
    "AuditStatus",
    "EmployeeRole",
    "EmployeeStatus",
    "ProfileRole",
    "ProvisioningStage",
    "ProvisioningStatus",
    "TenantPlan",
    "TenantStatus",
    "WidgetEventType",
    "WidgetType",
    # Models
    "AuditLog",
    "Employee",
    "Profile",
    "ProvisioningAuditRecord",
    "ProvisioningRequest",
    "Tenant",
    "TenantAccess",
    "WidgetConfig",
    "WidgetDraft",
    "WidgetEvent",
]
