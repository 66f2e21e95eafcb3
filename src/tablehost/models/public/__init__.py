"""Public schema models.

Every table lives in ``public``; tenant-scoped tables carry a ``tenant_id``
and are filtered by row-level policies (see ``core.isolation``).
"""

from src.tablehost.models.public.audit import AuditAction, AuditLog, AuditStatus
from src.tablehost.models.public.identity import Employee, Profile
from src.tablehost.models.public.provisioning import (
    ProvisioningAuditRecord,
    ProvisioningRequest,
)
from src.tablehost.models.public.tenant import Tenant, TenantAccess
from src.tablehost.models.public.widget import WidgetConfig, WidgetDraft, WidgetEvent

__all__ = [
    # Enums
    "AuditAction",
    "AuditStatus",
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
