from src.tablehost.schemas.audit import AuditLogListResponse, AuditLogRead
from src.tablehost.schemas.credential import (
    OwnerEmailUpdate,
    OwnerEmailUpdateResponse,
    OwnerSetupLinkResponse,
)
from src.tablehost.schemas.pagination import PaginatedResponse, decode_cursor, encode_cursor
from src.tablehost.schemas.provisioning import (
    ProvisioningAuditRead,
    ProvisioningCleanupItem,
    ProvisionTenantRequest,
    ProvisionTenantResponse,
)
from src.tablehost.schemas.tenant import TenantRead, TenantStatusResponse
from src.tablehost.schemas.widget import (
    AnalyticsSource,
    AnalyticsTimeRange,
    BookingWidgetConfig,
    CateringWidgetConfig,
    WidgetAnalyticsSummary,
    WidgetConfigRead,
    WidgetConfigUpdate,
    WidgetDraftRead,
    WidgetDraftSave,
    WidgetEventAccepted,
    WidgetEventCreate,
)

__all__ = [
    # Audit
    "AuditLogListResponse",
    "AuditLogRead",
    # Credentials
    "OwnerEmailUpdate",
    "OwnerEmailUpdateResponse",
    "OwnerSetupLinkResponse",
    # Pagination
    "PaginatedResponse",
    "decode_cursor",
    "encode_cursor",
    # Provisioning
    "ProvisionTenantRequest",
    "ProvisionTenantResponse",
    "ProvisioningAuditRead",
    "ProvisioningCleanupItem",
    # Tenant
    "TenantRead",
    "TenantStatusResponse",
    # Widgets
    "AnalyticsSource",
    "AnalyticsTimeRange",
    "BookingWidgetConfig",
    "CateringWidgetConfig",
    "WidgetAnalyticsSummary",
    "WidgetConfigRead",
    "WidgetConfigUpdate",
    "WidgetDraftRead",
    "WidgetDraftSave",
    "WidgetEventAccepted",
    "WidgetEventCreate",
]
