from src.tablehost.services.audit_service import AuditService
from src.tablehost.services.availability_service import AvailabilityService
from src.tablehost.services.credential_service import CredentialService
from src.tablehost.services.provisioning_service import ProvisioningService
from src.tablehost.services.tenant_service import TenantService
from src.tablehost.services.widget_analytics_service import WidgetAnalyticsService
from src.tablehost.services.widget_config_service import WidgetConfigService
from src.tablehost.services.widget_draft_service import WidgetDraftService
from src.tablehost.services.widget_event_service import WidgetEventService

__all__ = [
    "AuditService",
    "AvailabilityService",
    "CredentialService",
    "ProvisioningService",
    "TenantService",
    "WidgetAnalyticsService",
    "WidgetConfigService",
    "WidgetDraftService",
    "WidgetEventService",
]
