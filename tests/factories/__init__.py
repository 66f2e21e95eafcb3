"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import TenantFactory, EmployeeFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid7, utc_now
from tests.factories.identity import EmployeeFactory, ProfileFactory
from tests.factories.provisioning import ProvisioningRequestFactory
from tests.factories.tenant import TenantAccessFactory, TenantFactory
from tests.factories.widget import WidgetConfigFactory, WidgetDraftFactory, WidgetEventFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid7",
    "utc_now",
    # Tenant
    "TenantAccessFactory",
    "TenantFactory",
    # Identity
    "EmployeeFactory",
    "ProfileFactory",
    # Provisioning
    "ProvisioningRequestFactory",
    # Widgets
    "WidgetConfigFactory",
    "WidgetDraftFactory",
    "WidgetEventFactory",
]
