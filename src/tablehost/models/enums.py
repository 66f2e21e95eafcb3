"""Shared enums for models."""

from enum import Enum


class TenantStatus(str, Enum):
    """Tenant lifecycle status. A tenant is only usable once COMPLETED."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TenantPlan(str, Enum):
    STARTER = "starter"
    GROWTH = "growth"
    ENTERPRISE = "enterprise"


class AccessStatus(str, Enum):
    """Access-mapping status. PENDING and COMPLETED grant row access."""

    PENDING = "pending"
    COMPLETED = "completed"
    REVOKED = "revoked"


class ProfileRole(str, Enum):
    OWNER = "owner"
    STAFF = "staff"


class EmployeeRole(str, Enum):
    """Platform staff roles."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    SUPPORT = "SUPPORT"


class EmployeeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ProvisioningStatus(str, Enum):
    """Status of an idempotency record."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProvisioningStage(str, Enum):
    """Stages recorded in the provisioning audit trail, in order."""

    INITIATED = "initiated"
    AUTH_USER_CREATED = "auth_user_created"
    DATABASE_UPDATED = "database_updated"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STAGES


TERMINAL_STAGES = frozenset(
    {ProvisioningStage.COMPLETED, ProvisioningStage.FAILED, ProvisioningStage.ROLLED_BACK}
)


class WidgetType(str, Enum):
    BOOKING = "booking"
    CATERING = "catering"


class WidgetEventType(str, Enum):
    VIEW = "view"
    CLICK = "click"
    BOOKING_STARTED = "booking_started"
    BOOKING_COMPLETED = "booking_completed"
    ERROR = "error"
