"""Profile and employee factories for test data generation."""

from polyfactory import Use

from src.tablehost.models import Employee, EmployeeRole, EmployeeStatus, Profile, ProfileRole
from tests.factories.base import BaseFactory, generate_uuid7, short_id, utc_now


class ProfileFactory(BaseFactory):
    __model__ = Profile

    id = Use(generate_uuid7)
    user_id = Use(generate_uuid7)
    email = Use(lambda: f"profile_{short_id()}@example.com")
    full_name = "Test Owner"
    role = ProfileRole.OWNER.value
    created_at = Use(utc_now)
    updated_at = Use(utc_now)


class EmployeeFactory(BaseFactory):
    """Factory for platform staff. Defaults to an active ADMIN."""

    __model__ = Employee

    id = Use(generate_uuid7)
    user_id = Use(generate_uuid7)
    email = Use(lambda: f"staff_{short_id()}@tablehost.example")
    role = EmployeeRole.ADMIN.value
    status = EmployeeStatus.ACTIVE.value
    created_at = Use(utc_now)

    @classmethod
    def support(cls, **kwargs):
        """Create a SUPPORT employee (may not provision)."""
        return cls.build(role=EmployeeRole.SUPPORT.value, **kwargs)

    @classmethod
    def inactive(cls, **kwargs):
        return cls.build(status=EmployeeStatus.INACTIVE.value, **kwargs)
