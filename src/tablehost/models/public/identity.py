"""Local records tied to identity-provider principals."""

from datetime import datetime
from uuid import UUID, uuid7

from sqlmodel import Field, SQLModel

from src.tablehost.models.base import utc_now
from src.tablehost.models.enums import EmployeeRole, EmployeeStatus, ProfileRole


class Profile(SQLModel, table=True):
    """Application profile of a principal (tenant owners and staff)."""

    __tablename__ = "profiles"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    user_id: UUID = Field(unique=True, index=True)
    email: str = Field(max_length=255, unique=True, index=True)
    full_name: str | None = Field(default=None, max_length=200)
    role: str = Field(default=ProfileRole.OWNER.value, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Employee(SQLModel, table=True):
    """Platform staff member. Active admins may provision tenants."""

    __tablename__ = "employees"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    user_id: UUID = Field(unique=True, index=True)
    email: str = Field(max_length=255, unique=True, index=True)
    role: str = Field(default=EmployeeRole.SUPPORT.value, max_length=20)
    status: str = Field(default=EmployeeStatus.ACTIVE.value, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def can_provision(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE.value and self.role in (
            EmployeeRole.SUPER_ADMIN.value,
            EmployeeRole.ADMIN.value,
        )
