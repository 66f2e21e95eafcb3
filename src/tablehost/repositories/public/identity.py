"""Repositories for profiles and platform employees."""

from typing import Any, cast
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.tablehost.models.base import utc_now
from src.tablehost.models.public import Employee, Profile
from src.tablehost.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    model = Profile

    async def get_by_user_id(self, user_id: UUID) -> Profile | None:
        result = await self.session.execute(select(Profile).where(Profile.user_id == user_id))
        return result.scalar_one_or_none()

    async def email_in_use(self, email: str, exclude_user_id: UUID | None = None) -> bool:
        query = select(Profile.id).where(func.lower(Profile.email) == email.lower())
        if exclude_user_id is not None:
            query = query.where(Profile.user_id != exclude_user_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def update_email(self, user_id: UUID, email: str) -> None:
        await self.session.execute(
            update(Profile)
            .where(Profile.user_id == user_id)  # type: ignore[arg-type]
            .values(email=email, updated_at=utc_now())
        )

    async def delete_by_user_id(self, user_id: UUID) -> int:
        result = await self.session.execute(
            delete(Profile).where(Profile.user_id == user_id)  # type: ignore[arg-type]
        )
        return cast(CursorResult[Any], result).rowcount or 0


class EmployeeRepository(BaseRepository[Employee]):
    model = Employee

    async def get_by_user_id(self, user_id: UUID) -> Employee | None:
        result = await self.session.execute(select(Employee).where(Employee.user_id == user_id))
        return result.scalar_one_or_none()

    async def email_in_use(self, email: str) -> bool:
        result = await self.session.execute(
            select(Employee.id).where(func.lower(Employee.email) == email.lower()).limit(1)
        )
        return result.first() is not None
