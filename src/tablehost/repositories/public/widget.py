"""Repositories for tenant-scoped widget tables.

Queries here never filter by who is asking: in principal-scoped sessions the
row-level policy already limits rows to accessible tenants.
"""

from datetime import date, datetime
from typing import Any, cast
from uuid import UUID

from sqlalchemy import ColumnElement, Float, Integer, case, delete, func, update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.tablehost.models.base import utc_now
from src.tablehost.models.enums import WidgetEventType
from src.tablehost.models.public import WidgetConfig, WidgetDraft, WidgetEvent
from src.tablehost.repositories.base import BaseRepository

# Hour of an "HH:MM" time or of the time part of an ISO datetime
BOOKING_HOUR_PATTERN = r"(?:^|T)([01]\d|2[0-3]):[0-5]\d"


def _in_window(tenant_id: UUID, widget_type: str, since: datetime) -> tuple[Any, ...]:
    return (
        WidgetEvent.tenant_id == tenant_id,
        WidgetEvent.widget_type == widget_type,
        WidgetEvent.created_at >= since,
    )


def _positive_number(key: str) -> ColumnElement[Any]:
    """Property ``key`` as a float when it is a positive JSON number, else NULL."""
    element = WidgetEvent.properties[key]  # type: ignore[index]
    value = element.astext.cast(Float)
    return case(
        (func.jsonb_typeof(element) == "number", case((value > 0, value), else_=None)),
        else_=None,
    )


class WidgetConfigRepository(BaseRepository[WidgetConfig]):
    model = WidgetConfig

    async def get(self, tenant_id: UUID, widget_type: str) -> WidgetConfig | None:
        result = await self.session.execute(
            select(WidgetConfig).where(
                WidgetConfig.tenant_id == tenant_id,
                WidgetConfig.widget_type == widget_type,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_tenant(self, tenant_id: UUID) -> list[WidgetConfig]:
        result = await self.session.execute(
            select(WidgetConfig)
            .where(WidgetConfig.tenant_id == tenant_id)
            .order_by(WidgetConfig.widget_type)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def update_if_version(
        self,
        tenant_id: UUID,
        widget_type: str,
        expected_version: int,
        configuration: dict[str, Any],
        schema_version: int,
        updated_by: UUID | None,
    ) -> WidgetConfig | None:
        """Compare-and-set update.

        Returns:
            The updated row, or None if the row is missing or its version moved on.
        """
        result = await self.session.execute(
            update(WidgetConfig)
            .where(
                WidgetConfig.tenant_id == tenant_id,  # type: ignore[arg-type]
                WidgetConfig.widget_type == widget_type,  # type: ignore[arg-type]
                WidgetConfig.version == expected_version,  # type: ignore[arg-type]
            )
            .values(
                configuration=configuration,
                schema_version=schema_version,
                version=WidgetConfig.version + 1,
                updated_by=updated_by,
                updated_at=utc_now(),
            )
            .returning(WidgetConfig)
        )
        return result.scalar_one_or_none()


class WidgetEventRepository(BaseRepository[WidgetEvent]):
    model = WidgetEvent

    async def count_by_event_type(
        self, tenant_id: UUID, widget_type: str, since: datetime
    ) -> dict[str, int]:
        result = await self.session.execute(
            select(WidgetEvent.event_type, func.count())
            .where(*_in_window(tenant_id, widget_type, since))
            .group_by(WidgetEvent.event_type)
        )
        return {event_type: int(count) for event_type, count in result.all()}

    async def count_unique_sessions(
        self, tenant_id: UUID, widget_type: str, since: datetime
    ) -> int:
        result = await self.session.execute(
            select(func.count(func.distinct(WidgetEvent.session_id))).where(
                *_in_window(tenant_id, widget_type, since)
            )
        )
        return int(result.scalar_one())

    async def list_since(
        self, tenant_id: UUID, widget_type: str, since: datetime, limit: int
    ) -> list[WidgetEvent]:
        result = await self.session.execute(
            select(WidgetEvent)
            .where(*_in_window(tenant_id, widget_type, since))
            .order_by(WidgetEvent.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_day(
        self, tenant_id: UUID, widget_type: str, since: datetime
    ) -> dict[tuple[date, str], int]:
        """Event counts per (UTC day, event type)."""
        day = func.date(WidgetEvent.created_at)
        result = await self.session.execute(
            select(day, WidgetEvent.event_type, func.count())
            .where(*_in_window(tenant_id, widget_type, since))
            .group_by(day, WidgetEvent.event_type)
        )
        return {
            (event_day, event_type): int(count) for event_day, event_type, count in result.all()
        }

    async def top_sources(
        self, tenant_id: UUID, widget_type: str, since: datetime, limit: int
    ) -> list[tuple[str, int]]:
        source = WidgetEvent.properties["source"]  # type: ignore[index]
        # Grouped in an outer query: bound JSON keys differ between SELECT and GROUP BY
        sources = (
            select(source.astext.label("source"))
            .where(
                *_in_window(tenant_id, widget_type, since),
                func.jsonb_typeof(source) == "string",
            )
            .subquery()
        )
        count = func.count().label("count")
        result = await self.session.execute(
            select(sources.c.source, count)
            .where(sources.c.source != "")
            .group_by(sources.c.source)
            .order_by(count.desc(), sources.c.source)
            .limit(limit)
        )
        return [(name, int(total)) for name, total in result.all()]

    async def count_booking_hours(
        self, tenant_id: UUID, widget_type: str, since: datetime
    ) -> dict[int, int]:
        """Completed bookings per hour of their ``booking_time`` property."""
        booking_time = WidgetEvent.properties["booking_time"].astext  # type: ignore[index]
        hours = (
            select(func.substring(booking_time, BOOKING_HOUR_PATTERN).cast(Integer).label("hour"))
            .where(
                *_in_window(tenant_id, widget_type, since),
                WidgetEvent.event_type == WidgetEventType.BOOKING_COMPLETED.value,
            )
            .subquery()
        )
        result = await self.session.execute(
            select(hours.c.hour, func.count())
            .where(hours.c.hour.is_not(None))
            .group_by(hours.c.hour)
        )
        return {int(hour): int(count) for hour, count in result.all()}

    async def average_property(
        self,
        tenant_id: UUID,
        widget_type: str,
        since: datetime,
        key: str,
        event_type: str | None = None,
    ) -> float | None:
        """Mean of a positive numeric property, or None when no event carries one."""
        query = select(func.avg(_positive_number(key))).where(
            *_in_window(tenant_id, widget_type, since)
        )
        if event_type is not None:
            query = query.where(WidgetEvent.event_type == event_type)
        result = await self.session.execute(query)
        average = result.scalar_one()
        return float(average) if average is not None else None


class WidgetDraftRepository(BaseRepository[WidgetDraft]):
    model = WidgetDraft

    async def get(self, tenant_id: UUID, session_id: str) -> WidgetDraft | None:
        result = await self.session.execute(
            select(WidgetDraft).where(
                WidgetDraft.tenant_id == tenant_id,
                WidgetDraft.session_id == session_id,
            )
        )
        return result.scalar_one_or_none()

    async def update_if_version(
        self,
        tenant_id: UUID,
        session_id: str,
        expected_version: int,
        values: dict[str, Any],
    ) -> WidgetDraft | None:
        result = await self.session.execute(
            update(WidgetDraft)
            .where(
                WidgetDraft.tenant_id == tenant_id,  # type: ignore[arg-type]
                WidgetDraft.session_id == session_id,  # type: ignore[arg-type]
                WidgetDraft.version == expected_version,  # type: ignore[arg-type]
            )
            .values(**values, version=WidgetDraft.version + 1, updated_at=utc_now())
            .returning(WidgetDraft)
        )
        return result.scalar_one_or_none()

    async def delete_for_session(self, tenant_id: UUID, session_id: str) -> bool:
        result = await self.session.execute(
            delete(WidgetDraft).where(
                WidgetDraft.tenant_id == tenant_id,  # type: ignore[arg-type]
                WidgetDraft.session_id == session_id,  # type: ignore[arg-type]
            )
        )
        return (cast(CursorResult[Any], result).rowcount or 0) > 0
