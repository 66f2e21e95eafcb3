"""Widget analytics with a tiered read path.

1. Aggregate: ``GROUP BY`` queries in SQL.
2. Raw events: filtered rows counted in Python (capped).
3. Empty: explicit no-data state.

A tier that raises is logged and the next one is tried. No tier ever invents
numbers: a summary without events has ``has_data = False`` and null metrics,
and a metric no event carries a property for stays null.
"""

import re
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from statistics import fmean
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.tablehost.core.config import get_settings
from src.tablehost.core.logging import get_logger
from src.tablehost.models import WidgetEvent, WidgetEventType, WidgetType
from src.tablehost.models.base import utc_now
from src.tablehost.repositories import WidgetEventRepository
from src.tablehost.repositories.public.widget import BOOKING_HOUR_PATTERN
from src.tablehost.schemas.widget import (
    AnalyticsSource,
    AnalyticsTimeRange,
    DailyWidgetStats,
    PeakHour,
    SourceCount,
    WidgetAnalyticsSummary,
)

logger = get_logger(__name__)

TOP_SOURCES = 5
PEAK_HOURS = 3

_BOOKING_HOUR = re.compile(BOOKING_HOUR_PATTERN)


@dataclass
class EventTotals:
    """What a read tier gathered for one widget and window."""

    counts: dict[str, int]
    unique_sessions: int
    daily: dict[tuple[date, str], int]
    top_sources: list[tuple[str, int]]
    booking_hours: dict[int, int]
    avg_party_size: float | None = None
    avg_order_value: float | None = None
    avg_session_duration: float | None = None


class WidgetAnalyticsService:
    def __init__(self, event_repo: WidgetEventRepository, session: AsyncSession):
        self.event_repo = event_repo
        self.session = session

    async def get_summary(
        self,
        tenant_id: UUID,
        widget_type: WidgetType,
        time_range: AnalyticsTimeRange,
    ) -> WidgetAnalyticsSummary:
        since = utc_now() - time_range.delta

        try:
            totals = await self._aggregate(tenant_id, widget_type, since)
            return _summarize(
                tenant_id, widget_type, time_range, since, AnalyticsSource.AGGREGATE, totals
            )
        except Exception as e:
            logger.warning(
                "Analytics aggregate query failed, falling back to raw events",
                tenant_id=str(tenant_id),
                widget_type=widget_type.value,
                error=str(e),
            )
            await self.session.rollback()

        try:
            max_rows = get_settings().widget_analytics_max_rows
            events = await self.event_repo.list_since(tenant_id, widget_type.value, since, max_rows)
            if len(events) >= max_rows:
                logger.warning(
                    "Analytics raw-event fallback hit the row cap",
                    tenant_id=str(tenant_id),
                    max_rows=max_rows,
                )
            return _summarize(
                tenant_id,
                widget_type,
                time_range,
                since,
                AnalyticsSource.RAW_EVENTS,
                totals_from_events(events, widget_type),
            )
        except Exception as e:
            logger.error(
                "Analytics raw-event query failed, returning empty state",
                tenant_id=str(tenant_id),
                widget_type=widget_type.value,
                error=str(e),
            )
            await self.session.rollback()

        return empty_summary(tenant_id, widget_type, time_range, AnalyticsSource.EMPTY)

    async def _aggregate(
        self, tenant_id: UUID, widget_type: WidgetType, since: datetime
    ) -> EventTotals:
        repo = self.event_repo
        args = (tenant_id, widget_type.value, since)
        completed = WidgetEventType.BOOKING_COMPLETED.value

        totals = EventTotals(
            counts=await repo.count_by_event_type(*args),
            unique_sessions=await repo.count_unique_sessions(*args),
            daily=await repo.count_by_day(*args),
            top_sources=await repo.top_sources(*args, TOP_SOURCES),
            booking_hours={},
            avg_session_duration=await repo.average_property(*args, "session_duration"),
        )
        if widget_type == WidgetType.BOOKING:
            totals.booking_hours = await repo.count_booking_hours(*args)
            totals.avg_party_size = await repo.average_property(*args, "party_size", completed)
        elif widget_type == WidgetType.CATERING:
            totals.avg_order_value = await repo.average_property(*args, "order_value", completed)
        return totals


def totals_from_events(events: list[WidgetEvent], widget_type: WidgetType) -> EventTotals:
    """Compute in Python what the aggregate tier asks SQL for."""
    completed = [e for e in events if e.event_type == WidgetEventType.BOOKING_COMPLETED.value]

    sources = Counter(
        source
        for e in events
        if isinstance(source := (e.properties or {}).get("source"), str) and source
    )
    totals = EventTotals(
        counts=dict(Counter(e.event_type for e in events)),
        unique_sessions=len({e.session_id for e in events if e.session_id}),
        daily=dict(Counter((e.created_at.date(), e.event_type) for e in events)),
        top_sources=sorted(sources.items(), key=lambda item: (-item[1], item[0]))[:TOP_SOURCES],
        booking_hours={},
        avg_session_duration=_average(events, "session_duration"),
    )
    if widget_type == WidgetType.BOOKING:
        totals.booking_hours = dict(
            Counter(hour for e in completed if (hour := _booking_hour(e.properties)) is not None)
        )
        totals.avg_party_size = _average(completed, "party_size")
    elif widget_type == WidgetType.CATERING:
        totals.avg_order_value = _average(completed, "order_value")
    return totals


def empty_summary(
    tenant_id: UUID,
    widget_type: WidgetType,
    time_range: AnalyticsTimeRange,
    source: AnalyticsSource,
) -> WidgetAnalyticsSummary:
    return WidgetAnalyticsSummary(
        tenant_id=tenant_id,
        widget_type=widget_type,
        time_range=time_range,
        source=source,
        has_data=False,
        generated_at=utc_now(),
    )


def _summarize(
    tenant_id: UUID,
    widget_type: WidgetType,
    time_range: AnalyticsTimeRange,
    since: datetime,
    source: AnalyticsSource,
    totals: EventTotals,
) -> WidgetAnalyticsSummary:
    counts = totals.counts
    total = sum(counts.values())
    if total == 0:
        return empty_summary(tenant_id, widget_type, time_range, source)

    views = counts.get(WidgetEventType.VIEW.value, 0)
    started = counts.get(WidgetEventType.BOOKING_STARTED.value, 0)
    completed = counts.get(WidgetEventType.BOOKING_COMPLETED.value, 0)

    peak_hours = sorted(totals.booking_hours.items(), key=lambda item: (-item[1], item[0]))

    return WidgetAnalyticsSummary(
        tenant_id=tenant_id,
        widget_type=widget_type,
        time_range=time_range,
        source=source,
        has_data=True,
        total_events=total,
        event_counts=counts,
        unique_sessions=totals.unique_sessions,
        conversion_rate=_percentage(completed, views),
        completion_rate=_percentage(completed, started),
        daily_stats=_daily_stats(totals.daily, since.date(), utc_now().date()),
        peak_hours=[
            PeakHour(hour=hour, bookings=count) for hour, count in peak_hours[:PEAK_HOURS]
        ]
        or None,
        top_sources=[SourceCount(source=name, count=count) for name, count in totals.top_sources]
        or None,
        avg_party_size=_rounded(totals.avg_party_size, 1),
        avg_order_value=_rounded(totals.avg_order_value, 2),
        avg_session_duration=_rounded(totals.avg_session_duration, 1),
        generated_at=utc_now(),
    )


def _daily_stats(
    daily: dict[tuple[date, str], int], first_day: date, last_day: date
) -> list[DailyWidgetStats]:
    stats = []
    day = first_day
    while day <= last_day:
        views = daily.get((day, WidgetEventType.VIEW.value), 0)
        bookings = daily.get((day, WidgetEventType.BOOKING_COMPLETED.value), 0)
        stats.append(
            DailyWidgetStats(
                day=day,
                views=views,
                clicks=daily.get((day, WidgetEventType.CLICK.value), 0),
                bookings=bookings,
                conversion_rate=_percentage(bookings, views),
            )
        )
        day += timedelta(days=1)
    return stats


def _positive_number(properties: dict[str, Any] | None, key: str) -> float | None:
    value = (properties or {}).get(key)
    # bool is an int subclass; JSON true is not a number
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        return None
    return float(value)


def _average(events: list[WidgetEvent], key: str) -> float | None:
    values = [v for e in events if (v := _positive_number(e.properties, key)) is not None]
    return fmean(values) if values else None


def _booking_hour(properties: dict[str, Any] | None) -> int | None:
    value = (properties or {}).get("booking_time")
    if not isinstance(value, str):
        return None
    match = _BOOKING_HOUR.search(value)
    return int(match.group(1)) if match else None


def _rounded(value: float | None, digits: int) -> float | None:
    return round(value, digits) if value is not None else None


def _percentage(part: int, whole: int) -> float | None:
    if whole == 0:
        return None
    return round(part / whole * 100, 2)
