"""Widget configuration, event, draft and analytics schemas.

Stored configuration is a tagged union discriminated on ``widget_type``.
Each variant pins its ``schema_version``; bumping a variant's layout means
adding a new version literal and a migration of stored blobs.
"""

import re
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from src.tablehost.models.enums import WidgetEventType, WidgetType

HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"
_UNSAFE_MARKUP = re.compile(r"<\s*(script|iframe|object|embed)", re.IGNORECASE)

MAX_EVENT_PROPERTIES = 50
MAX_DRAFT_BYTES = 64_000


class WidgetAppearance(BaseModel):
    """Look and copy shared by every widget type."""

    model_config = ConfigDict(extra="forbid")

    theme: Literal["light", "dark", "auto"] = "light"
    primary_color: str = Field(default="#b45309", pattern=HEX_COLOR_PATTERN)
    secondary_color: str = Field(default="#6c757d", pattern=HEX_COLOR_PATTERN)
    background_color: str = Field(default="#ffffff", pattern=HEX_COLOR_PATTERN)
    text_color: str = Field(default="#111111", pattern=HEX_COLOR_PATTERN)
    border_radius: int = Field(default=8, ge=0, le=50)
    font_family: str = Field(default="system-ui", max_length=50)
    font_size: int = Field(default=14, ge=10, le=24)
    width: int = Field(default=400, ge=300, le=800)
    height: int = Field(default=600, ge=400, le=1000)
    welcome_message: str = Field(default="Welcome!", min_length=1, max_length=500)
    button_text: str = Field(default="Book now", min_length=1, max_length=100)
    show_logo: bool = True
    is_enabled: bool = True
    custom_css: str | None = Field(default=None, max_length=5000)

    @field_validator("custom_css")
    @classmethod
    def reject_embedded_markup(cls, v: str | None) -> str | None:
        if v and _UNSAFE_MARKUP.search(v):
            raise ValueError("Custom CSS cannot contain script or embed tags")
        return v


class BookingWidgetConfig(WidgetAppearance):
    widget_type: Literal["booking"] = "booking"
    schema_version: Literal[1] = 1
    max_party_size: int = Field(default=12, ge=1, le=100)
    min_advance_booking_hours: int = Field(default=2, ge=0, le=48)
    max_advance_booking_days: int = Field(default=60, ge=1, le=365)
    enable_special_requests: bool = True
    require_deposit: bool = False
    show_availability_indicator: bool = True

    @model_validator(mode="after")
    def check_booking_window(self) -> "BookingWidgetConfig":
        if self.min_advance_booking_hours >= self.max_advance_booking_days * 24:
            raise ValueError("Minimum advance booking must be shorter than the maximum")
        return self


class CateringWidgetConfig(WidgetAppearance):
    widget_type: Literal["catering"] = "catering"
    schema_version: Literal[1] = 1
    button_text: str = Field(default="Order catering", min_length=1, max_length=100)
    min_guests: int = Field(default=10, ge=1, le=10_000)
    max_guests: int = Field(default=500, ge=1, le=10_000)
    lead_time_hours: int = Field(default=48, ge=0, le=720)
    require_deposit: bool = True
    deposit_percentage: int = Field(default=25, ge=0, le=100)
    service_types: list[Literal["pickup", "delivery", "drop_off", "full_service"]] = Field(
        default_factory=lambda: ["pickup", "delivery"],
        min_length=1,
    )

    @model_validator(mode="after")
    def check_guest_range(self) -> "CateringWidgetConfig":
        if self.min_guests > self.max_guests:
            raise ValueError("min_guests cannot exceed max_guests")
        return self


WidgetConfiguration = Annotated[
    BookingWidgetConfig | CateringWidgetConfig,
    Field(discriminator="widget_type"),
]

_configuration_adapter: TypeAdapter[BookingWidgetConfig | CateringWidgetConfig] = TypeAdapter(
    WidgetConfiguration
)


def parse_widget_configuration(data: dict[str, Any]) -> BookingWidgetConfig | CateringWidgetConfig:
    """Validate a stored blob against the tagged union."""
    return _configuration_adapter.validate_python(data)


def default_widget_configuration(widget_type: WidgetType) -> dict[str, Any]:
    config: BookingWidgetConfig | CateringWidgetConfig
    if widget_type == WidgetType.CATERING:
        config = CateringWidgetConfig()
    else:
        config = BookingWidgetConfig()
    return config.model_dump(mode="json")


class WidgetConfigUpdate(BaseModel):
    configuration: WidgetConfiguration
    expected_version: int = Field(ge=1, description="Version the client last read.")


class WidgetConfigRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tenant_id: UUID
    widget_type: str
    schema_version: int
    version: int
    configuration: dict[str, Any]
    updated_by: UUID | None
    updated_at: datetime


class WidgetEventCreate(BaseModel):
    """An event posted by an embedded widget. No credentials are involved."""

    tenant_id: UUID
    widget_type: WidgetType
    event_type: WidgetEventType
    session_id: str | None = Field(default=None, min_length=1, max_length=64)
    properties: dict[str, Any] | None = None

    @field_validator("properties")
    @classmethod
    def limit_properties(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        if v is not None and len(v) > MAX_EVENT_PROPERTIES:
            raise ValueError(f"At most {MAX_EVENT_PROPERTIES} properties are allowed")
        return v


class WidgetEventAccepted(BaseModel):
    id: UUID
    accepted: bool = True


class WidgetDraftSave(BaseModel):
    widget_type: WidgetType = WidgetType.CATERING
    current_step: str | None = Field(default=None, max_length=50)
    draft_data: dict[str, Any] = Field(default_factory=dict)
    expected_version: int | None = Field(
        default=None,
        ge=1,
        description="Version the client last saved. Omit when creating a draft.",
    )

    @field_validator("draft_data")
    @classmethod
    def limit_draft_size(cls, v: dict[str, Any]) -> dict[str, Any]:
        if len(repr(v)) > MAX_DRAFT_BYTES:
            raise ValueError("Draft is too large")
        return v


class WidgetDraftRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tenant_id: UUID
    session_id: str
    widget_type: str
    current_step: str | None
    draft_data: dict[str, Any]
    version: int
    expires_at: datetime
    updated_at: datetime


class AnalyticsTimeRange(str, Enum):
    ONE_DAY = "1d"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"

    @property
    def delta(self) -> timedelta:
        return timedelta(days=int(self.value.removesuffix("d")))


class AnalyticsSource(str, Enum):
    """Which read tier produced a summary."""

    AGGREGATE = "aggregate"
    RAW_EVENTS = "raw_events"
    EMPTY = "empty"


class DailyWidgetStats(BaseModel):
    day: date
    views: int
    clicks: int
    bookings: int = Field(description="Completed bookings or orders that day.")
    conversion_rate: float | None = None


class PeakHour(BaseModel):
    hour: int = Field(ge=0, le=23)
    bookings: int


class SourceCount(BaseModel):
    source: str
    count: int


class WidgetAnalyticsSummary(BaseModel):
    """Analytics for one widget over a time range.

    When ``has_data`` is false every metric is null: there are no
    placeholder or estimated numbers. With data, a metric whose events
    carry no matching property is null as well.

    Metrics read from event ``properties``:

    - ``source``: string, for ``top_sources``
    - ``session_duration``: seconds, on any event
    - ``party_size``: on completed booking widget events
    - ``order_value``: on completed catering widget events
    - ``booking_time``: ``HH:MM`` or ISO datetime, for ``peak_hours``
    """

    tenant_id: UUID
    widget_type: WidgetType
    time_range: AnalyticsTimeRange
    source: AnalyticsSource
    has_data: bool
    total_events: int | None = None
    event_counts: dict[str, int] | None = None
    unique_sessions: int | None = None
    conversion_rate: float | None = Field(
        default=None, description="Completed bookings per view, as a percentage."
    )
    completion_rate: float | None = Field(
        default=None, description="Completed bookings per started booking, as a percentage."
    )
    daily_stats: list[DailyWidgetStats] | None = Field(
        default=None, description="One entry per UTC day the window touches, oldest first."
    )
    peak_hours: list[PeakHour] | None = Field(
        default=None, description="Up to three busiest booking hours."
    )
    top_sources: list[SourceCount] | None = Field(
        default=None, description="Up to five most common traffic sources."
    )
    avg_party_size: float | None = None
    avg_order_value: float | None = None
    avg_session_duration: float | None = Field(default=None, description="Seconds.")
    generated_at: datetime
