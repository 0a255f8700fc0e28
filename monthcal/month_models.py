"""Data models for month layout - monthcal."""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
)

from .month_exceptions import (
    DataUnavailableError,
    DiagnosticEntry,
    Diagnostics,
    UnrecognizedRecordError,
)

logger = logging.getLogger(__name__)


# Provider feed models (Google Calendar v3 event resource shape)


class RecordStatus(str, Enum):
    """Event status values reported by the provider."""

    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class EventDateTime(BaseModel):
    """A provider start/end value: either a date or a date-time."""

    date: Optional[str] = Field(default=None, description="Date-only value (all-day)")
    date_time: Optional[str] = Field(
        default=None, alias="dateTime", description="ISO date-time with offset"
    )
    time_zone: Optional[str] = Field(default=None, alias="timeZone")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def value(self) -> str:
        """The date-time if present, else the date.

        Raises:
            ValueError: If neither is set
        """
        raw = self.date_time or self.date
        if not raw:
            raise ValueError("EventDateTime has neither dateTime nor date")
        return raw


class RawEventRecord(BaseModel):
    """One entry of a provider feed, before classification."""

    id: Optional[str] = None
    status: Optional[str] = None
    title: Optional[str] = Field(default=None, alias="summary")
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[EventDateTime] = None
    end: Optional[EventDateTime] = None
    recurrence: list[str] = Field(default_factory=list, description="RRULE strings, first used")
    recurring_event_id: Optional[str] = Field(default=None, alias="recurringEventId")
    original_start_time: Optional[EventDateTime] = Field(default=None, alias="originalStartTime")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("recurrence", mode="before")
    @classmethod
    def _null_recurrence(cls, value: Any) -> Any:
        # The provider sends null for events without a rule
        return [] if value is None else value

    @property
    def is_exception_record(self) -> bool:
        return self.original_start_time is not None


class CalendarSnapshot(BaseModel):
    """A resolved provider response: the events plus the calendar's declared zone."""

    items: list[RawEventRecord] = Field(default_factory=list)
    time_zone: Optional[str] = Field(default=None, alias="timeZone")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def from_response(cls, response: Any, diagnostics: Optional[Diagnostics] = None) -> CalendarSnapshot:
        """Build a snapshot from a decoded provider response.

        Items are validated one at a time; a malformed item is dropped and,
        when ``diagnostics`` is given, recorded as an unrecognized record.

        Raises:
            DataUnavailableError: If the response is missing or not a mapping,
                or its ``items``/``timeZone`` have the wrong shape
        """
        if response is None:
            raise DataUnavailableError("No calendar response was supplied")
        if not isinstance(response, dict):
            raise DataUnavailableError(
                f"Calendar response must be a mapping, got {type(response).__name__}"
            )

        items = response.get("items") or []
        if not isinstance(items, list):
            raise DataUnavailableError(
                f"Calendar response items must be a list, got {type(items).__name__}"
            )

        records: list[RawEventRecord] = []
        for index, item in enumerate(items):
            try:
                records.append(RawEventRecord.model_validate(item))
            except ValidationError as e:
                record_id = item.get("id") if isinstance(item, dict) else None
                record_id = str(record_id) if record_id is not None else None
                error = UnrecognizedRecordError(
                    f"Not categorized: record {record_id!r} at index {index} is malformed "
                    f"({e.error_count()} validation error(s))",
                    record_id=record_id,
                )
                if diagnostics is not None:
                    diagnostics.add_error(error)
                else:
                    logger.warning("%s", error)

        try:
            return cls(items=records, time_zone=response.get("timeZone"))
        except ValidationError as e:
            raise DataUnavailableError(f"Calendar response has an invalid shape: {e}") from e


# Classified models


class EventKind(str, Enum):
    """Layout class of a canonical event."""

    SINGLE_DAY = "single_day"
    MULTI_DAY = "multi_day"


class CancelledOccurrence(BaseModel):
    """One instance of a recurring event that has been removed."""

    recurring_event_id: str
    original_start: datetime

    model_config = ConfigDict(frozen=True)


class ChangedOccurrence(BaseModel):
    """One instance of a recurring event replaced with a new time or content."""

    recurring_event_id: str
    original_start: datetime
    new_start: datetime
    new_end: datetime
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class CanonicalEvent(BaseModel):
    """A confirmed, non-exception event, possibly recurring."""

    id: str
    title: Optional[str] = None
    start: datetime
    end: datetime
    description: Optional[str] = None
    location: Optional[str] = None
    recurrence_rule: Optional[str] = None
    kind: EventKind = EventKind.SINGLE_DAY

    # Keyed by the calendar day of the instance's original start
    cancelled_occurrences: set[date] = Field(default_factory=set)
    changed_occurrences: dict[date, ChangedOccurrence] = Field(default_factory=dict)

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurrence_rule)

    @property
    def is_multi_day(self) -> bool:
        return self.kind == EventKind.MULTI_DAY

    def add_cancelled(self, cancelled: CancelledOccurrence) -> None:
        self.cancelled_occurrences.add(cancelled.original_start.date())

    def add_changed(self, changed: ChangedOccurrence) -> None:
        # First override for a day wins, as the feed lists them
        self.changed_occurrences.setdefault(changed.original_start.date(), changed)


class Occurrence(BaseModel):
    """A concrete instance of an event after expansion and exception substitution."""

    id: str
    event_id: str
    title: Optional[str] = None
    start: datetime
    end: datetime
    description: Optional[str] = None
    location: Optional[str] = None
    is_changed: bool = False

    model_config = ConfigDict(frozen=True)

    @field_serializer("start", "end")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class WeekSegment(BaseModel):
    """The part of an occurrence that falls in one grid row of the visible month."""

    occurrence: Occurrence
    start_day: int = Field(..., ge=1, le=31)
    length_days: int = Field(..., ge=1, le=7)
    continues_before: bool = False
    continues_after: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def end_day(self) -> int:
        return self.start_day + self.length_days - 1

    @property
    def days(self) -> range:
        return range(self.start_day, self.start_day + self.length_days)


class PlacementRole(str, Enum):
    """What a lane slot in a day cell holds."""

    OCCURRENCE_START = "occurrence_start"
    CONTINUATION = "continuation"
    PLACEHOLDER = "placeholder"


class Placement(BaseModel):
    """A lane slot in one day cell, as consumed by a renderer."""

    day: int
    lane: int = Field(..., ge=0)
    role: PlacementRole
    segment: Optional[WeekSegment] = Field(
        default=None, description="Owning segment; None for placeholders"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def occurrence(self) -> Optional[Occurrence]:
        return self.segment.occurrence if self.segment is not None else None

    @property
    def is_event(self) -> bool:
        return self.role != PlacementRole.PLACEHOLDER


# Month grid models


class VisibleMonth(BaseModel):
    """The month shown by the grid; rows run Sunday to Saturday."""

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, text: str) -> VisibleMonth:
        """Parse ``YYYY-MM``."""
        year_text, _, month_text = text.strip().partition("-")
        try:
            return cls(year=int(year_text), month=int(month_text))
        except ValueError as e:
            raise ValueError(f"Expected YYYY-MM, got {text!r}") from e

    @classmethod
    def containing(cls, day: date) -> VisibleMonth:
        return cls(year=day.year, month=day.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    @property
    def first_weekday(self) -> int:
        """Column of day 1, with 0 = Sunday."""
        return (self.first_day.weekday() + 1) % 7

    @property
    def leading_blank_days(self) -> int:
        return self.first_weekday

    @property
    def trailing_blank_days(self) -> int:
        """Empty cells needed to complete the last row."""
        return -(self.days_in_month + self.first_weekday) % 7

    @property
    def title(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    def next(self) -> VisibleMonth:
        if self.month == 12:
            return VisibleMonth(year=self.year + 1, month=1)
        return VisibleMonth(year=self.year, month=self.month + 1)

    def previous(self) -> VisibleMonth:
        if self.month == 1:
            return VisibleMonth(year=self.year - 1, month=12)
        return VisibleMonth(year=self.year, month=self.month - 1)

    def is_today(self, day: int, today: Optional[date]) -> bool:
        return today is not None and self.contains(today) and today.day == day


class DayCell(BaseModel):
    """Everything drawn in one day cell: lane slots first, then single-day events."""

    day: int
    lanes: list[Placement] = Field(default_factory=list)
    single_day_events: list[Occurrence] = Field(default_factory=list)
    is_today: bool = False


class MonthLayout(BaseModel):
    """The computed layout of one visible month."""

    month: VisibleMonth
    timezone: Optional[str] = None
    cells: list[DayCell] = Field(default_factory=list)
    diagnostics: list[DiagnosticEntry] = Field(default_factory=list)

    @field_validator("cells")
    @classmethod
    def _cells_in_day_order(cls, cells: list[DayCell]) -> list[DayCell]:
        days = [cell.day for cell in cells]
        if days != sorted(days):
            raise ValueError("cells must be ordered by day")
        return cells

    @property
    def placements(self) -> list[Placement]:
        """All lane placements, ordered by day then lane."""
        return [placement for cell in self.cells for placement in cell.lanes]

    def cell(self, day: int) -> DayCell:
        return self.cells[day - 1]

    @property
    def lane_count(self) -> int:
        return max((len(cell.lanes) for cell in self.cells), default=0)
