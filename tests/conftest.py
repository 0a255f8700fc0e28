"""Shared fixtures for monthcal tests."""

from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

import pytest

from monthcal.event_classifier import EventClassifier
from monthcal.month_models import (
    CanonicalEvent,
    EventKind,
    Occurrence,
    RawEventRecord,
    VisibleMonth,
    WeekSegment,
)

UTC = ZoneInfo("UTC")


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Tests running the whole month pipeline")


@pytest.fixture
def viewer_tz() -> ZoneInfo:
    """Deterministic viewer zone so host-local settings never leak into tests."""
    return ZoneInfo("America/Los_Angeles")


@pytest.fixture
def classifier(viewer_tz: ZoneInfo) -> EventClassifier:
    return EventClassifier(use_calendar_timezone=True, viewer_tz=viewer_tz)


@pytest.fixture
def march_2024() -> VisibleMonth:
    """March 2024: day 1 is a Friday, 31 days, Saturdays on 2, 9, 16, 23, 30."""
    return VisibleMonth(year=2024, month=3)


def make_record(
    record_id: str,
    start: str,
    end: str,
    status: str = "confirmed",
    summary: Optional[str] = None,
    recurrence: Optional[list[str]] = None,
    recurring_event_id: Optional[str] = None,
    original_start: Optional[str] = None,
) -> RawEventRecord:
    """Build a provider-shaped record; date-only values use ``date``, others ``dateTime``."""

    def _dt(value: str) -> dict[str, str]:
        return {"date": value} if len(value) == 10 else {"dateTime": value}

    payload: dict[str, Any] = {
        "id": record_id,
        "status": status,
        "summary": summary or record_id,
        "start": _dt(start),
        "end": _dt(end),
    }
    if recurrence:
        payload["recurrence"] = recurrence
    if recurring_event_id:
        payload["recurringEventId"] = recurring_event_id
    if original_start:
        payload["originalStartTime"] = _dt(original_start)
    return RawEventRecord.model_validate(payload)


@pytest.fixture
def record_factory() -> Callable[..., RawEventRecord]:
    return make_record


def make_event(
    event_id: str,
    start: datetime,
    end: datetime,
    rule: Optional[str] = None,
    kind: EventKind = EventKind.MULTI_DAY,
) -> CanonicalEvent:
    return CanonicalEvent(
        id=event_id,
        title=event_id.title(),
        start=start,
        end=end,
        recurrence_rule=rule,
        kind=kind,
    )


@pytest.fixture
def event_factory() -> Callable[..., CanonicalEvent]:
    return make_event


def make_segment(start_day: int, length_days: int, name: str = "seg") -> WeekSegment:
    """A segment in March 2024 backed by a throwaway occurrence."""
    start = datetime(2024, 3, start_day, tzinfo=UTC)
    occurrence = Occurrence(
        id=f"{name}-{start_day}",
        event_id=name,
        title=name,
        start=start,
        end=start + timedelta(days=length_days),
    )
    return WeekSegment(occurrence=occurrence, start_day=start_day, length_days=length_days)


@pytest.fixture
def segment_factory() -> Callable[..., WeekSegment]:
    return make_segment
