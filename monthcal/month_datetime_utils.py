"""Date/time helpers for month layout.

Provider values arrive either as a date-only string (``2024-03-08``) or an ISO
date-time with offset (``2024-03-08T09:00:00-05:00``). All helpers return
immutable, timezone-aware ``datetime`` values; calendar-day questions are
answered on the wall-clock date of the value itself.
"""

from __future__ import annotations

import datetime as _dt
import logging
import time
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import ClassVar, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

# Used when the viewer's zone cannot be detected
DEFAULT_VIEWER_TIMEZONE = "UTC"

ONE_DAY = timedelta(days=1)


class TimezoneDetector:
    """Guesses the viewer's local timezone as an IANA identifier."""

    TZ_ABBREV_MAP: ClassVar[dict[str, str]] = {
        "UTC": "UTC",
        "GMT": "UTC",
        "PST": "America/Los_Angeles",
        "PDT": "America/Los_Angeles",
        "MST": "America/Denver",
        "MDT": "America/Denver",
        "CST": "America/Chicago",
        "CDT": "America/Chicago",
        "EST": "America/New_York",
        "EDT": "America/New_York",
        "CET": "Europe/Paris",
        "CEST": "Europe/Paris",
    }

    def detect(self) -> str:
        """Return the viewer's timezone name, falling back to UTC."""
        local_name = time.tzname[time.daylight] if time.daylight else time.tzname[0]
        iana = self.TZ_ABBREV_MAP.get(local_name)
        if iana is not None:
            return iana

        # Unknown abbreviation: pin to a fixed offset zone if the host is on a whole hour
        now_local = _dt.datetime.now()
        now_utc = _dt.datetime.now(UTC).replace(tzinfo=None)
        offset_hours = round((now_local - now_utc).total_seconds() / 3600)
        if offset_hours == 0:
            return "UTC"
        # POSIX Etc/ zones invert the sign
        candidate = f"Etc/GMT{-offset_hours:+d}"
        try:
            ZoneInfo(candidate)
        except ZoneInfoNotFoundError:
            logger.warning(
                "Could not detect viewer timezone (offset=%dh), falling back to %s",
                offset_hours,
                DEFAULT_VIEWER_TIMEZONE,
            )
            return DEFAULT_VIEWER_TIMEZONE
        return candidate


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Look up a timezone by IANA name; ``None`` means the detected viewer zone.

    Raises:
        ValueError: If the name is not a known zone
    """
    if not name:
        name = TimezoneDetector().detect()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name!r}") from e


def is_date_only(value: str) -> bool:
    return len(value.strip()) == 10 and "T" not in value


def parse_event_time(value: str, use_calendar_timezone: bool, viewer_tz: tzinfo) -> datetime:
    """Parse a provider date or date-time value.

    With ``use_calendar_timezone`` the provider's declared offset is kept
    (date-only values are anchored at UTC midnight); otherwise the value is
    converted into ``viewer_tz`` (date-only values become local midnight).

    Raises:
        ValueError: If the value is not ISO-8601
    """
    text = value.strip()
    if is_date_only(text):
        day = date.fromisoformat(text)
        zone = UTC if use_calendar_timezone else viewer_tz
        return datetime(day.year, day.month, day.day, tzinfo=zone)

    parsed = date_parser.isoparse(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC if use_calendar_timezone else viewer_tz)
    if use_calendar_timezone:
        return parsed
    return parsed.astimezone(viewer_tz)


def is_same_day(a: datetime, b: datetime) -> bool:
    """Same calendar day, each judged on its own wall clock; time of day ignored."""
    return a.date() == b.date()


def to_utc_anchor(dt: datetime) -> datetime:
    """Keep the wall-clock time and relabel it as UTC.

    Recurrence rules are expanded against this neutral anchor so that an
    offset or DST change never moves an occurrence onto a neighbouring day.
    """
    return dt.replace(tzinfo=None).replace(tzinfo=UTC)


def elapsed(start: datetime, end: datetime) -> timedelta:
    """Absolute time between two aware datetimes, whatever zone each carries."""
    return end.astimezone(UTC) - start.astimezone(UTC)


def is_midnight(dt: datetime) -> bool:
    return dt.hour == 0 and dt.minute == 0 and dt.second == 0 and dt.microsecond == 0


def effective_end_date(end: datetime) -> date:
    """Last calendar day an event covers; an end at exactly midnight is exclusive."""
    if is_midnight(end):
        return (end - ONE_DAY).date()
    return end.date()


def add_months(day: date, months: int) -> date:
    """Shift a first-of-month date by whole months."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_start_utc(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=UTC)
