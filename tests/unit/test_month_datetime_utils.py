"""Unit tests for month_datetime_utils module."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from monthcal.month_datetime_utils import (
    TimezoneDetector,
    add_months,
    effective_end_date,
    elapsed,
    is_date_only,
    is_same_day,
    parse_event_time,
    resolve_timezone,
    to_utc_anchor,
)

pytestmark = pytest.mark.unit

UTC = timezone.utc


class TestParseEventTime:
    def test_calendar_mode_keeps_declared_offset(self, viewer_tz):
        parsed = parse_event_time("2024-03-08T23:30:00-05:00", True, viewer_tz)

        assert parsed.utcoffset() == timedelta(hours=-5)
        assert parsed.date() == date(2024, 3, 8)

    def test_calendar_mode_date_only_is_utc_midnight(self, viewer_tz):
        assert parse_event_time("2024-03-08", True, viewer_tz) == datetime(2024, 3, 8, tzinfo=UTC)

    def test_viewer_mode_converts(self, viewer_tz):
        parsed = parse_event_time("2024-03-08T04:00:00Z", False, viewer_tz)

        assert parsed.tzinfo is viewer_tz
        assert (parsed.date(), parsed.hour) == (date(2024, 3, 7), 20)

    def test_viewer_mode_date_only_is_local_midnight(self, viewer_tz):
        parsed = parse_event_time("2024-03-08", False, viewer_tz)

        assert parsed.tzinfo is viewer_tz
        assert (parsed.date(), parsed.hour) == (date(2024, 3, 8), 0)

    def test_naive_value_takes_mode_zone(self, viewer_tz):
        assert parse_event_time("2024-03-08T10:00:00", True, viewer_tz).tzinfo is UTC

    @pytest.mark.parametrize("value", ["tomorrow", "2024-13-01", ""])
    def test_rejects_garbage(self, viewer_tz, value):
        with pytest.raises(ValueError):
            parse_event_time(value, True, viewer_tz)


class TestDayHelpers:
    def test_is_date_only(self):
        assert is_date_only("2024-03-08")
        assert not is_date_only("2024-03-08T10:00:00Z")

    def test_same_day_uses_each_wall_clock(self):
        east = datetime(2024, 3, 8, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
        utc = datetime(2024, 3, 8, 1, 0, tzinfo=UTC)

        assert is_same_day(east, utc)

    def test_utc_anchor_keeps_wall_clock(self):
        dt = datetime(2024, 3, 8, 23, 0, tzinfo=timezone(timedelta(hours=-5)))

        assert to_utc_anchor(dt) == datetime(2024, 3, 8, 23, 0, tzinfo=UTC)

    @pytest.mark.parametrize(
        "end,expected",
        [
            (datetime(2024, 3, 10, tzinfo=UTC), date(2024, 3, 9)),
            (datetime(2024, 3, 10, 0, 1, tzinfo=UTC), date(2024, 3, 10)),
            (datetime(2024, 3, 10, 18, tzinfo=UTC), date(2024, 3, 10)),
        ],
    )
    def test_effective_end_date(self, end, expected):
        assert effective_end_date(end) == expected

    def test_add_months_crosses_years(self):
        assert add_months(date(2024, 12, 1), 1) == date(2025, 1, 1)
        assert add_months(date(2024, 1, 1), -1) == date(2023, 12, 1)


class TestTimezones:
    def test_resolve_known_zone(self):
        assert resolve_timezone("Europe/Berlin") == ZoneInfo("Europe/Berlin")

    def test_resolve_unknown_zone(self):
        with pytest.raises(ValueError):
            resolve_timezone("Mars/Olympus_Mons")

    def test_resolve_none_uses_detector(self, monkeypatch):
        monkeypatch.setattr(TimezoneDetector, "detect", lambda self: "Asia/Tokyo")

        assert resolve_timezone(None) == ZoneInfo("Asia/Tokyo")

    def test_detect_maps_abbreviation(self, monkeypatch):
        monkeypatch.setattr("time.tzname", ("EST", "EDT"))
        monkeypatch.setattr("time.daylight", 0)

        assert TimezoneDetector().detect() == "America/New_York"


class TestElapsed:
    def test_counts_absolute_time_across_dst(self):
        new_york = ZoneInfo("America/New_York")

        assert elapsed(
            datetime(2024, 3, 9, 10, 0, tzinfo=new_york), datetime(2024, 3, 10, 10, 0, tzinfo=new_york)
        ) == timedelta(hours=23)

    def test_mixed_zones(self):
        start = datetime(2024, 3, 8, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
        end = datetime(2024, 3, 9, 6, 0, tzinfo=UTC)

        assert elapsed(start, end) == timedelta(hours=2)
