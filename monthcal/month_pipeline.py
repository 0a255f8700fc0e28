"""Month layout pipeline for monthcal.

Runs classification once per snapshot and, for every visible month,
resolution -> span building -> lane allocation from scratch. Nothing computed
for one month is reused for another.

Usage:
    calendar = MonthCalendar(config, month=VisibleMonth(year=2024, month=3))
    calendar.load_response(response)
    layout = calendar.layout()
"""

from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Optional

from .config_loader import Config
from .event_classifier import ClassificationResult, EventClassifier
from .lane_allocator import LaneAllocator
from .month_datetime_utils import TimezoneDetector, resolve_timezone
from .month_exceptions import DataUnavailableError, Diagnostics, RecurrenceRuleParseError
from .month_models import (
    CalendarSnapshot,
    CanonicalEvent,
    DayCell,
    MonthLayout,
    Occurrence,
    VisibleMonth,
    WeekSegment,
)
from .recurrence_resolver import RecurrenceResolver
from .span_builder import SpanBuilder

logger = logging.getLogger(__name__)


class MonthLayoutPipeline:
    """Computes the layout of one visible month from classified events."""

    def __init__(
        self,
        resolver: Optional[RecurrenceResolver] = None,
        allocator: Optional[LaneAllocator] = None,
    ) -> None:
        self.resolver = resolver or RecurrenceResolver()
        self.allocator = allocator or LaneAllocator()

    def build(
        self,
        classified: ClassificationResult,
        month: VisibleMonth,
        today: Optional[date] = None,
        timezone: Optional[str] = None,
    ) -> MonthLayout:
        """Lay out ``month``.

        Args:
            classified: Output of EventClassifier for the current snapshot
            month: Month to lay out
            today: Day to flag as today, if it falls in the month
            timezone: Zone label passed through to the layout

        Returns:
            MonthLayout with one cell per day of the month
        """
        diagnostics = Diagnostics()
        diagnostics.extend(classified.diagnostics)

        segments = self.build_segments(classified.multi_day_events, month, diagnostics)
        allocation = self.allocator.allocate(segments)
        singles = self.collect_single_day(classified.single_day_events, month, diagnostics)

        cells = [
            DayCell(
                day=day,
                lanes=allocation.cells.get(day, []),
                single_day_events=singles.get(day, []),
                is_today=month.is_today(day, today),
            )
            for day in range(1, month.days_in_month + 1)
        ]

        logger.info(
            "Laid out %s: %d segments in %d lane(s), %d single-day entries, %d warnings",
            month.title,
            len(segments),
            allocation.lane_count,
            sum(len(entries) for entries in singles.values()),
            len(diagnostics),
        )
        return MonthLayout(
            month=month,
            timezone=timezone,
            cells=cells,
            diagnostics=list(diagnostics.entries),
        )

    def build_segments(
        self, events: list[CanonicalEvent], month: VisibleMonth, diagnostics: Diagnostics
    ) -> list[WeekSegment]:
        """Week segments of all multi-day events, in feed then expansion order."""
        span_builder = SpanBuilder(month)
        segments: list[WeekSegment] = []
        for event in events:
            for occurrence in self._occurrences(event, month, diagnostics):
                segments.extend(span_builder.build(occurrence))
        return segments

    def collect_single_day(
        self, events: list[CanonicalEvent], month: VisibleMonth, diagnostics: Diagnostics
    ) -> dict[int, list[Occurrence]]:
        """Single-day occurrences starting in ``month``, grouped by day of month."""
        by_day: dict[int, list[Occurrence]] = {}
        for event in events:
            for occurrence in self._occurrences(event, month, diagnostics):
                start_day = occurrence.start.date()
                if month.contains(start_day):
                    by_day.setdefault(start_day.day, []).append(occurrence)
        return by_day

    def _occurrences(
        self, event: CanonicalEvent, month: VisibleMonth, diagnostics: Diagnostics
    ) -> list[Occurrence]:
        try:
            return self.resolver.resolve_month(event, month)
        except RecurrenceRuleParseError as e:
            diagnostics.add_error(e)
            return []


class MonthCalendar:
    """One calendar snapshot viewed a month at a time."""

    def __init__(
        self,
        config: Optional[Config] = None,
        month: Optional[VisibleMonth] = None,
        viewer_tz: Optional[tzinfo] = None,
    ) -> None:
        """Initialize calendar view state.

        Args:
            config: Settings; defaults apply when omitted
            month: Month to show first; the viewer's current month when omitted
            viewer_tz: Viewer's zone; taken from config or detected when omitted
        """
        self.config = config or Config()
        self.viewer_tz = viewer_tz or resolve_timezone(self.config.viewer_timezone)
        self.classifier = EventClassifier(self.config.use_calendar_timezone, self.viewer_tz)
        self.pipeline = MonthLayoutPipeline(resolver=RecurrenceResolver(self.config))

        self.month = month or VisibleMonth.containing(self._today())
        self.snapshot = CalendarSnapshot()
        self.classified = ClassificationResult()

    def load_response(self, response: Any) -> ClassificationResult:
        """Classify a decoded provider response; an unusable one becomes an empty snapshot.

        Malformed items are dropped and reported with the classification warnings.
        """
        rejected = Diagnostics()
        try:
            snapshot = CalendarSnapshot.from_response(response, rejected)
        except DataUnavailableError as e:
            return self.mark_unavailable(e)
        classified = self.set_snapshot(snapshot)
        classified.diagnostics.entries[:0] = rejected.entries
        return classified

    def set_snapshot(self, snapshot: CalendarSnapshot) -> ClassificationResult:
        """Replace the snapshot and reclassify it."""
        self.snapshot = snapshot
        self.classified = self.classifier.classify(snapshot.items)
        return self.classified

    def mark_unavailable(self, error: DataUnavailableError) -> ClassificationResult:
        """Record an upstream fetch failure; the view shows an empty month."""
        classified = self.set_snapshot(CalendarSnapshot())
        classified.diagnostics.add_error(error)
        return classified

    def show_month(self, month: VisibleMonth) -> MonthLayout:
        self.month = month
        return self.layout()

    def next_month(self) -> MonthLayout:
        return self.show_month(self.month.next())

    def previous_month(self) -> MonthLayout:
        return self.show_month(self.month.previous())

    def layout(self, today: Optional[date] = None) -> MonthLayout:
        """Recompute the layout of the visible month from scratch."""
        return self.pipeline.build(
            self.classified,
            self.month,
            today=today if today is not None else self._today(),
            timezone=self.timezone_label(),
        )

    def timezone_label(self) -> str:
        """The calendar's declared zone, or the viewer's zone when converting."""
        if self.config.use_calendar_timezone and self.snapshot.time_zone:
            return self.snapshot.time_zone
        return self.config.viewer_timezone or TimezoneDetector().detect()

    def _today(self) -> date:
        return datetime.now(self.viewer_tz).date()
