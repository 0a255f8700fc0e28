"""Classification of a raw provider feed into canonical events and exceptions.

Exception records (moved or cancelled instances of a recurring event) carry
``originalStartTime``; everything else that is confirmed becomes a canonical
event, bucketed as single-day or multi-day the same way the provider's own
month view does it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from .month_datetime_utils import elapsed, parse_event_time, resolve_timezone
from .month_exceptions import (
    Diagnostics,
    UnmatchedExceptionError,
    UnrecognizedRecordError,
)
from .month_models import (
    CancelledOccurrence,
    CanonicalEvent,
    ChangedOccurrence,
    EventDateTime,
    EventKind,
    RawEventRecord,
    RecordStatus,
)

logger = logging.getLogger(__name__)

MULTI_DAY_MIN_DURATION = timedelta(hours=24)
# An event ending at or after this hour on a later day counts as spanning that day
NEXT_DAY_CUTOFF_HOUR = 12


def classify_kind(start: datetime, end: datetime) -> EventKind:
    """Multi-day if at least 24h long, or ending on a later day at or after noon."""
    if elapsed(start, end) >= MULTI_DAY_MIN_DURATION:
        return EventKind.MULTI_DAY
    if start.date() != end.date() and end.hour >= NEXT_DAY_CUTOFF_HOUR:
        return EventKind.MULTI_DAY
    return EventKind.SINGLE_DAY


@dataclass
class ClassificationResult:
    """Output of one classification pass, in feed order."""

    multi_day_events: list[CanonicalEvent] = field(default_factory=list)
    single_day_events: list[CanonicalEvent] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def events(self) -> list[CanonicalEvent]:
        return self.multi_day_events + self.single_day_events


class EventClassifier:
    """Partitions raw records into canonical events with their exceptions attached."""

    def __init__(self, use_calendar_timezone: bool = True, viewer_tz: Optional[tzinfo] = None):
        """Initialize classifier.

        Args:
            use_calendar_timezone: Keep the provider's offsets instead of
                converting to the viewer's zone
            viewer_tz: Viewer's zone; detected when omitted
        """
        self.use_calendar_timezone = use_calendar_timezone
        self.viewer_tz = viewer_tz if viewer_tz is not None else resolve_timezone(None)

    def classify(self, records: list[RawEventRecord]) -> ClassificationResult:
        """Classify one feed.

        Args:
            records: Unordered provider records; their order is kept in the output

        Returns:
            ClassificationResult with multi-day and single-day events
        """
        result = ClassificationResult()
        cancelled: list[CancelledOccurrence] = []
        changed: list[ChangedOccurrence] = []

        for index, record in enumerate(records):
            try:
                self._classify_record(index, record, result, cancelled, changed)
            except UnrecognizedRecordError as e:
                result.diagnostics.add_error(e)

        self._attach_exceptions(result, cancelled, changed)

        logger.debug(
            "Classified %d records: %d multi-day, %d single-day, %d cancelled, %d changed",
            len(records),
            len(result.multi_day_events),
            len(result.single_day_events),
            len(cancelled),
            len(changed),
        )
        return result

    def _classify_record(
        self,
        index: int,
        record: RawEventRecord,
        result: ClassificationResult,
        cancelled: list[CancelledOccurrence],
        changed: list[ChangedOccurrence],
    ) -> None:
        if record.is_exception_record:
            if record.status == RecordStatus.CANCELLED.value:
                cancelled.append(
                    CancelledOccurrence(
                        recurring_event_id=record.recurring_event_id or "",
                        original_start=self._parse(record, record.original_start_time),
                    )
                )
                return
            if record.status == RecordStatus.CONFIRMED.value:
                changed.append(
                    ChangedOccurrence(
                        recurring_event_id=record.recurring_event_id or "",
                        original_start=self._parse(record, record.original_start_time),
                        new_start=self._parse(record, record.start),
                        new_end=self._parse(record, record.end),
                        title=record.title,
                        description=record.description,
                        location=record.location,
                    )
                )
                return
        elif record.status == RecordStatus.CONFIRMED.value:
            event = self._build_event(index, record)
            if event.is_multi_day:
                result.multi_day_events.append(event)
            else:
                result.single_day_events.append(event)
            return

        raise UnrecognizedRecordError(
            f"Not categorized: record {record.id!r} with status {record.status!r}",
            record_id=record.id,
        )

    def _build_event(self, index: int, record: RawEventRecord) -> CanonicalEvent:
        start = self._parse(record, record.start)
        end = self._parse(record, record.end)
        return CanonicalEvent(
            id=record.id or f"record-{index}",
            title=record.title,
            start=start,
            end=end,
            description=record.description,
            location=record.location,
            recurrence_rule=record.recurrence[0] if record.recurrence else None,
            kind=classify_kind(start, end),
        )

    def _parse(self, record: RawEventRecord, value: Optional[EventDateTime]) -> datetime:
        if value is None:
            raise UnrecognizedRecordError(
                f"Not categorized: record {record.id!r} is missing a start/end value",
                record_id=record.id,
            )
        try:
            return parse_event_time(value.value(), self.use_calendar_timezone, self.viewer_tz)
        except ValueError as e:
            raise UnrecognizedRecordError(
                f"Not categorized: record {record.id!r} has an unreadable date ({e})",
                record_id=record.id,
            ) from e

    def _attach_exceptions(
        self,
        result: ClassificationResult,
        cancelled: list[CancelledOccurrence],
        changed: list[ChangedOccurrence],
    ) -> None:
        """Attach exceptions to recurring parents by id; the rest are dropped."""
        parents: dict[str, list[CanonicalEvent]] = {}
        for event in result.events:
            if event.is_recurring:
                parents.setdefault(event.id, []).append(event)

        for item in changed:
            matches = parents.get(item.recurring_event_id)
            if not matches:
                self._report_unmatched(result, item.recurring_event_id, "changed")
                continue
            for parent in matches:
                parent.add_changed(item)

        for item in cancelled:
            matches = parents.get(item.recurring_event_id)
            if not matches:
                self._report_unmatched(result, item.recurring_event_id, "cancelled")
                continue
            for parent in matches:
                parent.add_cancelled(item)

    def _report_unmatched(self, result: ClassificationResult, parent_id: str, what: str) -> None:
        result.diagnostics.add_error(
            UnmatchedExceptionError(
                f"Dropped {what} occurrence: no recurring event with id {parent_id!r}",
                recurring_event_id=parent_id or None,
            )
        )
