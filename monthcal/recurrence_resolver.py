"""RRULE expansion for month layout.

Rules are expanded against a timezone-neutral anchor: the template start's
wall-clock time with no zone attached. UNTIL values are read the same way
(``ignoretz``), so an all-day ``UNTIL=20240501`` and a ``UNTIL=...Z`` rule both
work. Generated dates are relabelled as UTC, which keeps every occurrence on
the calendar day the rule named.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from dateutil.rrule import rrule, rruleset, rrulestr

from .month_datetime_utils import add_months, elapsed, to_utc_anchor
from .month_exceptions import RecurrenceRuleParseError
from .month_models import CanonicalEvent, ChangedOccurrence, Occurrence, VisibleMonth

logger = logging.getLogger(__name__)


@dataclass
class RecurrenceResolverConfig:
    """Configuration for recurrence expansion."""

    max_occurrences_per_rule: int = 500

    @classmethod
    def from_settings(cls, settings: Any) -> RecurrenceResolverConfig:
        """Extract expansion settings from any settings object, with defaults."""
        return cls(
            max_occurrences_per_rule=getattr(settings, "max_occurrences_per_rule", 500),
        )


def occurrence_id(event_id: str, start: datetime) -> str:
    return f"{event_id}_{start.strftime('%Y%m%dT%H%M%S')}"


def as_occurrence(event: CanonicalEvent) -> Occurrence:
    """A non-recurring event seen as its single occurrence."""
    return Occurrence(
        id=event.id,
        event_id=event.id,
        title=event.title,
        start=event.start,
        end=event.end,
        description=event.description,
        location=event.location,
    )


def _naive(dt: datetime) -> datetime:
    return dt.replace(tzinfo=None)


class RecurrenceResolver:
    """Expands a recurring canonical event into occurrences over a window."""

    def __init__(self, settings: Any = None):
        """Initialize resolver.

        Args:
            settings: Optional object carrying ``max_occurrences_per_rule``
        """
        config = RecurrenceResolverConfig.from_settings(settings)
        self.max_occurrences = config.max_occurrences_per_rule

    def parse_rule(self, event: CanonicalEvent) -> rrule | rruleset:
        """Parse the event's rule anchored at its start.

        Raises:
            RecurrenceRuleParseError: If the rule string is not valid RRULE syntax
        """
        rule_string = (event.recurrence_rule or "").strip()
        if not rule_string:
            raise RecurrenceRuleParseError(
                f"Event {event.id!r} has an empty recurrence rule", event_id=event.id, rule=rule_string
            )

        anchor = _naive(to_utc_anchor(event.start))
        try:
            return rrulestr(rule_string, dtstart=anchor, ignoretz=True)
        except (ValueError, KeyError, TypeError) as e:
            raise RecurrenceRuleParseError(
                f"Invalid recurrence rule for event {event.id!r}: {rule_string!r} ({e})",
                event_id=event.id,
                rule=rule_string,
            ) from e

    def expansion_dates(
        self, event: CanonicalEvent, window_start: datetime, window_end: datetime
    ) -> list[datetime]:
        """Rule-generated dates with ``window_start <= d < window_end``, as UTC.

        dateutil's ``between(..., inc=True)`` is inclusive at both ends, so the
        upper bound is trimmed here to make the window half-open.

        Raises:
            RecurrenceRuleParseError: If the rule string is not valid RRULE syntax
        """
        rule = self.parse_rule(event)
        start = _naive(to_utc_anchor(window_start))
        end = _naive(to_utc_anchor(window_end))

        dates: list[datetime] = []
        for generated in rule.between(start, end, inc=True):
            if not start <= generated < end:
                continue
            if len(dates) >= self.max_occurrences:
                logger.warning(
                    "Recurrence expansion for event %s limited to %d occurrences",
                    event.id,
                    self.max_occurrences,
                )
                break
            dates.append(generated.replace(tzinfo=UTC))
        return dates

    def resolve(
        self, event: CanonicalEvent, window_start: datetime, window_end: datetime
    ) -> list[Occurrence]:
        """Expand ``event`` over ``[window_start, window_end)`` applying its exceptions.

        Args:
            event: Recurring canonical event
            window_start: Inclusive lower bound, compared on wall-clock time
            window_end: Exclusive upper bound, compared on wall-clock time

        Returns:
            Occurrences in date order; cancelled instances omitted, changed ones substituted

        Raises:
            RecurrenceRuleParseError: If the rule string is not valid RRULE syntax
        """
        duration = elapsed(event.start, event.end)
        occurrences: list[Occurrence] = []
        skipped = 0

        for generated in self.expansion_dates(event, window_start, window_end):
            day = generated.date()
            if day in event.cancelled_occurrences:
                skipped += 1
                continue

            changed = event.changed_occurrences.get(day)
            if changed is not None:
                occurrences.append(self._changed_occurrence(event, generated, changed))
                continue

            occurrences.append(
                Occurrence(
                    id=occurrence_id(event.id, generated),
                    event_id=event.id,
                    title=event.title,
                    start=generated,
                    end=generated + duration,
                    description=event.description,
                    location=event.location,
                )
            )

        logger.debug(
            "Resolved event %s over [%s, %s): %d occurrences, %d cancelled",
            event.id,
            window_start.isoformat(),
            window_end.isoformat(),
            len(occurrences),
            skipped,
        )
        return occurrences

    def month_window(self, event: CanonicalEvent, month: VisibleMonth) -> tuple[datetime, datetime]:
        """Window covering every occurrence that can overlap ``month``.

        Starts one event-duration before the month so that occurrences which
        begin in the previous month but run into this one are included.
        """
        month_start = datetime.combine(month.first_day, datetime.min.time(), tzinfo=UTC)
        next_month = add_months(month.first_day, 1)
        window_end = datetime.combine(next_month, datetime.min.time(), tzinfo=UTC)
        duration = elapsed(event.start, event.end)
        return month_start - max(duration, timedelta(0)), window_end

    def resolve_month(self, event: CanonicalEvent, month: VisibleMonth) -> list[Occurrence]:
        """Occurrences of ``event`` relevant to ``month``; non-recurring events yield themselves.

        Raises:
            RecurrenceRuleParseError: If the rule string is not valid RRULE syntax
        """
        if not event.is_recurring:
            return [as_occurrence(event)]
        window_start, window_end = self.month_window(event, month)
        return self.resolve(event, window_start, window_end)

    def _changed_occurrence(
        self, event: CanonicalEvent, generated: datetime, changed: ChangedOccurrence
    ) -> Occurrence:
        return Occurrence(
            id=occurrence_id(event.id, generated),
            event_id=event.id,
            title=changed.title,
            start=changed.new_start,
            end=changed.new_end,
            description=changed.description,
            location=changed.location,
            is_changed=True,
        )
