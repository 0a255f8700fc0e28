"""Clipping of occurrences to the visible month and splitting into grid rows."""

from __future__ import annotations

import logging

from .month_datetime_utils import ONE_DAY, effective_end_date
from .month_models import Occurrence, VisibleMonth, WeekSegment

logger = logging.getLogger(__name__)

# date.weekday() value of the last column of a Sunday-first grid row
SATURDAY = 5


class SpanBuilder:
    """Turns an occurrence into one WeekSegment per grid row it touches."""

    def __init__(self, month: VisibleMonth):
        self.month = month

    def build(self, occurrence: Occurrence) -> list[WeekSegment]:
        """Split ``occurrence`` into week-bounded segments within the month.

        An end at exactly midnight is exclusive. Occurrences that do not
        touch the month produce no segments.
        """
        month = self.month
        first_day = occurrence.start.date()
        last_day = effective_end_date(occurrence.end)

        if last_day < first_day or last_day < month.first_day or first_day > month.last_day:
            return []

        continues_before = first_day < month.first_day
        current = month.first_day if continues_before else first_day
        segment_start = current.day
        length = 1
        continues_after = False
        segments: list[WeekSegment] = []

        while current <= last_day:
            if current == month.last_day:
                continues_after = last_day > month.last_day
                break
            if current == last_day:
                break
            if current.weekday() == SATURDAY:
                segments.append(
                    self._segment(occurrence, segment_start, length, continues_before, False)
                )
                segment_start = (current + ONE_DAY).day
                length = 0
                continues_before = False
            length += 1
            current += ONE_DAY

        segments.append(
            self._segment(occurrence, segment_start, length, continues_before, continues_after)
        )
        logger.debug(
            "Occurrence %s split into %d segment(s) for %s",
            occurrence.id,
            len(segments),
            month.title,
        )
        return segments

    @staticmethod
    def _segment(
        occurrence: Occurrence,
        start_day: int,
        length: int,
        continues_before: bool,
        continues_after: bool,
    ) -> WeekSegment:
        return WeekSegment(
            occurrence=occurrence,
            start_day=start_day,
            length_days=length,
            continues_before=continues_before,
            continues_after=continues_after,
        )
