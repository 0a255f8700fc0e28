"""First-fit lane packing of week segments.

Segments are folded in a fixed order over a per-day lane table. Each slot in
the table is either taken by a segment or a placeholder that keeps the rows of
a multi-day bar aligned across its days. A placeholder is free: a later
segment may claim it. Two segments sharing a day never get the same lane.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .month_models import Placement, PlacementRole, WeekSegment

logger = logging.getLogger(__name__)

# None marks a placeholder slot
LaneTable = dict[int, list[Optional[Placement]]]


@dataclass
class LaneAllocation:
    """Result of one allocation pass."""

    cells: dict[int, list[Placement]] = field(default_factory=dict)
    lanes: list[int] = field(default_factory=list)

    @property
    def placements(self) -> list[Placement]:
        """All placements ordered by day then lane."""
        return [placement for day in sorted(self.cells) for placement in self.cells[day]]

    @property
    def lane_count(self) -> int:
        return max((len(slots) for slots in self.cells.values()), default=0)


def closed_lanes(table: LaneTable, segment: WeekSegment) -> set[int]:
    """Lanes taken on any day the segment spans."""
    closed: set[int] = set()
    for day in segment.days:
        closed.update(lane for lane, slot in enumerate(table.get(day, [])) if slot is not None)
    return closed


def first_fit(closed: set[int]) -> int:
    lane = 0
    while lane in closed:
        lane += 1
    return lane


class LaneAllocator:
    """Assigns each segment the lowest lane free on all of its days."""

    def allocate(self, segments: list[WeekSegment]) -> LaneAllocation:
        """Pack ``segments`` in the given order.

        Args:
            segments: Week segments of one visible month, in event order

        Returns:
            LaneAllocation with each day's slots and the lane chosen per segment
        """
        table: LaneTable = {}
        chosen: list[int] = []

        for segment in segments:
            lane = first_fit(closed_lanes(table, segment))
            self._occupy(table, segment, lane)
            chosen.append(lane)

        allocation = LaneAllocation(
            cells={day: self._materialize(day, slots) for day, slots in table.items()},
            lanes=chosen,
        )
        logger.debug(
            "Allocated %d segments into %d lane(s)", len(segments), allocation.lane_count
        )
        return allocation

    def _occupy(self, table: LaneTable, segment: WeekSegment, lane: int) -> None:
        for day in segment.days:
            slots = table.setdefault(day, [])
            # Pad lower lanes this day has not reached yet, start day included,
            # so the bar sits in the same row on every day it covers
            while len(slots) < lane:
                slots.append(None)

            role = (
                PlacementRole.OCCURRENCE_START
                if day == segment.start_day
                else PlacementRole.CONTINUATION
            )
            placement = Placement(day=day, lane=lane, role=role, segment=segment)
            if len(slots) == lane:
                slots.append(placement)
            else:
                slots[lane] = placement

    @staticmethod
    def _materialize(day: int, slots: list[Optional[Placement]]) -> list[Placement]:
        return [
            slot
            if slot is not None
            else Placement(day=day, lane=lane, role=PlacementRole.PLACEHOLDER)
            for lane, slot in enumerate(slots)
        ]
