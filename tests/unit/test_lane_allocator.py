"""Unit tests for lane_allocator module."""

import pytest

from monthcal.lane_allocator import LaneAllocator, closed_lanes, first_fit
from monthcal.month_models import PlacementRole

pytestmark = pytest.mark.unit


def _roles(cell):
    return [(p.lane, p.role, p.occurrence.event_id if p.occurrence else None) for p in cell]


class TestFirstFit:
    def test_lowest_free_lane(self):
        assert first_fit(set()) == 0
        assert first_fit({0, 1, 3}) == 2

    def test_closed_lanes_ignores_placeholders(self, segment_factory):
        allocator = LaneAllocator()
        a = segment_factory(1, 2, "a")
        b = segment_factory(2, 2, "b")
        allocation = allocator.allocate([a, b])
        table = {
            day: [None if p.role == PlacementRole.PLACEHOLDER else p for p in cell]
            for day, cell in allocation.cells.items()
        }

        assert closed_lanes(table, segment_factory(3, 1)) == {1}


class TestLaneAllocator:
    def setup_method(self):
        self.allocator = LaneAllocator()

    def test_overlapping_segments_get_distinct_lanes_and_disjoint_reuse(self, segment_factory):
        segments = [
            segment_factory(5, 3, "first"),
            segment_factory(5, 3, "second"),
            segment_factory(8, 2, "third"),
        ]

        allocation = self.allocator.allocate(segments)

        assert allocation.lanes == [0, 1, 0]

    def test_roles_along_a_segment(self, segment_factory):
        allocation = self.allocator.allocate([segment_factory(5, 3, "trip")])

        assert [p.role for p in allocation.placements] == [
            PlacementRole.OCCURRENCE_START,
            PlacementRole.CONTINUATION,
            PlacementRole.CONTINUATION,
        ]
        assert [p.day for p in allocation.placements] == [5, 6, 7]

    def test_placeholder_keeps_rows_aligned(self, segment_factory):
        segments = [segment_factory(1, 2, "a"), segment_factory(2, 2, "b")]

        allocation = self.allocator.allocate(segments)

        assert allocation.lanes == [0, 1]
        assert _roles(allocation.cells[3]) == [
            (0, PlacementRole.PLACEHOLDER, None),
            (1, PlacementRole.CONTINUATION, "b"),
        ]

    def test_later_segment_claims_placeholder_lane(self, segment_factory):
        segments = [segment_factory(1, 2, "a"), segment_factory(2, 2, "b"), segment_factory(3, 1, "c")]

        allocation = self.allocator.allocate(segments)

        assert allocation.lanes == [0, 1, 0]
        assert _roles(allocation.cells[3]) == [
            (0, PlacementRole.OCCURRENCE_START, "c"),
            (1, PlacementRole.CONTINUATION, "b"),
        ]

    def test_start_day_is_padded_too(self, segment_factory):
        segments = [segment_factory(4, 1, "a"), segment_factory(3, 2, "b")]

        allocation = self.allocator.allocate(segments)

        assert allocation.lanes == [0, 1]
        assert _roles(allocation.cells[3]) == [
            (0, PlacementRole.PLACEHOLDER, None),
            (1, PlacementRole.OCCURRENCE_START, "b"),
        ]

    def test_lane_chosen_from_union_of_days(self, segment_factory):
        # Lane 1 is only taken on day 12
        segments = [
            segment_factory(10, 1, "a"),
            segment_factory(11, 2, "b"),
            segment_factory(12, 1, "c"),
            segment_factory(10, 3, "d"),
        ]

        allocation = self.allocator.allocate(segments)

        assert allocation.lanes == [0, 0, 1, 2]

    def test_no_two_events_share_a_slot(self, segment_factory):
        segments = [
            segment_factory(start, length, f"e{i}")
            for i, (start, length) in enumerate(
                [(1, 2), (3, 7), (5, 3), (3, 2), (10, 7), (12, 2), (4, 4), (17, 3), (6, 2), (24, 7)]
            )
        ]

        allocation = self.allocator.allocate(segments)

        taken = [(p.day, p.lane) for p in allocation.placements if p.is_event]
        assert len(taken) == len(set(taken))
        for i, a in enumerate(segments):
            for j, b in enumerate(segments[i + 1 :], start=i + 1):
                if set(a.days) & set(b.days):
                    assert allocation.lanes[i] != allocation.lanes[j]

    def test_cells_have_no_gaps(self, segment_factory):
        segments = [segment_factory(5, 3, "a"), segment_factory(5, 3, "b"), segment_factory(7, 2, "c")]

        allocation = self.allocator.allocate(segments)

        for cell in allocation.cells.values():
            assert [p.lane for p in cell] == list(range(len(cell)))

    def test_allocation_is_repeatable(self, segment_factory):
        segments = [segment_factory(5, 3, "a"), segment_factory(6, 3, "b"), segment_factory(7, 1, "c")]

        first = self.allocator.allocate(segments)
        second = self.allocator.allocate(segments)

        assert first.placements == second.placements
        assert first.lane_count == 3

    def test_empty_input(self):
        allocation = self.allocator.allocate([])

        assert allocation.placements == []
        assert allocation.lane_count == 0
