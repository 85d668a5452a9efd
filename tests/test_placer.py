"""Tests for candidate generation and the greedy placer."""

import pytest

from floorplan_solver.core.candidates import (
    SIZE_VARIATIONS,
    Candidate,
    deduplicate_candidates,
    generate_sizes,
    rotate_variations,
)
from floorplan_solver.core.constraints import validate_plan_hard
from floorplan_solver.core.frame import build_layout_frame
from floorplan_solver.core.placer import RoomPlacer, place_rooms
from floorplan_solver.core.trace import InspectTrace
from floorplan_solver.models.intent import RoomSpec
from floorplan_solver.models.plan_state import FOOTPRINT_EXHAUSTED, INSUFFICIENT_AREA
from floorplan_solver.utils.geometry import RectOps


class TestCandidates:
    def test_rotate_variations(self):
        assert rotate_variations(SIZE_VARIATIONS, 0) == [1.0, 0.95, 1.05]
        assert rotate_variations(SIZE_VARIATIONS, 1) == [0.95, 1.05, 1.0]
        assert rotate_variations(SIZE_VARIATIONS, 3) == SIZE_VARIATIONS
        assert rotate_variations([], 2) == []

    def test_sizes_fit_cell_and_area(self):
        room = RoomSpec("bed", "bedroom", 10)
        sizes = generate_sizes(room, 16, 12)
        assert sizes
        for width, height in sizes:
            assert width <= 16 and height <= 12
            assert width * height >= 10 * 0.95 - 1e-6

    def test_fill_cell_sizes(self):
        room = RoomSpec("k", "kitchen", 10, fill_cell=True)
        assert generate_sizes(room, 4, 5) == [(4, 5), (3.6, 5), (4, 4.5)]

    def test_no_size_when_cell_too_small(self):
        assert generate_sizes(RoomSpec("big", "living", 300), 16, 12) == []

    def test_deduplicate(self):
        a = Candidate((0, 0, 4, 4), None, 3)
        b = Candidate((0.01, 0, 4.01, 4), None, 2)
        c = Candidate((4, 0, 8, 4), None, 1)
        assert deduplicate_candidates([a, b, c]) == [a, c]


class TestRoomPlacer:
    @pytest.fixture
    def intent(self, make_intent, make_room):
        return make_intent(
            [
                make_room("liv", "living", 40, must_touch_edge="south"),
                make_room("bed", "bedroom", 20, adjacent_to=["liv"]),
            ]
        )

    def test_places_all_rooms(self, intent):
        frame = build_layout_frame(intent)
        state = place_rooms(intent, frame)
        assert list(state.placed) == ["liv", "bed"]
        assert state.unplaced == []
        assert validate_plan_hard(state, intent, frame) == []
        assert frame.touches_edge(state.placed["liv"].rect, "south")
        assert RectOps.adjacent(state.placed["liv"].rect, state.placed["bed"].rect)

    def test_placed_rooms_carry_cell(self, intent):
        state = place_rooms(intent, build_layout_frame(intent))
        assert state.placed["liv"].band == "full"
        assert state.placed["liv"].depth == "full"
        assert state.placed["bed"].label == "bed"

    def test_variant_rotates_variations(self, intent):
        placer = RoomPlacer(intent, build_layout_frame(intent), variant=1)
        assert placer.variations == [0.95, 1.05, 1.0]

    def test_trace_records_each_room(self, intent):
        trace = InspectTrace()
        place_rooms(intent, build_layout_frame(intent), trace=trace)
        assert [p["room_id"] for p in trace.placements] == ["liv", "bed"]
        assert all(p["success"] for p in trace.placements)
        assert trace.placements[0]["top_candidates"][0]["accepted"]
        assert trace.placements[0]["preferred_cells"] == ["full/full"]


class TestPlacementFailures:
    def test_insufficient_area(self, make_intent, make_room):
        intent = make_intent([make_room("big", "living", 300)])
        state = place_rooms(intent, build_layout_frame(intent))
        assert state.unplaced == ["big"]
        failure = state.failures["big"]
        assert failure.reason == INSUFFICIENT_AREA
        assert failure.message == "Room big needs 300.0 but the largest candidate cell has 192.0"

    def test_footprint_exhausted(self, make_intent, make_room):
        intent = make_intent([make_room("a", "office", 100), make_room("b", "office", 100)])
        trace = InspectTrace()
        state = place_rooms(intent, build_layout_frame(intent), trace=trace)
        assert list(state.placed) == ["a"]
        assert state.unplaced == ["b"]
        assert state.failures["b"].reason == FOOTPRINT_EXHAUSTED
        assert not trace.placements[1]["success"]
        assert trace.placements[1]["failure_reason"] == state.failures["b"].message
