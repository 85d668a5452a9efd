"""Tests for the adjacency repair pass and gap filling."""

import pytest

from floorplan_solver.core.frame import build_layout_frame
from floorplan_solver.core.gaps import blocks_expansion, fill_gaps_iterative, try_expand
from floorplan_solver.core.repair import (
    count_adjacency_satisfaction,
    find_best_swap,
    repair_placement,
)
from floorplan_solver.utils.geometry import RectOps


@pytest.fixture
def row(make_intent, make_room, make_placed, make_state):
    """Three equal offices in a row where r1 wants to touch r3."""
    intent = make_intent(
        [
            make_room("r1", "office", 14, adjacent_to=["r3"]),
            make_room("r2", "office", 14),
            make_room("r3", "office", 14),
        ],
        width=12,
        height=4,
    )
    state = make_state(
        intent,
        [
            make_placed("r1", (0, 0, 4, 4), "office"),
            make_placed("r2", (4, 0, 8, 4), "office"),
            make_placed("r3", (8, 0, 12, 4), "office"),
        ],
    )
    return intent, state, build_layout_frame(intent)


class TestRepair:
    def test_count_adjacency_satisfaction(self, row):
        intent, state, _ = row
        rects = {room_id: room.rect for room_id, room in state.placed.items()}
        assert count_adjacency_satisfaction(rects, intent.room_map()) == 0

    def test_swap_fixes_adjacency(self, row):
        intent, state, frame = row
        assert repair_placement(state, intent, frame)
        assert RectOps.adjacent(state.placed["r1"].rect, state.placed["r3"].rect)
        assert find_best_swap(state, intent.room_map(), frame) is None

    def test_swap_keeps_edge_requirement(self, row):
        intent, state, frame = row
        intent.get_room("r3").must_touch_edge = "east"
        assert repair_placement(state, intent, frame)
        assert state.placed["r3"].rect == (8, 0, 12, 4)
        assert RectOps.adjacent(state.placed["r1"].rect, state.placed["r3"].rect)

    def test_nothing_to_repair(self, row):
        intent, state, frame = row
        intent.get_room("r1").adjacent_to = ["r2"]
        assert not repair_placement(state, intent, frame)
        assert state.placed["r1"].rect == (0, 0, 4, 4)


class TestGapFilling:
    def test_blocks_expansion(self):
        rect = (0, 0, 4, 4)
        assert blocks_expansion(rect, (5, 1, 8, 3), "east")
        assert not blocks_expansion(rect, (5, 5, 8, 8), "east")
        assert blocks_expansion(rect, (1, 6, 3, 8), "north")

    def test_grows_to_footprint_and_neighbors(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a"), make_room("b", "office")], width=10, height=6)
        state = make_state(
            intent, [make_placed("a", (1, 1, 4, 4)), make_placed("b", (6, 1, 9, 4), "office")]
        )
        passes = fill_gaps_iterative(state, intent, build_layout_frame(intent))
        assert passes >= 1
        assert state.placed["a"].rect == (0, 0, 6, 6)
        assert state.placed["b"].rect == (6, 0, 10, 6)

    def test_covered_plan_needs_no_passes(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a"), make_room("b")], width=10, height=6)
        state = make_state(
            intent, [make_placed("a", (0, 0, 5, 6)), make_placed("b", (5, 0, 10, 6))]
        )
        assert fill_gaps_iterative(state, intent, build_layout_frame(intent)) == 0
        assert state.placed["a"].rect == (0, 0, 5, 6)

    def test_respects_max_area(self, make_intent, make_room, make_placed):
        intent = make_intent([make_room("a", max_area=15)], width=10, height=6)
        frame = build_layout_frame(intent)
        room = make_placed("a", (0, 0, 3, 3))
        grown = try_expand(room, "east", [], frame, intent.get_room("a"))
        assert grown == (0, 0, 5, 3)

    def test_respects_max_width(self, make_intent, make_room, make_placed):
        intent = make_intent([make_room("a", max_width=4)], width=10, height=6)
        frame = build_layout_frame(intent)
        grown = try_expand(make_placed("a", (0, 0, 3, 3)), "east", [], frame, intent.get_room("a"))
        assert grown == (0, 0, 4, 3)

    def test_no_room_to_grow(self, make_intent, make_room, make_placed):
        intent = make_intent([make_room("a")], width=10, height=6)
        frame = build_layout_frame(intent)
        assert try_expand(make_placed("a", (0, 0, 10, 3)), "east", [], frame) is None
