"""Tests for adjacency clustering and corridor synthesis."""

import pytest

from floorplan_solver.core.corridor import (
    GeneratedCorridor,
    build_adjacency_graph,
    candidate_strips,
    find_room_clusters,
    generate_corridor,
    insert_corridor,
    validate_corridor,
)
from floorplan_solver.core.frame import build_layout_frame
from floorplan_solver.models.plan_state import CORRIDOR_ID, rooms_overlap
from floorplan_solver.utils.geometry import RectOps


class TestAdjacencyGraph:
    def test_edges_carry_shared_length(self, make_placed):
        rooms = [
            make_placed("a", (0, 0, 4, 4)),
            make_placed("b", (4, 1, 8, 3)),
            make_placed("c", (10, 0, 12, 4)),
        ]
        graph = build_adjacency_graph(rooms)
        assert graph["a"]["b"]["length"] == pytest.approx(2.0)
        assert not graph.has_edge("b", "c")
        assert not build_adjacency_graph(rooms, min_shared=3.0).has_edge("a", "b")

    def test_clusters(self, make_placed):
        rooms = [
            make_placed("a", (0, 0, 4, 4)),
            make_placed("b", (4, 0, 8, 4)),
            make_placed("c", (10, 0, 12, 4)),
        ]
        clusters = find_room_clusters(rooms)
        assert sorted(sorted(c) for c in clusters) == [["a", "b"], ["c"]]


class TestGenerateCorridor:
    def test_not_needed_for_single_cluster(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a"), make_room("b", "office")])
        state = make_state(
            intent, [make_placed("a", (0, 0, 8, 12)), make_placed("b", (8, 0, 16, 12), "office")]
        )
        assert generate_corridor(state, intent, build_layout_frame(intent)) is None

    def test_straight_corridor_links_two_clusters(
        self, make_intent, make_room, make_placed, make_state
    ):
        intent = make_intent([make_room("a"), make_room("b", "office")])
        frame = build_layout_frame(intent)
        state = make_state(
            intent, [make_placed("a", (0, 0, 6, 5)), make_placed("b", (10, 0, 16, 5), "office")]
        )
        corridor = generate_corridor(state, intent, frame)
        assert corridor is not None
        assert not corridor.is_l_shaped
        assert validate_corridor(corridor, state, intent, frame)

        room = insert_corridor(state, corridor)
        assert room.id == CORRIDOR_ID
        assert len(find_room_clusters(list(state.placed.values()))) == 1
        assert state.corridor_polygon is not None

    def test_l_shaped_corridor_for_diagonal_clusters(
        self, make_intent, make_room, make_placed, make_state
    ):
        intent = make_intent([make_room("a"), make_room("b", "office")], width=12, height=12)
        frame = build_layout_frame(intent)
        state = make_state(
            intent, [make_placed("a", (0, 0, 5, 5)), make_placed("b", (7, 7, 12, 12), "office")]
        )
        corridor = generate_corridor(state, intent, frame)
        assert corridor is not None
        assert corridor.is_l_shaped
        assert validate_corridor(corridor, state, intent, frame)

        room = insert_corridor(state, corridor)
        assert room.segments is not None
        assert len(state.corridor_polygon) >= 6
        assert not any(
            rooms_overlap(room, other) for other in state.placed.values() if other.id != room.id
        )
        assert len(find_room_clusters(list(state.placed.values()))) == 1

    def test_strips_are_free_and_inside(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a")])
        frame = build_layout_frame(intent)
        rooms = [make_placed("a", (0, 0, 6, 5))]
        strips = candidate_strips(rooms, frame, 1.2)
        assert strips
        for strip in strips:
            assert frame.contains(strip)
            assert not RectOps.overlaps(strip, rooms[0].rect)


class TestValidateCorridor:
    def test_rejects_overlap_and_narrow(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a")])
        frame = build_layout_frame(intent)
        state = make_state(intent, [make_placed("a", (0, 0, 6, 5))])
        assert not validate_corridor(GeneratedCorridor([(5, 0, 6.2, 12)], 1.2), state, intent, frame)
        assert not validate_corridor(GeneratedCorridor([(6, 0, 6.8, 12)], 0.8), state, intent, frame)
        assert not validate_corridor(GeneratedCorridor([(15, 0, 16.2, 12)], 1.2), state, intent, frame)
        assert validate_corridor(GeneratedCorridor([(6, 0, 7.2, 12)], 1.2), state, intent, frame)

    def test_l_shape_room(self):
        corridor = GeneratedCorridor([(0, 5, 12, 6.2), (5.8, 0, 7, 12)], 1.2)
        room = corridor.to_room()
        assert room.room_type.value == "hall"
        assert room.label == "Hallway"
        assert room.rect == (0, 0, 12, 12)
        assert len(room.parts) == 2
