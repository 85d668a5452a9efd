"""Tests for entry detection and door-graph reachability."""

from floorplan_solver.core.reachability import (
    NO_ENTRY_MESSAGE,
    build_door_graph,
    door_graph_dict,
    find_entry_room,
    find_reachable_rooms,
    find_unreachable_rooms,
    validate_reachability,
)
from floorplan_solver.models.plan_state import PlacedOpening


def _door(a, b, edge="east"):
    return PlacedOpening("door", a, edge, 0.9, connects_to=b)


class TestFindEntryRoom:
    def test_exterior_door_flag_wins(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent(
            [make_room("foyer", "foyer"), make_room("k", "kitchen", has_exterior_door=True)]
        )
        state = make_state(
            intent,
            [make_placed("foyer", (0, 0, 4, 4), "foyer"), make_placed("k", (4, 4, 8, 8), "kitchen")],
        )
        assert find_entry_room(intent, state).id == "k"

    def test_foyer_next(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("hall", "hall"), make_room("f", "foyer")])
        state = make_state(
            intent,
            [make_placed("hall", (0, 0, 4, 4), "hall"), make_placed("f", (4, 4, 8, 8), "foyer")],
        )
        assert find_entry_room(intent, state).id == "f"

    def test_circulation_on_front_edge(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("liv", "living"), make_room("hall", "hall")])
        state = make_state(
            intent,
            [make_placed("liv", (0, 0, 4, 4), "living"), make_placed("hall", (4, 0, 6, 4), "hall")],
        )
        assert find_entry_room(intent, state).id == "hall"

    def test_any_room_on_front_edge(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a", "office"), make_room("b", "office")])
        state = make_state(
            intent,
            [make_placed("a", (0, 4, 4, 8), "office"), make_placed("b", (4, 0, 8, 4), "office")],
        )
        assert find_entry_room(intent, state).id == "b"

    def test_no_entry(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a", "office")], front_edge="north")
        state = make_state(intent, [make_placed("a", (0, 0, 4, 4), "office")])
        assert find_entry_room(intent, state) is None
        assert validate_reachability(intent, state) == NO_ENTRY_MESSAGE


class TestDoorGraph:
    def test_only_interior_doors_are_edges(self, suite_intent, suite_state):
        suite_state.openings = [
            _door("hall", "master", "north"),
            PlacedOpening("door", "hall", "south", 0.9, is_exterior=True),
            PlacedOpening("window", "office", "north", 1.5, is_exterior=True),
        ]
        graph = build_door_graph(suite_state)
        assert set(graph.nodes) == {"hall", "master", "ens", "bath2", "office"}
        assert list(graph.edges) == [("hall", "master")]
        assert door_graph_dict(graph)["ens"] == []

    def test_reachable_in_placement_order(self, suite_state):
        suite_state.openings = [
            _door("master", "office", "east"),
            _door("hall", "master", "north"),
        ]
        assert find_reachable_rooms("hall", suite_state) == ["hall", "master", "office"]
        assert find_unreachable_rooms("hall", suite_state) == ["ens", "bath2"]
        assert find_reachable_rooms("ghost", suite_state) == []

    def test_validate_reachability(self, suite_intent, suite_state):
        suite_state.openings = [_door("hall", "master", "north"), _door("ens", "master", "west")]
        assert (
            validate_reachability(suite_intent, suite_state)
            == "Rooms not reachable from entry: bath2, office"
        )
        suite_state.openings += [_door("bath2", "hall", "south"), _door("master", "office")]
        assert validate_reachability(suite_intent, suite_state) is None
