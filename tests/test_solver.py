"""End-to-end tests for the solve pipeline."""

import json

import pytest

from floorplan_solver.core.reachability import validate_reachability
from floorplan_solver.core.solver import SolveFailure, SolveOptions, SolveSuccess, solve
from floorplan_solver.core.trace import InspectTrace, format_inspect_trace
from floorplan_solver.models.intent import LayoutIntent, normalize_intent
from floorplan_solver.models.plan_state import INSUFFICIENT_AREA
from floorplan_solver.utils.geometry import RectOps


def _intent_data():
    """Hall filling the front strip with a living room and bedroom behind it."""
    return {
        "units": "m",
        "footprint": {"kind": "rect", "min": [0, 0], "max": [12, 8]},
        "frontEdge": "south",
        "depths": [
            {"id": "front", "targetDepth": 2},
            {"id": "back", "targetDepth": 6},
        ],
        "rooms": [
            {
                "id": "hall",
                "type": "hall",
                "minArea": 12,
                "fillCell": True,
                "preferredDepths": ["front"],
                "isCirculation": True,
                "hasExteriorDoor": True,
            },
            {
                "id": "liv",
                "type": "living",
                "label": "Living Room",
                "minArea": 30,
                "preferredDepths": ["back"],
                "adjacentTo": ["hall"],
            },
            {
                "id": "bed",
                "type": "bedroom",
                "minArea": 20,
                "preferredDepths": ["back"],
                "adjacentTo": ["hall"],
            },
        ],
    }


class TestSolveSuccess:
    @pytest.fixture
    def result(self):
        return solve(_intent_data())

    def test_succeeds(self, result):
        assert isinstance(result, SolveSuccess)
        assert result.success
        assert list(result.state.placed) == ["hall", "liv", "bed"]
        assert result.state.unplaced == []

    def test_hall_spans_front(self, result):
        assert result.state.placed["hall"].rect == (0, 0, 12, 2)
        assert result.state.placed["hall"].depth == "front"

    def test_rooms_do_not_overlap(self, result):
        rects = [room.rect for room in result.state.placed.values()]
        for i in range(len(rects)):
            for j in range(i + 1, len(rects)):
                assert not RectOps.overlaps(rects[i], rects[j])

    def test_doors_and_reachability(self, result):
        state = result.state
        assert state.has_door_between("hall", "liv")
        assert state.has_door_between("hall", "bed")
        exterior = [o for o in state.doors() if o.is_exterior]
        assert [o.room_id for o in exterior] == ["hall"]
        intent = normalize_intent(LayoutIntent.from_dict(_intent_data()))
        assert validate_reachability(intent, state) is None

    def test_plan_script(self, result):
        text = result.plan_script
        assert text.startswith("units m\n")
        assert "  room hall {" in text
        assert '    label "Living Room"' in text
        assert "  # front/full zone" not in text
        assert "  # full/front zone" in text
        assert text.endswith("}")

    def test_no_corridor_when_circulation_declared(self, result):
        assert "corridor" not in result.state.placed

    def test_score_and_dict(self, result):
        assert result.score["total"] > 0
        data = result.to_dict()
        assert data["success"] is True
        assert data["planScript"] == result.plan_script
        assert "inspectTrace" not in data
        json.dumps(data)


class TestInspect:
    def test_trace_is_recorded(self):
        result = solve(_intent_data(), SolveOptions(inspect=True))
        assert result.success
        trace = result.trace
        assert isinstance(trace, InspectTrace)
        assert [r["id"] for r in trace.room_ordering] == ["hall", "liv", "bed"]
        assert len(trace.placements) == 3
        assert trace.reachability["entry_room"] == "hall"
        assert trace.reachability["unreachable_rooms"] == []
        assert len(trace.final_layout) == 3
        assert "Entry room: hall" in format_inspect_trace(trace)
        assert "inspectTrace" in result.to_dict()


class TestSolveFailure:
    def test_invalid_intent(self):
        data = _intent_data()
        data["rooms"] = []
        result = solve(data)
        assert isinstance(result, SolveFailure)
        assert not result.success
        assert result.error == "Invalid intent"
        assert result.violations == ["No rooms specified"]

    def test_unknown_adjacency(self):
        data = _intent_data()
        data["rooms"][1]["adjacentTo"] = ["attic"]
        result = solve(data)
        assert result.violations == ["Room liv references unknown room attic in adjacentTo"]

    def test_unplaceable_room(self):
        data = _intent_data()
        data["rooms"].append({"id": "ballroom", "type": "living", "minArea": 300})
        result = solve(data, SolveOptions(variants=2))
        assert not result.success
        assert result.error == "Could not place 1 room(s): ballroom"
        assert result.failures[0].reason == INSUFFICIENT_AREA
        assert result.to_dict()["failures"][0]["roomId"] == "ballroom"

    def test_bad_footprint_is_reported(self):
        data = _intent_data()
        data["footprint"] = {"kind": "circle"}
        result = solve(data)
        assert not result.success
        assert result.error == "Unknown footprint kind: circle"

    def test_variants_must_be_positive(self):
        with pytest.raises(ValueError):
            SolveOptions(variants=0)


def _rect_footprint(width, height):
    return {"kind": "rect", "min": [0, 0], "max": [width, height]}


class TestScenarios:
    def test_two_banded_rooms(self):
        result = solve(
            {
                "footprint": _rect_footprint(12, 8),
                "bands": [{"id": "left", "targetWidth": 6}, {"id": "right", "targetWidth": 6}],
                "rooms": [
                    {
                        "id": "living",
                        "type": "living",
                        "minArea": 25,
                        "preferredBands": ["left"],
                        "mustTouchExterior": True,
                    },
                    {
                        "id": "bedroom",
                        "type": "bedroom",
                        "minArea": 20,
                        "preferredBands": ["right"],
                        "mustTouchExterior": True,
                    },
                ],
            }
        )
        assert result.success
        assert {"living", "bedroom"} <= set(result.state.placed)
        assert result.state.unplaced == []
        assert "room living {" in result.plan_script
        assert "room bedroom {" in result.plan_script

    def test_room_on_north_edge(self):
        result = solve(
            {
                "footprint": _rect_footprint(12, 10),
                "rooms": [
                    {"id": "living", "type": "living", "minArea": 30, "mustTouchEdge": "north"}
                ],
            }
        )
        assert result.success
        assert result.state.placed["living"].rect[3] == pytest.approx(10)

    def test_ensuite_next_to_its_bedroom(self):
        result = solve(
            {
                "footprint": _rect_footprint(10, 8),
                "rooms": [
                    {"id": "hall", "type": "hall", "minArea": 8, "isCirculation": True, "hasExteriorDoor": True},
                    {"id": "master", "type": "bedroom", "minArea": 20, "adjacentTo": ["hall"]},
                    {"id": "ensuite", "type": "bath", "minArea": 5, "adjacentTo": ["master"], "isEnsuite": True},
                ],
            }
        )
        assert result.success
        state = result.state
        assert RectOps.adjacent(state.placed["ensuite"].rect, state.placed["master"].rect)
        doors = state.interior_doors_for("ensuite")
        assert len(doors) == 1
        assert {doors[0].room_id, doors[0].connects_to} == {"ensuite", "master"}

    def test_single_width_wing(self):
        result = solve(
            {
                "footprint": _rect_footprint(6, 14),
                "rooms": [
                    {"id": "kitchen", "type": "kitchen", "minArea": 12, "isCirculation": True, "hasExteriorDoor": True},
                    {"id": "bedroom", "type": "bedroom", "minArea": 12, "adjacentTo": ["kitchen"]},
                    {"id": "bath", "type": "bath", "minArea": 5, "adjacentTo": ["kitchen"], "isEnsuite": False},
                ],
            }
        )
        if result.success:
            placed = result.state.placed
            kitchen = placed["kitchen"].rect
            assert RectOps.adjacent(placed["bedroom"].rect, kitchen) or RectOps.adjacent(
                placed["bath"].rect, kitchen
            )
        else:
            assert result.error == "Plan has unreachable rooms"
            assert result.violations[0].startswith("Rooms not reachable from entry")


def _isolated_bedroom_data(all_rooms_reachable):
    """Three side-by-side bands where bed2 only touches another bedroom."""
    return {
        "footprint": _rect_footprint(12, 4),
        "bands": [
            {"id": "west", "targetWidth": 4},
            {"id": "mid", "targetWidth": 4},
            {"id": "east", "targetWidth": 4},
        ],
        "hard": {"allRoomsReachable": all_rooms_reachable},
        "rooms": [
            {
                "id": "hall",
                "type": "hall",
                "minArea": 12,
                "fillCell": True,
                "preferredBands": ["west"],
                "isCirculation": True,
                "hasExteriorDoor": True,
            },
            {
                "id": "bed",
                "type": "bedroom",
                "minArea": 12,
                "fillCell": True,
                "preferredBands": ["mid"],
                "adjacentTo": ["hall"],
            },
            {
                "id": "bed2",
                "type": "bedroom",
                "minArea": 12,
                "fillCell": True,
                "preferredBands": ["east"],
            },
        ],
    }


class TestReachabilityFlag:
    def test_unreachable_room_is_warning_when_not_required(self):
        result = solve(_isolated_bedroom_data(False))
        assert result.success
        placed = result.state.placed
        assert not RectOps.adjacent(placed["bed2"].rect, placed["hall"].rect)
        assert result.state.has_door_between("hall", "bed")
        assert not result.state.has_door_between("bed", "bed2")
        assert "Rooms not reachable from entry: bed2" in result.warnings

    def test_unreachable_room_fails_when_required(self):
        result = solve(_isolated_bedroom_data(True))
        assert not result.success
        assert result.error == "Plan has unreachable rooms"
        assert result.violations == ["Rooms not reachable from entry: bed2"]


class TestProperties:
    def test_deterministic(self):
        first = solve(_intent_data())
        second = solve(_intent_data())
        assert [r.rect for r in first.state.placed.values()] == [
            r.rect for r in second.state.placed.values()
        ]
        assert [o.to_dict() for o in first.state.openings] == [
            o.to_dict() for o in second.state.openings
        ]
        assert first.plan_script == second.plan_script

    def test_rooms_inside_footprint(self):
        result = solve(_intent_data())
        for room in result.state.placed.values():
            assert RectOps.inside(room.rect, (0, 0, 12, 8))

    def test_no_door_between_bedrooms(self):
        data = _intent_data()
        data["rooms"][1] = {
            "id": "bed2",
            "type": "bedroom",
            "minArea": 20,
            "preferredDepths": ["back"],
            "adjacentTo": ["hall"],
        }
        result = solve(data)
        assert result.success
        assert not result.state.has_door_between("bed", "bed2")

    def test_reachability_consistent(self):
        result = solve(_intent_data(), SolveOptions(inspect=True))
        reach = result.trace.reachability
        assert set(reach["reachable_rooms"]) == set(result.state.placed) - set(
            reach["unreachable_rooms"]
        )
