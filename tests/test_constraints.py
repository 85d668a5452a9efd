"""Tests for hard validation, soft scoring and plan metrics."""

import pytest

from floorplan_solver.core.constraints import (
    DISCONNECTED,
    NO_EXTERIOR,
    OUTSIDE_FOOTPRINT,
    OVERLAP,
    SOFT_CONSTRAINTS,
    WRONG_EDGE,
    check_candidate_hard,
    create_default_constraints,
    score_candidate,
    score_plan,
    validate_plan_hard,
)
from floorplan_solver.core.frame import build_layout_frame
from floorplan_solver.models.intent import HardConstraints
from floorplan_solver.utils.metrics import PlanMetrics


class TestHardValidation:
    def test_valid_plan(self, suite_state, suite_intent, suite_frame):
        assert validate_plan_hard(suite_state, suite_intent, suite_frame) == []

    def test_overlap(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a"), make_room("b")])
        state = make_state(intent, [make_placed("a", (0, 0, 4, 4)), make_placed("b", (3, 0, 7, 4))])
        violations = validate_plan_hard(state, intent, build_layout_frame(intent))
        assert [v.message for v in violations] == ["Rooms a and b overlap"]
        assert violations[0].to_dict() == {
            "type": OVERLAP,
            "roomId": "a",
            "message": "Rooms a and b overlap",
            "otherRoomId": "b",
        }

    def test_overlap_check_can_be_disabled(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent(
            [make_room("a"), make_room("b")], hard=HardConstraints(no_overlap=False)
        )
        state = make_state(intent, [make_placed("a", (0, 0, 4, 4)), make_placed("b", (3, 0, 7, 4))])
        assert validate_plan_hard(state, intent, build_layout_frame(intent)) == []

    def test_outside_footprint(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("c")])
        state = make_state(intent, [make_placed("c", (13, 0, 17, 4))])
        violations = validate_plan_hard(state, intent, build_layout_frame(intent))
        assert [str(v) for v in violations] == ["Room c extends outside the footprint"]

    def test_edge_and_exterior(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent(
            [
                make_room("a", must_touch_edge="north"),
                make_room("b", must_touch_exterior=True),
            ]
        )
        state = make_state(
            intent, [make_placed("a", (0, 0, 4, 4)), make_placed("b", (5, 5, 8, 8))]
        )
        messages = [v.message for v in validate_plan_hard(state, intent, build_layout_frame(intent))]
        assert "Room a must touch the north edge" in messages
        assert "Room b must touch an exterior wall" in messages


class TestCandidateChecks:
    @pytest.fixture
    def setup(self, make_intent, make_room, make_placed):
        intent = make_intent(
            [
                make_room("bed", "bedroom", 12),
                make_room("ens", "bath", 4, adjacent_to=["bed"], is_ensuite=True),
                make_room("liv", "living", 20, must_touch_edge="south", must_touch_exterior=True),
            ]
        )
        placed = [make_placed("bed", (0, 0, 4, 4))]
        return intent, build_layout_frame(intent), placed

    def test_valid_candidate(self, setup):
        intent, frame, placed = setup
        ens = intent.get_room("ens")
        assert check_candidate_hard((4, 0, 6, 2), ens, placed, frame, intent) is None

    def test_violation_types(self, setup):
        intent, frame, placed = setup
        ens = intent.get_room("ens")
        liv = intent.get_room("liv")
        assert check_candidate_hard((15, 0, 17, 2), ens, placed, frame, intent).violation_type == OUTSIDE_FOOTPRINT
        overlap = check_candidate_hard((3, 0, 5, 2), ens, placed, frame, intent)
        assert overlap.violation_type == OVERLAP
        assert overlap.other_room_id == "bed"
        assert check_candidate_hard((6, 0, 8, 2), ens, placed, frame, intent).violation_type == DISCONNECTED
        assert check_candidate_hard((6, 4, 10, 8), liv, placed, frame, intent).violation_type == NO_EXTERIOR
        assert check_candidate_hard((6, 8, 12, 12), liv, placed, frame, intent).violation_type == WRONG_EDGE

    def test_adjacency_raises_score(self, setup):
        intent, frame, placed = setup
        ens = intent.get_room("ens")
        touching = score_candidate((4, 0, 6, 2.2), ens, placed, frame, intent)
        apart = score_candidate((8, 0, 10, 2.2), ens, placed, frame, intent)
        assert touching > apart

    def test_avoided_neighbor_lowers_score(self, make_intent, make_room, make_placed):
        intent = make_intent(
            [make_room("bed", "bedroom", 12), make_room("gar", "garage", 16, avoid_adjacent_to=["bed"])]
        )
        frame = build_layout_frame(intent)
        placed = [make_placed("bed", (0, 0, 4, 4))]
        gar = intent.get_room("gar")
        assert score_candidate((4, 0, 8, 4), gar, placed, frame, intent) < score_candidate(
            (8, 0, 12, 4), gar, placed, frame, intent
        )


class TestScoring:
    def test_components_follow_weight_keys(self, suite_state, suite_intent, suite_frame):
        result = score_plan(suite_state, suite_intent, suite_frame)
        assert set(result["components"]) == set(SOFT_CONSTRAINTS)
        assert result["total"] == pytest.approx(sum(result["components"].values()))

    def test_suite_components(self, suite_state, suite_intent, suite_frame):
        components = score_plan(suite_state, suite_intent, suite_frame)["components"]
        # Three declared adjacencies, all realized, weight 3
        assert components["adjacencySatisfaction"] == pytest.approx(30.0)
        assert components["compactness"] == pytest.approx(10.0)
        assert components["bathroomClustering"] == pytest.approx(10.0)
        # Hall covers a quarter of the footprint
        assert components["minimizeHallArea"] == pytest.approx(5.0)
        assert components["minimizeExteriorWallBreaks"] == pytest.approx(7.0)

    def test_weight_override(self, suite_state, suite_intent, suite_frame):
        suite_intent.weights["compactness"] = 0.0
        components = score_plan(suite_state, suite_intent, suite_frame)["components"]
        assert components["compactness"] == 0.0

    def test_constraint_system_split(self, suite_intent, suite_frame):
        system = create_default_constraints(suite_intent, suite_frame)
        assert len(system.hard_constraints) == 4
        assert len(system.soft_constraints) == len(SOFT_CONSTRAINTS)


class TestPlanMetrics:
    def test_summary(self, suite_state, suite_intent, suite_frame):
        metrics = PlanMetrics(suite_state, suite_intent.room_map(), suite_frame.footprint_rect)
        summary = metrics.summary()
        assert summary["rooms"] == 5
        assert summary["adjacency_satisfied"] == 3
        assert summary["adjacency_required"] == 3
        assert summary["hall_ratio"] == pytest.approx(0.25)
        assert summary["utilization"] == pytest.approx(1.0)
        assert summary["exterior_wall_breaks"] == 4

    def test_coverage(self, make_intent, make_room, make_placed, make_state):
        intent = make_intent([make_room("a")])
        state = make_state(intent, [make_placed("a", (0, 0, 4, 4))])
        metrics = PlanMetrics(state, intent.room_map(), (0, 0, 16, 12))
        mask = metrics.coverage_mask(resolution=0.5)
        assert mask.shape == (32, 24)
        assert mask[:8, :8].all()
        assert not mask[8:, :].any()
        assert metrics.uncovered_area(resolution=0.5) == pytest.approx(176.0)
