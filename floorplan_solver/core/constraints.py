"""
Constraint system for the floor plan solver.
Hard constraints disqualify a plan; soft constraints score it (0-10 each)
and their weighted sum ranks the variants that pass hard validation.
"""

from typing import List, Dict, Any, Optional

import numpy as np

from floorplan_solver.config.config_loader import get_ideal_aspects
from floorplan_solver.core.frame import LayoutFrame
from floorplan_solver.models.intent import LayoutIntent, RoomSpec, RoomType
from floorplan_solver.models.plan_state import PlanState, PlacedRoom, rooms_overlap
from floorplan_solver.utils.geometry import Rect, RectOps
from floorplan_solver.utils.metrics import PlanMetrics


# Violation types
OVERLAP = "overlap"
OUTSIDE_FOOTPRINT = "outside_footprint"
NO_EXTERIOR = "no_exterior"
WRONG_EDGE = "wrong_edge"
DISCONNECTED = "disconnected"
UNREACHABLE = "unreachable"


class ConstraintViolation:
    """A single hard constraint violation."""

    def __init__(
        self,
        violation_type: str,
        room_id: str,
        message: str,
        other_room_id: Optional[str] = None,
    ):
        self.violation_type = violation_type
        self.room_id = room_id
        self.message = message
        self.other_room_id = other_room_id

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.violation_type, "roomId": self.room_id, "message": self.message}
        if self.other_room_id is not None:
            data["otherRoomId"] = self.other_room_id
        return data

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"ConstraintViolation({self.violation_type}, {self.room_id})"


class Constraint:
    """Base class for all constraints"""

    def __init__(
        self,
        intent: LayoutIntent,
        frame: LayoutFrame,
        weight: float = 1.0,
        name: Optional[str] = None,
        is_hard: bool = False,
    ):
        """
        Initialize a constraint.

        Args:
            intent: Normalized intent the plan is solved for
            frame: Layout frame of the footprint
            weight: Importance weight of this constraint (higher = more important)
            name: Optional name for the constraint
            is_hard: Whether this is a hard constraint (must be satisfied)
        """
        self.intent = intent
        self.frame = frame
        self.weight = weight
        self.name = name or self.__class__.__name__
        self.is_hard = is_hard
        self.specs = intent.room_map()

    def evaluate(self, state: PlanState) -> float:
        """
        Evaluate how well the plan satisfies this constraint.

        Args:
            state: The plan state to evaluate

        Returns:
            float: Score between 0.0 (not satisfied) and 10.0 (fully satisfied)
        """
        raise NotImplementedError("Subclasses must implement evaluate()")

    def violations(self, state: PlanState) -> List[ConstraintViolation]:
        """
        List violations of this constraint (used for hard constraints).

        Args:
            state: The plan state to check

        Returns:
            List[ConstraintViolation]: Empty when satisfied
        """
        return []

    def _metrics(self, state: PlanState) -> PlanMetrics:
        return PlanMetrics(
            state, self.specs, self.frame.footprint_rect, self.frame.footprint_area
        )

    def __str__(self) -> str:
        return (
            f"{self.name} (weight={self.weight}, {'hard' if self.is_hard else 'soft'})"
        )


# ---------------------------------------------------------------------------
# Hard constraints
# ---------------------------------------------------------------------------


class NoOverlapConstraint(Constraint):
    """No two placed rooms may share interior area"""

    def __init__(self, intent, frame, name=None):
        super().__init__(intent, frame, weight=1.0, name=name or "NoOverlap", is_hard=True)

    def violations(self, state: PlanState) -> List[ConstraintViolation]:
        rooms = list(state.placed.values())
        found = []
        for i in range(len(rooms)):
            for j in range(i + 1, len(rooms)):
                if rooms_overlap(rooms[i], rooms[j]):
                    found.append(
                        ConstraintViolation(
                            OVERLAP,
                            rooms[i].id,
                            f"Rooms {rooms[i].id} and {rooms[j].id} overlap",
                            rooms[j].id,
                        )
                    )
        return found


class InsideFootprintConstraint(Constraint):
    """Every placed room must lie within the footprint"""

    def __init__(self, intent, frame, name=None):
        super().__init__(intent, frame, weight=1.0, name=name or "InsideFootprint", is_hard=True)

    def violations(self, state: PlanState) -> List[ConstraintViolation]:
        found = []
        for room in state.placed.values():
            if not all(self.frame.contains(part) for part in room.parts):
                found.append(
                    ConstraintViolation(
                        OUTSIDE_FOOTPRINT,
                        room.id,
                        f"Room {room.id} extends outside the footprint",
                    )
                )
        return found


class ExteriorContactConstraint(Constraint):
    """Rooms flagged mustTouchExterior need a wall on the footprint boundary"""

    def __init__(self, intent, frame, name=None):
        super().__init__(intent, frame, weight=1.0, name=name or "ExteriorContact", is_hard=True)

    def violations(self, state: PlanState) -> List[ConstraintViolation]:
        found = []
        for room in state.placed.values():
            spec = self.specs.get(room.id)
            if spec is None or not spec.must_touch_exterior:
                continue
            if not self.frame.touches_exterior(room.rect):
                found.append(
                    ConstraintViolation(
                        NO_EXTERIOR, room.id, f"Room {room.id} must touch an exterior wall"
                    )
                )
        return found


class EdgeContactConstraint(Constraint):
    """Rooms with mustTouchEdge must lie on that side of the footprint bounding box"""

    def __init__(self, intent, frame, name=None):
        super().__init__(intent, frame, weight=1.0, name=name or "EdgeContact", is_hard=True)

    def violations(self, state: PlanState) -> List[ConstraintViolation]:
        found = []
        for room in state.placed.values():
            spec = self.specs.get(room.id)
            if spec is None or not spec.must_touch_edge:
                continue
            if not self.frame.touches_edge(room.rect, spec.must_touch_edge):
                found.append(
                    ConstraintViolation(
                        WRONG_EDGE,
                        room.id,
                        f"Room {room.id} must touch the {spec.must_touch_edge} edge",
                    )
                )
        return found


# ---------------------------------------------------------------------------
# Soft constraints
# ---------------------------------------------------------------------------


class ZonePreferenceConstraint(Constraint):
    """Rewards rooms placed in their preferred bands and depths"""

    def evaluate(self, state: PlanState) -> float:
        score = 0.0
        total = 0
        for room in state.placed.values():
            spec = self.specs.get(room.id)
            if spec is None:
                continue
            if spec.preferred_bands:
                total += 1
                if room.band in spec.preferred_bands:
                    score += 10
            if spec.preferred_depths:
                total += 1
                if room.depth in spec.preferred_depths:
                    score += 10
        return score / total if total else 10.0


class AdjacencySatisfactionConstraint(Constraint):
    """Fraction of declared adjacentTo relationships realized geometrically"""

    def evaluate(self, state: PlanState) -> float:
        satisfied, required = self._metrics(state).adjacency_counts()
        return satisfied / required * 10 if required else 10.0


class HallAreaConstraint(Constraint):
    """Penalizes circulation taking a large share of the footprint"""

    def evaluate(self, state: PlanState) -> float:
        ratio = self._metrics(state).hall_ratio()
        if ratio <= 0.08:
            return 10.0
        if ratio <= 0.12:
            return 8.0
        if ratio <= 0.15:
            return 5.0
        return max(0.0, 10 - (ratio - 0.15) * 50)


class ExteriorGlazingConstraint(Constraint):
    """Rewards habitable rooms with exterior walls, more on the garden edge"""

    GLAZED_TYPES = (RoomType.LIVING, RoomType.BEDROOM, RoomType.OFFICE, RoomType.DINING)

    def evaluate(self, state: PlanState) -> float:
        scores = []
        garden = self.frame.garden_edge
        for room in state.placed.values():
            if room.room_type not in self.GLAZED_TYPES:
                continue
            edges = self.frame.exterior_edges(room.rect)
            score = 0.0
            if edges:
                score += 5
                if garden and garden in edges:
                    score += 5
            scores.append(score)
        return float(np.mean(scores)) if scores else 10.0


class BathroomClusteringConstraint(Constraint):
    """Rewards bathrooms sharing walls (shared plumbing)"""

    def evaluate(self, state: PlanState) -> float:
        adjacent, possible = self._metrics(state).adjacent_pairs([RoomType.BATH])
        return adjacent / possible * 10 if possible else 10.0


class CompactnessConstraint(Constraint):
    """Rewards plans that use most of the footprint"""

    def evaluate(self, state: PlanState) -> float:
        utilization = self._metrics(state).utilization()
        if utilization >= 0.95:
            return 10.0
        if utilization >= 0.90:
            return 8.0
        if utilization >= 0.85:
            return 6.0
        if utilization >= 0.80:
            return 4.0
        return max(0.0, utilization * 10)


class ExteriorWallBreaksConstraint(Constraint):
    """Prefers few room divisions along each exterior side"""

    def evaluate(self, state: PlanState) -> float:
        breaks = self._metrics(state).exterior_wall_breaks()
        if breaks <= 2:
            return 10.0
        if breaks <= 4:
            return 7.0
        if breaks <= 6:
            return 4.0
        return float(max(0, 10 - breaks))


class AspectRatioConstraint(Constraint):
    """Rewards room proportions close to an ideal per room type"""

    def __init__(self, intent, frame, weight=1.0, name=None, ideal_aspects=None):
        super().__init__(intent, frame, weight, name)
        self.ideal_aspects = ideal_aspects or get_ideal_aspects()

    def evaluate(self, state: PlanState) -> float:
        scores = []
        for room in state.placed.values():
            ideal = self.ideal_aspects.get(
                room.room_type.value, self.ideal_aspects.get("default", 1.2)
            )
            ratio = RectOps.aspect(room.rect)
            scores.append(10 * max(0.0, 1 - abs(ratio - ideal) / ideal))
        return float(np.mean(scores)) if scores else 10.0


class AreaEfficiencyConstraint(Constraint):
    """Compares actual room area with minArea, penalizing wasted excess"""

    EXCESS_FACTOR = 1.6

    def evaluate(self, state: PlanState) -> float:
        scores = []
        for room in state.placed.values():
            spec = self.specs.get(room.id)
            if spec is None or spec.min_area <= 0:
                continue
            area = room.area
            if area < spec.min_area:
                scores.append(10 * area / spec.min_area)
                continue
            cap = spec.max_area if spec.max_area is not None else spec.min_area * self.EXCESS_FACTOR
            if area <= cap:
                scores.append(10.0)
            else:
                scores.append(10 * max(0.0, 1 - (area - cap) / cap))
        return float(np.mean(scores)) if scores else 10.0


# Weight key -> soft constraint class
SOFT_CONSTRAINTS = {
    "respectPreferredZones": ZonePreferenceConstraint,
    "adjacencySatisfaction": AdjacencySatisfactionConstraint,
    "minimizeHallArea": HallAreaConstraint,
    "maximizeExteriorGlazing": ExteriorGlazingConstraint,
    "bathroomClustering": BathroomClusteringConstraint,
    "compactness": CompactnessConstraint,
    "minimizeExteriorWallBreaks": ExteriorWallBreaksConstraint,
    "aspectRatio": AspectRatioConstraint,
    "areaEfficiency": AreaEfficiencyConstraint,
}


class ConstraintSystem:
    """System for managing and evaluating multiple constraints"""

    def __init__(self):
        self.constraints: List[Constraint] = []

    @property
    def hard_constraints(self) -> List[Constraint]:
        """Get list of hard constraints"""
        return [c for c in self.constraints if c.is_hard]

    @property
    def soft_constraints(self) -> List[Constraint]:
        """Get list of soft constraints"""
        return [c for c in self.constraints if not c.is_hard]

    def add_constraint(self, constraint: Constraint):
        self.constraints.append(constraint)

    def add_constraints(self, constraints: List[Constraint]):
        self.constraints.extend(constraints)

    def validate(self, state: PlanState) -> List[ConstraintViolation]:
        """
        Collect violations of all hard constraints.

        Args:
            state: The plan state to check

        Returns:
            List[ConstraintViolation]: Every violation found
        """
        found = []
        for constraint in self.hard_constraints:
            found.extend(constraint.violations(state))
        return found

    def evaluate(self, state: PlanState) -> Dict[str, Any]:
        """
        Score a plan with all soft constraints.

        Args:
            state: The plan state to evaluate

        Returns:
            Dict with "total" and weighted "components" by constraint name
        """
        components = {}
        for constraint in self.soft_constraints:
            components[constraint.name] = constraint.evaluate(state) * constraint.weight
        return {"total": float(sum(components.values())), "components": components}


def create_hard_constraints(intent: LayoutIntent, frame: LayoutFrame) -> List[Constraint]:
    """
    Create the geometric hard constraints enabled by the intent.

    Reachability is not included; it depends on doors and is checked after
    opening placement.
    """
    constraints = []
    if intent.hard.inside_footprint:
        constraints.append(InsideFootprintConstraint(intent, frame))
    constraints.append(ExteriorContactConstraint(intent, frame))
    constraints.append(EdgeContactConstraint(intent, frame))
    if intent.hard.no_overlap:
        constraints.append(NoOverlapConstraint(intent, frame))
    return constraints


def create_default_constraints(
    intent: LayoutIntent,
    frame: LayoutFrame,
    ideal_aspects: Optional[Dict[str, float]] = None,
) -> ConstraintSystem:
    """
    Create the constraint system for a solve.

    Args:
        intent: Normalized intent (weights already merged with defaults)
        frame: Layout frame
        ideal_aspects: Optional ideal aspect ratio table override

    Returns:
        ConstraintSystem: Hard and weighted soft constraints
    """
    system = ConstraintSystem()
    system.add_constraints(create_hard_constraints(intent, frame))

    weights = intent.weights or {}
    for key, constraint_class in SOFT_CONSTRAINTS.items():
        weight = weights.get(key, 1.0)
        if constraint_class is AspectRatioConstraint:
            system.add_constraint(
                constraint_class(intent, frame, weight, key, ideal_aspects=ideal_aspects)
            )
        else:
            system.add_constraint(constraint_class(intent, frame, weight, key))
    return system


def validate_plan_hard(
    state: PlanState, intent: LayoutIntent, frame: LayoutFrame
) -> List[ConstraintViolation]:
    """Validate a plan against the geometric hard constraints."""
    system = ConstraintSystem()
    system.add_constraints(create_hard_constraints(intent, frame))
    return system.validate(state)


def score_plan(
    state: PlanState,
    intent: LayoutIntent,
    frame: LayoutFrame,
    ideal_aspects: Optional[Dict[str, float]] = None,
) -> Dict[str, Any]:
    """Score a plan with the weighted soft constraints."""
    return create_default_constraints(intent, frame, ideal_aspects).evaluate(state)


# ---------------------------------------------------------------------------
# Per-candidate checks used by the placer
# ---------------------------------------------------------------------------


def check_candidate_hard(
    rect: Rect,
    room: RoomSpec,
    placed: List[PlacedRoom],
    frame: LayoutFrame,
    intent: LayoutIntent,
) -> Optional[ConstraintViolation]:
    """
    Check a candidate rect against the hard constraints.

    Args:
        rect: Candidate rect
        room: Spec of the room being placed
        placed: Rooms already placed
        frame: Layout frame
        intent: Normalized intent

    Returns:
        Optional[ConstraintViolation]: First violation found, or None if valid
    """
    if intent.hard.inside_footprint and not frame.contains(rect):
        return ConstraintViolation(
            OUTSIDE_FOOTPRINT, room.id, f"Room {room.id} extends outside the footprint"
        )

    if intent.hard.no_overlap:
        for other in placed:
            if RectOps.overlaps(rect, other.rect):
                return ConstraintViolation(
                    OVERLAP, room.id, f"Room {room.id} overlaps with {other.id}", other.id
                )

    if room.must_touch_exterior and not frame.touches_exterior(rect):
        return ConstraintViolation(
            NO_EXTERIOR, room.id, f"Room {room.id} must touch an exterior wall"
        )

    if room.must_touch_edge and not frame.touches_edge(rect, room.must_touch_edge):
        return ConstraintViolation(
            WRONG_EDGE, room.id, f"Room {room.id} must touch the {room.must_touch_edge} edge"
        )

    if room.is_ensuite or room.room_type in (RoomType.ENSUITE, RoomType.CLOSET):
        owner = next((p for p in placed if p.id in room.adjacent_to), None)
        if owner is not None and not RectOps.adjacent(rect, owner.rect):
            return ConstraintViolation(
                DISCONNECTED, room.id, f"Room {room.id} must be adjacent to {owner.id}", owner.id
            )

    return None


def _zone_contains(start: float, end: float, lo: float, hi: float) -> bool:
    return lo >= start - 0.01 and hi <= end + 0.01


def score_candidate(
    rect: Rect,
    room: RoomSpec,
    placed: List[PlacedRoom],
    frame: LayoutFrame,
    intent: LayoutIntent,
) -> float:
    """
    Score a single candidate placement for greedy selection.

    Args:
        rect: Candidate rect
        room: Spec of the room being placed
        placed: Rooms already placed
        frame: Layout frame
        intent: Normalized intent

    Returns:
        float: Local score (higher is better)
    """
    weights = intent.weights or {}
    zone_w = weights.get("respectPreferredZones", 2.0)
    adj_w = weights.get("adjacencySatisfaction", 3.0)
    glazing_w = weights.get("maximizeExteriorGlazing", 1.0)
    bath_w = weights.get("bathroomClustering", 1.0)
    placed_by_id = {p.id: p for p in placed}
    score = 0.0

    if any(
        _zone_contains(b.start, b.end, rect[0], rect[2])
        for b in frame.bands
        if b.id in room.preferred_bands
    ):
        score += 5 * zone_w
    if any(
        _zone_contains(d.start, d.end, rect[1], rect[3])
        for d in frame.depths
        if d.id in room.preferred_depths
    ):
        score += 5 * zone_w

    for other_id in room.adjacent_to:
        other = placed_by_id.get(other_id)
        if other is not None and RectOps.adjacent(rect, other.rect):
            score += (5 + RectOps.shared_edge_length(rect, other.rect)) * adj_w

    for other_id in room.avoid_adjacent_to:
        other = placed_by_id.get(other_id)
        if other is not None and RectOps.adjacent(rect, other.rect):
            score -= 10 * adj_w

    if room.room_type in (RoomType.LIVING, RoomType.BEDROOM, RoomType.OFFICE):
        edges = frame.exterior_edges(rect)
        if edges:
            score += 3 * glazing_w
        if frame.garden_edge and frame.touches_edge(rect, frame.garden_edge):
            score += 5 * glazing_w

    if room.room_type == RoomType.BATH:
        for other in placed:
            if other.room_type == RoomType.BATH and RectOps.adjacent(rect, other.rect):
                score += 5 * bath_w

    aspect = RectOps.width(rect) / RectOps.height(rect)
    if aspect < 0.5 or aspect > 2.0:
        score -= 3

    area = RectOps.area(rect)
    target = room.target_area or room.min_area * 1.1
    area_diff = abs(area - target) / target
    if area_diff > 0.2:
        score -= area_diff * 5

    if room.max_area is not None and area > room.max_area:
        score -= (area - room.max_area) / room.max_area * 10

    score += _hall_lookahead_penalty(rect, room, placed, frame, intent)
    return score


def _hall_lookahead_penalty(
    rect: Rect,
    room: RoomSpec,
    placed: List[PlacedRoom],
    frame: LayoutFrame,
    intent: LayoutIntent,
) -> float:
    """
    Penalize candidates that use up the wall along the hall that unplaced
    rooms in the same band still need for their doors.
    """
    min_edge_per_room = 2.0
    hall_spec = next((r for r in intent.rooms if r.acts_as_circulation), None)
    if hall_spec is None:
        return 0.0
    hall = next((p for p in placed if p.id == hall_spec.id), None)
    if hall is None:
        return 0.0

    band = next((b for b in frame.bands if _zone_contains(b.start, b.end, rect[0], rect[2])), None)
    hall_band = next(
        (b for b in frame.bands if _zone_contains(b.start, b.end, hall.rect[0], hall.rect[2])),
        None,
    )
    if band is None or hall_band is None:
        return 0.0
    if abs(band.end - hall_band.start) >= 0.01 and abs(hall_band.end - band.start) >= 0.01:
        return 0.0

    placed_ids = {p.id for p in placed}
    waiting = [
        r
        for r in intent.rooms
        if r.id not in placed_ids
        and r.id != room.id
        and hall_spec.id in r.adjacent_to
        and (not r.preferred_bands or band.id in r.preferred_bands)
        and not r.is_ensuite
    ]
    if not waiting:
        return 0.0

    edge_y1 = max(hall.rect[1], frame.footprint_rect[1])
    edge_y2 = min(hall.rect[3], frame.footprint_rect[3])

    def _consumed(other: Rect) -> float:
        on_boundary = abs(other[2] - hall.rect[0]) < 0.01 or abs(other[0] - hall.rect[2]) < 0.01
        if not on_boundary:
            return 0.0
        return max(0.0, min(other[3], edge_y2) - max(other[1], edge_y1))

    consumed = sum(_consumed(p.rect) for p in placed) + _consumed(rect)
    remaining = (edge_y2 - edge_y1) - consumed
    needed = len(waiting) * min_edge_per_room
    if remaining < needed:
        return -(needed - remaining) * 10
    return 0.0
