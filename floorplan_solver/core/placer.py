"""
Greedy room placer.
Places rooms one at a time in priority order, each taking the best valid
candidate available at that moment.
"""

import logging
from typing import List, Optional

from floorplan_solver.core.candidates import (
    Candidate,
    SIZE_VARIATIONS,
    generate_candidates,
    generate_sizes,
    rotate_variations,
)
from floorplan_solver.core.constraints import check_candidate_hard, score_candidate
from floorplan_solver.core.frame import (
    LayoutCell,
    LayoutFrame,
    find_preferred_cells,
    get_valid_cells,
)
from floorplan_solver.core.ordering import RoomOrderingResult, order_rooms
from floorplan_solver.core.trace import NullTraceSink
from floorplan_solver.models.intent import LayoutIntent, RoomSpec
from floorplan_solver.models.plan_state import (
    FOOTPRINT_EXHAUSTED,
    INSUFFICIENT_AREA,
    NO_CANDIDATE_CELLS,
    PlacedRoom,
    PlanState,
    RoomPlacementFailure,
)
from floorplan_solver.utils.geometry import RectOps

logger = logging.getLogger(__name__)


class RoomPlacer:
    """
    Greedy placer for one solve variant.
    """

    def __init__(
        self,
        intent: LayoutIntent,
        frame: LayoutFrame,
        ordering: Optional[RoomOrderingResult] = None,
        variant: int = 0,
        max_candidates: int = 15,
        trace=None,
    ):
        """
        Initialize the placer.

        Args:
            intent: Normalized intent
            frame: Layout frame
            ordering: Precomputed room ordering (computed when omitted)
            variant: Variant index, rotates the size variation order
            max_candidates: Maximum candidates evaluated per room
            trace: Optional trace sink
        """
        self.intent = intent
        self.frame = frame
        self.ordering = ordering or order_rooms(intent.rooms)
        self.variant = variant
        self.max_candidates = max_candidates
        self.trace = trace or NullTraceSink()
        self.specs = intent.room_map()
        self.variations = rotate_variations(SIZE_VARIATIONS, variant)

    def place_all(self) -> PlanState:
        """
        Place every room in priority order.

        Returns:
            PlanState: State with placed rooms and failures for unplaced ones
        """
        state = PlanState(self.intent.footprint)
        for room in self.ordering.ordered_rooms:
            self.place_room(state, room)

        if state.unplaced:
            logger.debug(
                f"Variant {self.variant}: {len(state.unplaced)} room(s) unplaced: "
                f"{', '.join(state.unplaced)}"
            )
        return state

    def place_room(self, state: PlanState, room: RoomSpec) -> bool:
        """
        Place a single room into the state.

        Args:
            state: Plan state to update
            room: Room to place

        Returns:
            bool: True if the room was placed
        """
        placed = list(state.placed.values())
        preferred = find_preferred_cells(self.frame, room.preferred_bands, room.preferred_depths)
        valid = get_valid_cells(self.frame)
        preferred_keys = [cell.key for cell in preferred]

        candidates = self._scored_candidates(room, preferred, placed)
        tried_cells = list(preferred)
        if not candidates and len(preferred) < len(valid):
            candidates = self._scored_candidates(room, valid, placed)
            tried_cells = valid

        candidates = candidates[: self.max_candidates]

        if not candidates:
            failure = self._failure(room, tried_cells, placed)
            state.mark_unplaced(failure)
            self.trace.record_placement(room.id, preferred_keys, [], failure_reason=failure.message)
            logger.debug(f"Could not place {room.id}: {failure.message}")
            return False

        best = candidates[0]
        state.add_room(
            PlacedRoom(
                id=room.id,
                rect=best.rect,
                room_type=room.room_type,
                label=room.label or room.id,
                band=best.cell.band_id,
                depth=best.cell.depth_id,
            )
        )
        self.trace.record_placement(room.id, preferred_keys, candidates, final_rect=best.rect)
        logger.debug(f"Placed {room.id} at {best.rect} in {best.cell.key} (score {best.score:.2f})")
        return True

    def _adjacent_ids(self, room: RoomSpec, placed: List[PlacedRoom]) -> List[str]:
        """Declared neighbors plus siblings sharing an adjacency target."""
        ids = list(room.adjacent_to)
        if not room.adjacent_to:
            return ids
        for other in placed:
            spec = self.specs.get(other.id)
            if spec is None or other.id in ids:
                continue
            if any(target in spec.adjacent_to for target in room.adjacent_to):
                ids.append(other.id)
        return ids

    def _reserved_area(self, room: RoomSpec) -> float:
        attached = self.ordering.attached_rooms.get(room.id, [])
        return sum(a.target_area or a.min_area * 1.2 for a in attached)

    def _scored_candidates(
        self, room: RoomSpec, cells: List[LayoutCell], placed: List[PlacedRoom]
    ) -> List[Candidate]:
        if not cells:
            return []

        candidates = generate_candidates(
            room,
            cells,
            self.frame,
            placed,
            adjacent_room_ids=self._adjacent_ids(room, placed),
            variations=self.variations,
            reserved_area=self._reserved_area(room),
        )

        scored = []
        for candidate in candidates:
            if check_candidate_hard(candidate.rect, room, placed, self.frame, self.intent) is not None:
                continue
            candidate.score += score_candidate(
                candidate.rect, room, placed, self.frame, self.intent
            )
            scored.append(candidate)

        scored.sort(key=lambda c: -c.score)
        return scored

    def _failure(
        self, room: RoomSpec, cells: List[LayoutCell], placed: List[PlacedRoom]
    ) -> RoomPlacementFailure:
        """Classify why no candidate survived."""
        if not cells:
            return RoomPlacementFailure(
                room.id,
                NO_CANDIDATE_CELLS,
                f"No candidate cells for room {room.id} "
                f"(bands={room.preferred_bands or 'any'}, depths={room.preferred_depths or 'any'})",
            )

        reserved = self._reserved_area(room)
        has_size = any(
            generate_sizes(
                room,
                RectOps.width(cell.rect),
                RectOps.height(cell.rect),
                self.variations,
                reserved,
            )
            for cell in cells
        )
        if not has_size:
            largest = max(RectOps.area(cell.rect) for cell in cells)
            return RoomPlacementFailure(
                room.id,
                INSUFFICIENT_AREA,
                f"Room {room.id} needs {room.min_area:.1f} but the largest candidate cell "
                f"has {largest:.1f}",
            )

        return RoomPlacementFailure(
            room.id,
            FOOTPRINT_EXHAUSTED,
            f"No free position for room {room.id}: every candidate overlaps a placed room "
            f"or violates a hard constraint",
        )


def place_rooms(
    intent: LayoutIntent,
    frame: LayoutFrame,
    ordering: Optional[RoomOrderingResult] = None,
    variant: int = 0,
    max_candidates: int = 15,
    trace=None,
) -> PlanState:
    """
    Place all rooms of an intent using the greedy placer.

    Args:
        intent: Normalized intent
        frame: Layout frame
        ordering: Precomputed room ordering
        variant: Variant index
        max_candidates: Maximum candidates evaluated per room
        trace: Optional trace sink

    Returns:
        PlanState: The resulting state
    """
    placer = RoomPlacer(intent, frame, ordering, variant, max_candidates, trace)
    return placer.place_all()
