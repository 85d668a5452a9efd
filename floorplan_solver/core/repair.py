"""
Placement repair.
Bounded local search that swaps similar-sized rooms when the swap raises
the number of satisfied adjacency requirements.
"""

import logging
from typing import Dict, Optional, Tuple

from floorplan_solver.core.frame import LayoutFrame
from floorplan_solver.models.intent import LayoutIntent, RoomSpec
from floorplan_solver.models.plan_state import PlanState
from floorplan_solver.utils.geometry import Rect, RectOps

logger = logging.getLogger(__name__)

MAX_AREA_DIFFERENCE = 0.2


def count_adjacency_satisfaction(
    rects: Dict[str, Rect], specs: Dict[str, RoomSpec]
) -> int:
    """
    Count satisfied adjacentTo relationships for a set of room rects.

    Args:
        rects: Room id -> rect
        specs: Room id -> spec

    Returns:
        int: Number of (room, target) pairs that share a wall
    """
    count = 0
    for room_id, rect in rects.items():
        spec = specs.get(room_id)
        if spec is None:
            continue
        for other_id in spec.adjacent_to:
            other = rects.get(other_id)
            if other is not None and RectOps.adjacent(rect, other, 0.01):
                count += 1
    return count


def is_swap_valid(
    spec_a: RoomSpec, new_rect_a: Rect, spec_b: RoomSpec, new_rect_b: Rect, frame: LayoutFrame
) -> bool:
    """Check that both rooms keep their edge and exterior requirements after a swap."""
    for spec, rect in ((spec_a, new_rect_a), (spec_b, new_rect_b)):
        if spec.must_touch_edge and not frame.touches_edge(rect, spec.must_touch_edge):
            return False
        if spec.must_touch_exterior and not frame.touches_exterior(rect):
            return False
    return True


def _areas_similar(a: Rect, b: Rect) -> bool:
    area_a = RectOps.area(a)
    area_b = RectOps.area(b)
    return abs(area_a - area_b) / max(area_a, area_b) <= MAX_AREA_DIFFERENCE


def find_best_swap(
    state: PlanState, specs: Dict[str, RoomSpec], frame: LayoutFrame
) -> Optional[Tuple[str, str, int]]:
    """
    Find the swap that improves adjacency satisfaction the most.

    Returns:
        Optional[Tuple[str, str, int]]: (room a, room b, gain), or None if no swap helps
    """
    rects = {room_id: room.rect for room_id, room in state.placed.items()}
    current = count_adjacency_satisfaction(rects, specs)
    ids = list(rects)
    best = None

    for i in range(len(ids)):
        for j in range(i + 1, len(ids)):
            id_a, id_b = ids[i], ids[j]
            spec_a, spec_b = specs.get(id_a), specs.get(id_b)
            if spec_a is None or spec_b is None:
                continue

            rect_a, rect_b = rects[id_a], rects[id_b]
            if not _areas_similar(rect_a, rect_b):
                continue
            if not is_swap_valid(spec_a, rect_b, spec_b, rect_a, frame):
                continue

            swapped = dict(rects)
            swapped[id_a], swapped[id_b] = rect_b, rect_a
            gain = count_adjacency_satisfaction(swapped, specs) - current
            if gain > 0 and (best is None or gain > best[2]):
                best = (id_a, id_b, gain)

    return best


def repair_placement(
    state: PlanState, intent: LayoutIntent, frame: LayoutFrame, max_passes: int = 10
) -> bool:
    """
    Swap rooms to improve adjacency satisfaction.

    Each pass applies the single best improving swap; the search stops when
    no swap improves the count or the pass cap is reached.

    Args:
        state: Plan state to modify in place
        intent: Normalized intent
        frame: Layout frame
        max_passes: Maximum number of swaps applied

    Returns:
        bool: True if any swap was applied
    """
    specs = intent.room_map()
    repaired = False

    for _ in range(max_passes):
        swap = find_best_swap(state, specs, frame)
        if swap is None:
            break

        id_a, id_b, gain = swap
        room_a = state.placed[id_a]
        room_b = state.placed[id_b]
        room_a.rect, room_b.rect = room_b.rect, room_a.rect
        room_a.band, room_b.band = room_b.band, room_a.band
        room_a.depth, room_b.depth = room_b.depth, room_a.depth
        repaired = True
        logger.debug(f"Swapped {id_a} and {id_b} (+{gain} adjacencies)")

    return repaired
