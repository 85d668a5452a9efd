"""
Gap filling.
After greedy placement rooms are usually smaller than the space around
them; each pass grows rooms toward the footprint boundary or the next
room in each direction.
"""

import logging
import math
from typing import List, Optional

from floorplan_solver.core.frame import LayoutFrame
from floorplan_solver.models.intent import LayoutIntent, RoomSpec
from floorplan_solver.models.plan_state import PlacedRoom, PlanState
from floorplan_solver.utils.geometry import DIRECTIONS, GRID_SNAP, Rect, RectOps
from floorplan_solver.utils.metrics import PlanMetrics

logger = logging.getLogger(__name__)

MIN_EXPANSION = 0.05


def blocks_expansion(rect: Rect, other: Rect, direction: str) -> bool:
    """Check whether other lies in the path of rect growing in direction."""
    if direction == "north":
        return other[1] >= rect[3] - 0.01 and other[0] < rect[2] - 0.01 and other[2] > rect[0] + 0.01
    if direction == "south":
        return other[3] <= rect[1] + 0.01 and other[0] < rect[2] - 0.01 and other[2] > rect[0] + 0.01
    if direction == "east":
        return other[0] >= rect[2] - 0.01 and other[1] < rect[3] - 0.01 and other[3] > rect[1] + 0.01
    if direction == "west":
        return other[2] <= rect[0] + 0.01 and other[1] < rect[3] - 0.01 and other[3] > rect[1] + 0.01
    return False


def _floor_to_grid(value: float) -> float:
    return round(math.floor(value / GRID_SNAP + 1e-6) * GRID_SNAP, 4)


def try_expand(
    room: PlacedRoom,
    direction: str,
    others: List[PlacedRoom],
    frame: LayoutFrame,
    spec: Optional[RoomSpec] = None,
) -> Optional[Rect]:
    """
    Compute the rect of a room grown as far as possible in one direction.

    Growth stops at the footprint bounding rect, the nearest room in the
    way, the room's max width/height and its max area.

    Returns:
        Optional[Rect]: The grown rect, or None if the room cannot grow
    """
    x1, y1, x2, y2 = room.rect
    fx1, fy1, fx2, fy2 = frame.footprint_rect
    blockers = [o.rect for o in others if blocks_expansion(room.rect, o.rect, direction)]
    vertical = direction in ("north", "south")

    if direction == "north":
        limit = min([fy2] + [b[1] for b in blockers])
        growth = limit - y2
    elif direction == "south":
        limit = max([fy1] + [b[3] for b in blockers])
        growth = y1 - limit
    elif direction == "east":
        limit = min([fx2] + [b[0] for b in blockers])
        growth = limit - x2
    else:
        limit = max([fx1] + [b[2] for b in blockers])
        growth = x1 - limit

    if growth <= MIN_EXPANSION:
        return None

    if spec is not None:
        span = RectOps.width(room.rect) if vertical else RectOps.height(room.rect)
        current = RectOps.height(room.rect) if vertical else RectOps.width(room.rect)
        max_dim = spec.max_height if vertical else spec.max_width
        if max_dim is not None:
            growth = min(growth, max_dim - current)
        if spec.max_area is not None:
            growth = min(growth, _floor_to_grid(spec.max_area / span - current))
        if growth <= MIN_EXPANSION:
            return None

    if direction == "north":
        expanded = (x1, y1, x2, y2 + growth)
    elif direction == "south":
        expanded = (x1, y1 - growth, x2, y2)
    elif direction == "east":
        expanded = (x1, y1, x2 + growth, y2)
    else:
        expanded = (x1 - growth, y1, x2, y2)
    expanded = tuple(round(v, 4) for v in expanded)

    if not frame.contains(expanded):
        return None
    if any(RectOps.overlaps(expanded, o.rect) for o in others):
        return None
    return expanded


def fill_gaps(state: PlanState, intent: LayoutIntent, frame: LayoutFrame) -> bool:
    """
    Run one gap filling pass over every placed room.

    Returns:
        bool: True if any room grew
    """
    changed = False
    specs = intent.room_map()
    rooms = list(state.placed.values())

    for room in rooms:
        spec = specs.get(room.id)
        for direction in DIRECTIONS:
            others = [r for r in rooms if r.id != room.id]
            expanded = try_expand(room, direction, others, frame, spec)
            if expanded is not None:
                logger.debug(f"Expanded {room.id} {direction} to {expanded}")
                room.rect = expanded
                changed = True

    return changed


def fill_gaps_iterative(
    state: PlanState, intent: LayoutIntent, frame: LayoutFrame, max_passes: int = 5
) -> int:
    """
    Repeat gap filling passes until nothing changes.

    Args:
        state: Plan state to modify in place
        intent: Normalized intent
        frame: Layout frame
        max_passes: Maximum number of passes

    Returns:
        int: Number of passes that changed the plan
    """
    metrics = PlanMetrics(state, intent.room_map(), frame.footprint_rect, frame.footprint_area)
    passes = 0
    while passes < max_passes:
        if metrics.uncovered_area() < 0.01:
            break
        if not fill_gaps(state, intent, frame):
            break
        passes += 1
    logger.debug(f"{metrics.uncovered_area():.2f}m2 of the footprint bounds left uncovered")
    return passes
