"""
Candidate generation for room placement.
Produces sized and positioned rects for a room inside a set of layout
cells, each with a preliminary score used to order them.
"""

import math
from typing import List, Tuple, Optional

from floorplan_solver.core.frame import LayoutCell, LayoutFrame
from floorplan_solver.models.intent import RoomSpec
from floorplan_solver.models.plan_state import PlacedRoom
from floorplan_solver.utils.geometry import Rect, RectOps, GRID_SNAP, snap


SIZE_VARIATIONS = [1.0, 0.95, 1.05]
ASPECT_VARIATIONS = [1.0, 0.75, 1.33]
MIN_ATTACHED_DIMENSION = 2.5
MIN_DOOR_WIDTH = 1.0
ADJACENT_BONUS = 20
NEIGHBOR_BONUS = 3


class Candidate:
    """A candidate placement for a room."""

    def __init__(self, rect: Rect, cell: LayoutCell, score: float):
        self.rect = rect
        self.cell = cell
        self.score = score

    def __repr__(self) -> str:
        return f"Candidate({self.rect}, cell={self.cell.key}, score={self.score:.2f})"


class Position:
    """A lower-left corner for a sized room plus the bonus it earns."""

    def __init__(self, x: float, y: float, bonus: float):
        self.x = x
        self.y = y
        self.bonus = bonus


def rotate_variations(variations: List[float], variant: int) -> List[float]:
    """Rotate the size variation order so each variant prefers another scale."""
    if not variations:
        return []
    shift = variant % len(variations)
    return variations[shift:] + variations[:shift]


def generate_sizes(
    room: RoomSpec,
    cell_width: float,
    cell_height: float,
    variations: Optional[List[float]] = None,
    reserved_area: float = 0.0,
) -> List[Tuple[float, float]]:
    """
    Generate (width, height) options for a room in a cell.

    Args:
        room: Room spec
        cell_width: Cell width
        cell_height: Cell height
        variations: Area scale factors applied to the target area
        reserved_area: Area to leave free for attached rooms

    Returns:
        List[Tuple[float, float]]: Distinct sizes that fit the cell
    """
    variations = variations if variations is not None else SIZE_VARIATIONS
    sizes: List[Tuple[float, float]] = []

    if room.fill_cell:
        width = cell_width
        height = cell_height
        if room.max_width and width > room.max_width:
            width = room.max_width
        if room.max_height and height > room.max_height:
            height = room.max_height
        if width * height >= room.min_area:
            sizes.append((snap(width), snap(height)))
        if width * 0.9 * height >= room.min_area:
            sizes.append((snap(width * 0.9), snap(height)))
        if width * height * 0.9 >= room.min_area:
            sizes.append((snap(width), snap(height * 0.9)))
        return sizes

    target = room.target_area or room.min_area * 1.1
    if reserved_area > 0:
        max_width_keeping_space = cell_width - MIN_ATTACHED_DIMENSION
        max_height_keeping_space = cell_height - MIN_ATTACHED_DIMENSION
        area_if_width_constrained = max_width_keeping_space * min(
            cell_height, max_height_keeping_space + 2
        )
        area_if_height_constrained = (
            min(cell_width, max_width_keeping_space + 2) * max_height_keeping_space
        )
        max_area = max(area_if_width_constrained, area_if_height_constrained)
        if target >= max_area:
            target = max(room.min_area, max_area * 0.95)

    aspect_min, aspect_max = room.aspect or (0.5, 2.0)

    def _known(w: float, h: float) -> bool:
        return any(abs(sw - w) < 0.1 and abs(sh - h) < 0.1 for sw, sh in sizes)

    for scale in variations:
        area = target * scale
        if area < room.min_area * 0.95:
            continue

        for aspect in ASPECT_VARIATIONS:
            if aspect < aspect_min or aspect > aspect_max:
                continue

            width = snap(math.sqrt(area * aspect))
            height = snap(math.sqrt(area / aspect))

            if room.min_width and width < room.min_width:
                width = room.min_width
                height = snap(area / width)
            if room.min_height and height < room.min_height:
                height = room.min_height
                width = snap(area / height)
            if room.max_width and width > room.max_width:
                width = room.max_width
                height = snap(area / width)
            if room.max_height and height > room.max_height:
                height = room.max_height
                width = snap(area / height)

            # Shrink into the cell
            if width > cell_width:
                width = cell_width
                height = snap(max(room.min_area / width, height))
            if height > cell_height:
                height = cell_height
                width = snap(max(room.min_area / height, width))

            fits = width <= cell_width and height <= cell_height
            if fits and width * height >= room.min_area * 0.95 and not _known(width, height):
                sizes.append((width, height))

        # Rotated
        for w, h in list(sizes):
            if w != h and h <= cell_width and w <= cell_height and not _known(h, w):
                sizes.append((h, w))

    return sizes


def add_adjacent_positions(
    positions: List[Position],
    adj_rect: Rect,
    bounds: Rect,
    width: float,
    height: float,
    bonus: float,
):
    """
    Add positions flush against each side of an existing room.

    Two positions are added per side: aligned with the start and the end of
    the overlap between the room's side and the bounds.
    """
    ax1, ay1, ax2, ay2 = adj_rect
    bx1, by1, bx2, by2 = bounds

    # East of the room
    if bx1 <= ax2 <= bx2 - width + 0.01:
        lo, hi = max(ay1, by1), min(ay2, by2)
        if hi - lo >= height - 0.01:
            positions.append(Position(ax2, lo, bonus))
            positions.append(Position(ax2, hi - height, bonus))
    # West
    if bx1 + width - 0.01 <= ax1 <= bx2:
        lo, hi = max(ay1, by1), min(ay2, by2)
        if hi - lo >= height - 0.01:
            positions.append(Position(ax1 - width, lo, bonus))
            positions.append(Position(ax1 - width, hi - height, bonus))
    # North
    if by1 <= ay2 <= by2 - height + 0.01:
        lo, hi = max(ax1, bx1), min(ax2, bx2)
        if hi - lo >= width - 0.01:
            positions.append(Position(lo, ay2, bonus))
            positions.append(Position(hi - width, ay2, bonus))
    # South
    if by1 + height - 0.01 <= ay1 <= by2:
        lo, hi = max(ax1, bx1), min(ax2, bx2)
        if hi - lo >= width - 0.01:
            positions.append(Position(lo, ay1 - height, bonus))
            positions.append(Position(hi - width, ay1 - height, bonus))


def _edge_steps(start: float, stop: float, step: float) -> List[float]:
    values = []
    i = 0
    while start + i * step <= stop + 1e-9:
        values.append(snap(start + i * step))
        i += 1
    return values


def generate_positions(
    cell_rect: Rect,
    width: float,
    height: float,
    frame: LayoutFrame,
    room: RoomSpec,
    adjacent_rooms: List[PlacedRoom],
    placed_rooms: List[PlacedRoom],
    step: float = GRID_SNAP * 4,
) -> List[Position]:
    """
    Generate strategic positions for a sized room in a cell.

    Args:
        cell_rect: Cell rect
        width: Room width
        height: Room height
        frame: Layout frame
        room: Room spec
        adjacent_rooms: Placed rooms this room should touch
        placed_rooms: All placed rooms
        step: Scan step along exterior edges

    Returns:
        List[Position]: Candidate corners with bonuses
    """
    cx1, cy1, cx2, cy2 = cell_rect
    fx1, fy1, fx2, fy2 = frame.footprint_rect

    positions = [
        Position(cx1, cy1, 2),
        Position(cx2 - width, cy1, 2),
        Position(cx1, cy2 - height, 2),
        Position(cx2 - width, cy2 - height, 2),
    ]

    if width >= cx2 - cx1 - 0.1:
        positions.append(Position(cx1, cy1, 5))
        positions.append(Position(cx1, cy2 - height, 5))

    if room.must_touch_exterior:
        if abs(cy1 - fy1) < 0.01:
            positions.extend(Position(x, cy1, 5) for x in _edge_steps(cx1, cx2 - width, step))
        if abs(cy2 - fy2) < 0.01:
            positions.extend(
                Position(x, cy2 - height, 5) for x in _edge_steps(cx1, cx2 - width, step)
            )
        if abs(cx1 - fx1) < 0.01:
            positions.extend(Position(cx1, y, 5) for y in _edge_steps(cy1, cy2 - height, step))
        if abs(cx2 - fx2) < 0.01:
            positions.extend(
                Position(cx2 - width, y, 5) for y in _edge_steps(cy1, cy2 - height, step)
            )

    # Required neighbors may sit in another cell; widen the bounds toward them
    for adj in adjacent_rooms:
        ax1, ay1, _, _ = adj.rect
        expanded = (
            min(cx1, adj.rect[2] - 0.1),
            min(cy1, adj.rect[3] - 0.1),
            max(cx2, ax1 + width + 0.1),
            max(cy2, ay1 + height + 0.1),
        )
        add_adjacent_positions(positions, adj.rect, expanded, width, height, ADJACENT_BONUS)

    adjacent_ids = {adj.id for adj in adjacent_rooms}
    for placed in placed_rooms:
        if placed.id in adjacent_ids:
            continue
        add_adjacent_positions(positions, placed.rect, cell_rect, width, height, NEIGHBOR_BONUS)

    return positions


def preliminary_score(
    rect: Rect,
    room: RoomSpec,
    cell: LayoutCell,
    frame: LayoutFrame,
    adjacent_rooms: List[PlacedRoom],
    bonus: float,
) -> float:
    """
    Score a positioned rect before the full candidate scoring.

    Favors cell corners, flush internal cell edges, exterior and edge
    contact, and long walls shared with required neighbors.
    """
    score = bonus
    cx1, cy1, cx2, cy2 = cell.rect
    fx1, fy1, fx2, fy2 = frame.footprint_rect

    left = abs(rect[0] - cx1) < 0.01
    right = abs(rect[2] - cx2) < 0.01
    bottom = abs(rect[1] - cy1) < 0.01
    top = abs(rect[3] - cy2) < 0.01

    if (left or right) and (bottom or top):
        score += 3

    # Internal cell edges (not on the footprint) count more
    if left:
        score += 4 if abs(cx1 - fx1) > 0.01 else 1
    if right:
        score += 4 if abs(cx2 - fx2) > 0.01 else 1
    if bottom:
        score += 4 if abs(cy1 - fy1) > 0.01 else 1
    if top:
        score += 4 if abs(cy2 - fy2) > 0.01 else 1

    if room.must_touch_exterior and frame.touches_exterior(rect):
        score += 5

    if room.must_touch_edge and frame.touches_edge(rect, room.must_touch_edge):
        score += 8

    if frame.garden_edge and room.must_touch_edge == frame.garden_edge:
        if frame.touches_edge(rect, frame.garden_edge):
            score += 5

    has_good_adjacency = False
    for adj in adjacent_rooms:
        shared = RectOps.shared_edge_length(rect, adj.rect)
        if shared <= 0:
            continue
        if shared >= MIN_DOOR_WIDTH:
            score += 25 + min(shared * 2, 10)
            has_good_adjacency = True
        else:
            # Too short for a door
            score -= 15
    if adjacent_rooms and not has_good_adjacency:
        score -= 30

    area = RectOps.area(rect)
    target = room.target_area or room.min_area * 1.1
    score -= abs(area - target) / target * 5

    aspect = RectOps.width(rect) / RectOps.height(rect)
    if aspect < 0.6 or aspect > 1.67:
        score -= 2

    return score


def deduplicate_candidates(candidates: List[Candidate], tolerance: float = 0.05) -> List[Candidate]:
    unique: List[Candidate] = []
    for candidate in candidates:
        duplicate = any(
            all(abs(u.rect[i] - candidate.rect[i]) < tolerance for i in range(4))
            for u in unique
        )
        if not duplicate:
            unique.append(candidate)
    return unique


def generate_candidates(
    room: RoomSpec,
    cells: List[LayoutCell],
    frame: LayoutFrame,
    placed_rooms: List[PlacedRoom],
    adjacent_room_ids: Optional[List[str]] = None,
    variations: Optional[List[float]] = None,
    reserved_area: float = 0.0,
) -> List[Candidate]:
    """
    Generate candidate placements for a room within the given cells.

    Args:
        room: Room spec
        cells: Cells to place the room in
        frame: Layout frame
        placed_rooms: Rooms already placed
        adjacent_room_ids: Ids of placed rooms this room should touch
        variations: Area scale factors (order matters for ties)
        reserved_area: Area to leave free for attached rooms

    Returns:
        List[Candidate]: Deduplicated candidates, best preliminary score first
    """
    adjacent_room_ids = adjacent_room_ids or []
    adjacent_rooms = [p for p in placed_rooms if p.id in adjacent_room_ids]
    candidates: List[Candidate] = []

    for cell in cells:
        cx1, cy1, cx2, cy2 = cell.rect
        sizes = generate_sizes(
            room, cx2 - cx1, cy2 - cy1, variations, reserved_area
        )
        for width, height in sizes:
            positions = generate_positions(
                cell.rect, width, height, frame, room, adjacent_rooms, placed_rooms
            )
            for position in positions:
                rect = (
                    snap(position.x),
                    snap(position.y),
                    snap(position.x + width),
                    snap(position.y + height),
                )
                if any(RectOps.overlaps(rect, p.rect) for p in placed_rooms):
                    continue

                # Positions next to required rooms may leave the cell slightly
                tolerance = 1.0 if position.bonus >= 15 else 0.001
                if rect[0] < cx1 - tolerance or rect[2] > cx2 + tolerance:
                    continue
                if rect[1] < cy1 - tolerance or rect[3] > cy2 + tolerance:
                    continue

                score = preliminary_score(rect, room, cell, frame, adjacent_rooms, position.bonus)
                candidates.append(Candidate(rect, cell, score))

    candidates.sort(key=lambda c: -c.score)
    return deduplicate_candidates(candidates)
