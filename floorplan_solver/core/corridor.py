"""
Corridor synthesis.
When the intent declares no circulation room and the placed rooms form
several disconnected clusters, a corridor is carved from free footprint
space to link them: a single straight strip when one can reach every
cluster, otherwise an L made of a horizontal and a vertical strip.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

import networkx as nx

from floorplan_solver.core.frame import LayoutFrame
from floorplan_solver.models.intent import LayoutIntent, RoomType
from floorplan_solver.models.plan_state import CORRIDOR_ID, PlacedRoom, PlanState
from floorplan_solver.utils.geometry import Rect, RectOps, PolygonOps, Point2D, snap

logger = logging.getLogger(__name__)

CORRIDOR_LABEL = "Hallway"


class GeneratedCorridor:
    """A corridor made of one or two axis-aligned strips."""

    def __init__(self, segments: List[Rect], width: float):
        self.segments = [tuple(s) for s in segments]
        self.width = width
        self.shape = PolygonOps.union_rects(self.segments)

    @property
    def is_l_shaped(self) -> bool:
        return len(self.segments) > 1

    @property
    def rect(self) -> Rect:
        """Bounding rect of the corridor."""
        return tuple(snap(v) for v in self.shape.bounds)

    @property
    def polygon(self) -> List[Point2D]:
        return [(snap(x), snap(y)) for x, y in PolygonOps.polygon_points(self.shape)]

    def to_room(self) -> PlacedRoom:
        return PlacedRoom(
            id=CORRIDOR_ID,
            rect=self.rect,
            room_type=RoomType.HALL,
            label=CORRIDOR_LABEL,
            segments=self.segments if self.is_l_shaped else None,
        )

    def __repr__(self) -> str:
        return f"GeneratedCorridor(segments={self.segments}, width={self.width})"


def build_adjacency_graph(rooms: List[PlacedRoom], min_shared: float = 0.0) -> nx.Graph:
    """
    Build the undirected graph of rooms sharing a wall.

    Args:
        rooms: Placed rooms
        min_shared: Minimum shared wall length for an edge

    Returns:
        nx.Graph: Room ids as nodes, shared length as the "length" edge attribute
    """
    graph = nx.Graph()
    graph.add_nodes_from(room.id for room in rooms)
    for i in range(len(rooms)):
        for j in range(i + 1, len(rooms)):
            length = max(
                RectOps.shared_edge_length(pa, pb)
                for pa in rooms[i].parts
                for pb in rooms[j].parts
            )
            if length > 0 and length >= min_shared:
                graph.add_edge(rooms[i].id, rooms[j].id, length=length)
    return graph


def find_room_clusters(rooms: List[PlacedRoom]) -> List[Set[str]]:
    """Group rooms into clusters connected through shared walls."""
    graph = build_adjacency_graph(rooms)
    return [set(c) for c in nx.connected_components(graph)]


def _free_intervals(
    lo: float, hi: float, blocked: List[Tuple[float, float]], min_length: float
) -> List[Tuple[float, float]]:
    intervals = []
    current = lo
    for start, end in sorted(blocked):
        if start > current and start - current >= min_length:
            intervals.append((current, start))
        current = max(current, end)
    if hi - current >= min_length:
        intervals.append((current, hi))
    return intervals


def _strip_offsets(rooms: List[PlacedRoom], lo: float, hi: float, width: float, axis: int) -> List[float]:
    """Candidate start offsets for strips across one axis."""
    offsets = [snap((lo + hi) / 2 - width / 2)]
    edges = sorted({lo, hi} | {r.rect[axis] for r in rooms} | {r.rect[axis + 2] for r in rooms})
    for i in range(len(edges) - 1):
        if edges[i + 1] - edges[i] >= width:
            offsets.append(snap((edges[i] + edges[i + 1]) / 2 - width / 2))
    for edge in edges:
        offsets.append(snap(edge))
        offsets.append(snap(edge - width))
    result = []
    for offset in offsets:
        if lo - 1e-6 <= offset and offset + width <= hi + 1e-6 and offset not in result:
            result.append(offset)
    return result


def candidate_strips(
    rooms: List[PlacedRoom], frame: LayoutFrame, width: float
) -> List[Rect]:
    """
    Enumerate free horizontal and vertical strips of the corridor width.

    Each strip spans a maximal free interval of its row or column.
    """
    fx1, fy1, fx2, fy2 = frame.footprint_rect
    strips: List[Rect] = []

    for y in _strip_offsets(rooms, fy1, fy2, width, 1):
        band = (fx1, y, fx2, y + width)
        blocked = [(r[0], r[2]) for room in rooms for r in room.parts if RectOps.overlaps(band, r)]
        for start, end in _free_intervals(fx1, fx2, blocked, width * 2):
            strips.append((snap(start), y, snap(end), snap(y + width)))

    for x in _strip_offsets(rooms, fx1, fx2, width, 0):
        band = (x, fy1, x + width, fy2)
        blocked = [(r[1], r[3]) for room in rooms for r in room.parts if RectOps.overlaps(band, r)]
        for start, end in _free_intervals(fy1, fy2, blocked, width * 2):
            strips.append((x, snap(start), snap(x + width), snap(end)))

    return [s for s in strips if frame.contains(s)]


def _clusters_reached(
    segments: List[Rect], clusters: List[Set[str]], rooms: Dict[str, PlacedRoom], door_width: float
) -> int:
    reached = 0
    for cluster in clusters:
        for room_id in cluster:
            room = rooms[room_id]
            length = max(
                RectOps.shared_edge_length(seg, part) for seg in segments for part in room.parts
            )
            if length >= door_width:
                reached += 1
                break
    return reached


def _segments_join(a: Rect, b: Rect) -> bool:
    """Check whether two strips form one connected shape."""
    return RectOps.overlaps(a, b) or RectOps.shared_edge_length(a, b) > 0


def generate_corridor(
    state: PlanState, intent: LayoutIntent, frame: LayoutFrame
) -> Optional[GeneratedCorridor]:
    """
    Generate a corridor linking disconnected room clusters.

    Args:
        state: Plan state after placement and gap filling
        intent: Normalized intent
        frame: Layout frame

    Returns:
        Optional[GeneratedCorridor]: The corridor, or None when not needed or not possible
    """
    rooms = list(state.placed.values())
    if len(rooms) < 2:
        return None

    clusters = find_room_clusters(rooms)
    if len(clusters) < 2:
        return None

    width = intent.defaults.corridor_width or 1.2
    door_width = intent.defaults.door_width
    by_id = {room.id: room for room in rooms}
    strips = candidate_strips(rooms, frame, width)
    if not strips:
        logger.debug("No free strip wide enough for a corridor")
        return None

    best: Optional[Tuple[int, float, List[Rect]]] = None

    def _consider(segments: List[Rect]):
        nonlocal best
        reached = _clusters_reached(segments, clusters, by_id, door_width)
        if reached < 2:
            return
        area = PolygonOps.union_rects(segments).area
        # More clusters first, then the smaller corridor
        if best is None or reached > best[0] or (reached == best[0] and area < best[1]):
            best = (reached, area, segments)

    for strip in strips:
        _consider([strip])
    if best is not None and best[0] == len(clusters):
        return GeneratedCorridor(best[2], width)

    horizontal = [s for s in strips if RectOps.width(s) >= RectOps.height(s)]
    vertical = [s for s in strips if RectOps.width(s) < RectOps.height(s)]
    straight_best = best
    for h in horizontal:
        for v in vertical:
            if _segments_join(h, v):
                _consider([h, v])

    if best is None:
        return None
    if straight_best is not None and best[0] == straight_best[0]:
        best = straight_best
    return GeneratedCorridor(best[2], width)


def validate_corridor(
    corridor: GeneratedCorridor, state: PlanState, intent: LayoutIntent, frame: LayoutFrame
) -> bool:
    """
    Check that a corridor can be inserted into the plan.

    The corridor must lie inside the footprint, must not overlap any placed
    room and every strip must be at least the corridor width across.
    """
    min_width = intent.defaults.corridor_width or 1.2
    for segment in corridor.segments:
        if min(RectOps.width(segment), RectOps.height(segment)) < min_width - 0.01:
            logger.debug(f"Corridor segment {segment} narrower than {min_width}")
            return False
        if not frame.contains(segment):
            logger.debug(f"Corridor segment {segment} leaves the footprint")
            return False
        for room in state.placed.values():
            if any(RectOps.overlaps(segment, part) for part in room.parts):
                logger.debug(f"Corridor segment {segment} overlaps {room.id}")
                return False
    return True


def insert_corridor(state: PlanState, corridor: GeneratedCorridor) -> PlacedRoom:
    """Add an accepted corridor to the plan under the reserved id."""
    room = corridor.to_room()
    state.add_room(room)
    state.corridor_polygon = corridor.polygon
    logger.info(
        f"Inserted {'L-shaped' if corridor.is_l_shaped else 'straight'} corridor at {room.rect}"
    )
    return room
