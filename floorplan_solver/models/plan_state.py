"""
Plan state model.
A PlanState is the mutable working set of one solve variant: the placed
room rects, unplaced rooms with their failure reasons, openings and an
optional synthesized corridor outline.
"""

from typing import Dict, List, Any, Optional, Tuple
import copy

from floorplan_solver.models.intent import Footprint, RoomType
from floorplan_solver.utils.geometry import Rect, Point2D, RectOps, PolygonOps


# Reserved id for the synthesized corridor
CORRIDOR_ID = "corridor"

# Placement failure reason codes
NO_CANDIDATE_CELLS = "no_candidate_cells"
INSUFFICIENT_AREA = "insufficient_area"
FOOTPRINT_EXHAUSTED = "footprint_exhausted"


class PlacedRoom:
    """
    A room with a concrete rectangle.

    Non-rectangular rooms (the L-shaped synthesized corridor) also carry
    the rect segments they are made of; rect is then their bounding box.
    """

    def __init__(
        self,
        id: str,
        rect: Rect,
        room_type: str,
        label: Optional[str] = None,
        band: Optional[str] = None,
        depth: Optional[str] = None,
        segments: Optional[List[Rect]] = None,
    ):
        self.id = id
        self.rect = tuple(rect)
        self.room_type = RoomType(str(room_type))
        self.label = label or id
        self.band = band
        self.depth = depth
        self.segments = [tuple(s) for s in segments] if segments else None

    @property
    def parts(self) -> List[Rect]:
        """Rects covering the room exactly."""
        return list(self.segments) if self.segments else [self.rect]

    @property
    def area(self) -> float:
        if self.segments:
            return PolygonOps.union_rects(self.segments).area
        return RectOps.area(self.rect)

    @property
    def width(self) -> float:
        return RectOps.width(self.rect)

    @property
    def height(self) -> float:
        return RectOps.height(self.rect)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.room_type.value,
            "label": self.label,
            "rect": list(self.rect),
            "band": self.band,
            "depth": self.depth,
            "segments": [list(s) for s in self.segments] if self.segments else None,
        }

    def __repr__(self) -> str:
        x1, y1, x2, y2 = self.rect
        return f"PlacedRoom(id={self.id}, type={self.room_type.value}, rect=({x1}, {y1}, {x2}, {y2}))"


def rooms_overlap(a: PlacedRoom, b: PlacedRoom) -> bool:
    """Check whether two rooms share interior area, segment by segment."""
    return any(RectOps.overlaps(pa, pb) for pa in a.parts for pb in b.parts)


def room_shared_edge(a: PlacedRoom, b: PlacedRoom) -> Tuple[float, Optional[Rect], Optional[Rect]]:
    """
    Find the longest wall segment two rooms share.

    Returns:
        (length, part of a, part of b); parts are None when the rooms do not touch
    """
    best = (0.0, None, None)
    for pa in a.parts:
        for pb in b.parts:
            length = RectOps.shared_edge_length(pa, pb)
            if length > best[0]:
                best = (length, pa, pb)
    return best


class PlacedOpening:
    """
    A door or window on a room wall.

    Interior doors carry connects_to; exterior doors and windows sit on
    an edge of the owning room that lies on the footprint boundary.
    """

    def __init__(
        self,
        opening_type: str,
        room_id: str,
        edge: str,
        width: float,
        position: float = 0.5,
        connects_to: Optional[str] = None,
        is_exterior: bool = False,
        swing: Optional[str] = None,
        sill: Optional[float] = None,
    ):
        """
        Initialize an opening.

        Args:
            opening_type: "door" or "window"
            room_id: Room owning the wall
            edge: Wall direction on the owning room
            width: Clear opening width
            position: Normalized position along the wall (0-1)
            connects_to: Other room for interior doors
            is_exterior: Whether the opening is on the footprint boundary
            swing: Door swing hint (doors only)
            sill: Sill height (windows only)
        """
        if opening_type not in ("door", "window"):
            raise ValueError(f"Unknown opening type: {opening_type}")
        self.opening_type = opening_type
        self.room_id = room_id
        self.edge = edge
        self.width = width
        self.position = position
        self.connects_to = connects_to
        self.is_exterior = is_exterior
        self.swing = swing if opening_type == "door" else None
        self.sill = sill if opening_type == "window" else None

    @property
    def is_interior_door(self) -> bool:
        return self.opening_type == "door" and self.connects_to is not None

    def touches(self, room_id: str) -> bool:
        return self.room_id == room_id or self.connects_to == room_id

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.opening_type,
            "roomId": self.room_id,
            "edge": self.edge,
            "position": self.position,
            "width": self.width,
            "isExterior": self.is_exterior,
        }
        if self.connects_to is not None:
            data["connectsTo"] = self.connects_to
        if self.swing is not None:
            data["swing"] = self.swing
        if self.sill is not None:
            data["sill"] = self.sill
        return data

    def __repr__(self) -> str:
        target = self.connects_to or self.edge
        return f"PlacedOpening({self.opening_type}, {self.room_id} -> {target}, width={self.width})"


class RoomPlacementFailure:
    """Structured reason a room could not be placed."""

    def __init__(self, room_id: str, reason: str, message: str):
        self.room_id = room_id
        self.reason = reason
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"roomId": self.room_id, "reason": self.reason, "message": self.message}

    def __str__(self) -> str:
        return f"{self.room_id}: {self.message}"

    def __repr__(self) -> str:
        return f"RoomPlacementFailure({self.room_id}, {self.reason})"


class PlanState:
    """
    Mutable working set for a single solve variant.
    """

    def __init__(self, footprint: Footprint):
        """
        Initialize an empty plan state.

        Args:
            footprint: The footprint rooms are placed in
        """
        self.footprint = footprint
        self.placed: Dict[str, PlacedRoom] = {}  # insertion order = placement order
        self.unplaced: List[str] = []
        self.failures: Dict[str, RoomPlacementFailure] = {}
        self.openings: List[PlacedOpening] = []
        self.corridor_polygon: Optional[List[Point2D]] = None
        self.score: Optional[Dict[str, float]] = None

    def add_room(self, room: PlacedRoom):
        self.placed[room.id] = room

    def get_room(self, room_id: str) -> Optional[PlacedRoom]:
        return self.placed.get(room_id)

    def mark_unplaced(self, failure: RoomPlacementFailure):
        """Record a room that could not be placed."""
        if failure.room_id not in self.unplaced:
            self.unplaced.append(failure.room_id)
        self.failures[failure.room_id] = failure

    def rects(self, exclude: Optional[str] = None) -> List[Tuple[str, Rect]]:
        """Get (room id, rect) pairs, optionally skipping one room."""
        return [
            (room_id, room.rect)
            for room_id, room in self.placed.items()
            if room_id != exclude
        ]

    def doors(self) -> List[PlacedOpening]:
        return [o for o in self.openings if o.opening_type == "door"]

    def windows(self) -> List[PlacedOpening]:
        return [o for o in self.openings if o.opening_type == "window"]

    def interior_doors_for(self, room_id: str) -> List[PlacedOpening]:
        return [o for o in self.openings if o.is_interior_door and o.touches(room_id)]

    def has_door_between(self, room_a: str, room_b: str) -> bool:
        for opening in self.openings:
            if not opening.is_interior_door:
                continue
            pair = {opening.room_id, opening.connects_to}
            if pair == {room_a, room_b}:
                return True
        return False

    def copy(self) -> "PlanState":
        """Create an independent copy of this state."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "footprint": self.footprint.to_dict(),
            "placed": [room.to_dict() for room in self.placed.values()],
            "unplaced": list(self.unplaced),
            "failures": [f.to_dict() for f in self.failures.values()],
            "openings": [o.to_dict() for o in self.openings],
            "corridorPolygon": (
                [list(p) for p in self.corridor_polygon]
                if self.corridor_polygon
                else None
            ),
            "score": self.score,
        }

    def __repr__(self) -> str:
        return (
            f"PlanState(placed={len(self.placed)}, unplaced={len(self.unplaced)}, "
            f"openings={len(self.openings)})"
        )
