"""
Geometric utility functions for floor plan solving.

Rooms are axis-aligned rectangles stored as (x1, y1, x2, y2) tuples with
x1 < x2 and y1 < y2. Polygon footprints are handled with shapely.
"""

from typing import Tuple, List, Optional, Sequence

from shapely.geometry import Polygon, box
from shapely.ops import unary_union


# Type aliases
Point2D = Tuple[float, float]
Rect = Tuple[float, float, float, float]  # (x1, y1, x2, y2)

GRID_SNAP = 0.05
EPSILON = 0.001

DIRECTIONS = ("north", "south", "east", "west")


class GridOps:
    """Class for snapping values to the layout grid."""

    @staticmethod
    def snap(value: float, grid_size: float = GRID_SNAP) -> float:
        """
        Snap a value to the nearest grid increment.

        Args:
            value: Value to snap
            grid_size: Grid increment

        Returns:
            float: Snapped value, rounded so that decimal grid values compare equal
        """
        return round(round(value / grid_size) * grid_size, 4)

    @staticmethod
    def snap_rect(rect: Rect, grid_size: float = GRID_SNAP) -> Rect:
        """Snap all four coordinates of a rect."""
        return tuple(GridOps.snap(v, grid_size) for v in rect)


class RectOps:
    """Class for axis-aligned rectangle operations."""

    @staticmethod
    def width(rect: Rect) -> float:
        return rect[2] - rect[0]

    @staticmethod
    def height(rect: Rect) -> float:
        return rect[3] - rect[1]

    @staticmethod
    def area(rect: Rect) -> float:
        return (rect[2] - rect[0]) * (rect[3] - rect[1])

    @staticmethod
    def center(rect: Rect) -> Point2D:
        return ((rect[0] + rect[2]) / 2, (rect[1] + rect[3]) / 2)

    @staticmethod
    def aspect(rect: Rect) -> float:
        """Return the long side divided by the short side (always >= 1)."""
        w = rect[2] - rect[0]
        h = rect[3] - rect[1]
        if w <= 0 or h <= 0:
            return float("inf")
        return max(w, h) / min(w, h)

    @staticmethod
    def overlaps(a: Rect, b: Rect, eps: float = EPSILON) -> bool:
        """
        Check whether two rects overlap with positive area.

        Rects that only share an edge do not overlap.

        Args:
            a: First rect
            b: Second rect
            eps: Tolerance for touching edges

        Returns:
            bool: True if interiors intersect
        """
        return not (
            a[2] <= b[0] + eps
            or b[2] <= a[0] + eps
            or a[3] <= b[1] + eps
            or b[3] <= a[1] + eps
        )

    @staticmethod
    def overlap_area(a: Rect, b: Rect) -> float:
        """Calculate the intersection area of two rects (0 when disjoint)."""
        w = min(a[2], b[2]) - max(a[0], b[0])
        h = min(a[3], b[3]) - max(a[1], b[1])
        if w <= 0 or h <= 0:
            return 0.0
        return w * h

    @staticmethod
    def inside(inner: Rect, outer: Rect, eps: float = EPSILON) -> bool:
        """Check whether inner lies completely within outer."""
        return (
            inner[0] >= outer[0] - eps
            and inner[1] >= outer[1] - eps
            and inner[2] <= outer[2] + eps
            and inner[3] <= outer[3] + eps
        )

    @staticmethod
    def shared_edge_length(a: Rect, b: Rect, eps: float = EPSILON) -> float:
        """
        Calculate the length of the wall segment shared by two rects.

        Args:
            a: First rect
            b: Second rect
            eps: Tolerance for coincident edges

        Returns:
            float: Shared length, 0.0 if the rects do not touch along an edge
        """
        if abs(a[2] - b[0]) < eps or abs(a[0] - b[2]) < eps:
            overlap = min(a[3], b[3]) - max(a[1], b[1])
            if overlap > eps:
                return overlap
        if abs(a[3] - b[1]) < eps or abs(a[1] - b[3]) < eps:
            overlap = min(a[2], b[2]) - max(a[0], b[0])
            if overlap > eps:
                return overlap
        return 0.0

    @staticmethod
    def adjacent(a: Rect, b: Rect, eps: float = EPSILON) -> bool:
        """Check whether two rects share a wall segment of positive length."""
        return RectOps.shared_edge_length(a, b, eps) > 0.0

    @staticmethod
    def facing_edge(a: Rect, b: Rect, eps: float = EPSILON) -> Optional[str]:
        """
        Find the edge of a that faces b.

        Returns:
            Optional[str]: Direction of a's wall touching b, or None
        """
        if abs(a[2] - b[0]) < eps:
            return "east"
        if abs(a[0] - b[2]) < eps:
            return "west"
        if abs(a[3] - b[1]) < eps:
            return "north"
        if abs(a[1] - b[3]) < eps:
            return "south"
        return None

    @staticmethod
    def touches_edge(rect: Rect, bounds: Rect, edge: str, eps: float = 0.01) -> bool:
        """
        Check whether a rect lies on one side of a bounding rect.

        Args:
            rect: Room rect
            bounds: Footprint bounding rect
            edge: Direction ("north", "south", "east" or "west")
            eps: Tolerance for coincidence

        Returns:
            bool: True if the rect's edge coincides with the bound
        """
        if edge == "south":
            return abs(rect[1] - bounds[1]) < eps
        if edge == "north":
            return abs(rect[3] - bounds[3]) < eps
        if edge == "west":
            return abs(rect[0] - bounds[0]) < eps
        if edge == "east":
            return abs(rect[2] - bounds[2]) < eps
        return False

    @staticmethod
    def touched_edges(rect: Rect, bounds: Rect, eps: float = 0.01) -> List[str]:
        """List every side of bounds that the rect lies on."""
        return [d for d in DIRECTIONS if RectOps.touches_edge(rect, bounds, d, eps)]

    @staticmethod
    def edge_length(rect: Rect, edge: str) -> float:
        """Return the length of a rect's wall on the given side."""
        if edge in ("north", "south"):
            return rect[2] - rect[0]
        return rect[3] - rect[1]

    @staticmethod
    def expand(rect: Rect, margin: float) -> Rect:
        return (rect[0] - margin, rect[1] - margin, rect[2] + margin, rect[3] + margin)


class PolygonOps:
    """Class for polygon footprint operations backed by shapely."""

    @staticmethod
    def make_polygon(points: Sequence[Point2D]) -> Polygon:
        """
        Build a shapely polygon from an ordered point list.

        Args:
            points: Polygon vertices in order (closing point optional)

        Returns:
            Polygon: The footprint polygon
        """
        return Polygon([(float(x), float(y)) for x, y in points])

    @staticmethod
    def rect_polygon(rect: Rect) -> Polygon:
        return box(rect[0], rect[1], rect[2], rect[3])

    @staticmethod
    def bounds(points: Sequence[Point2D]) -> Rect:
        """Calculate the bounding rect of a point list."""
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return (min(xs), min(ys), max(xs), max(ys))

    @staticmethod
    def rect_inside(rect: Rect, polygon: Polygon, eps: float = EPSILON) -> bool:
        """Check whether a rect lies completely within a polygon."""
        return polygon.buffer(eps, join_style=2).covers(PolygonOps.rect_polygon(rect))

    @staticmethod
    def rect_overlaps(rect: Rect, polygon: Polygon, eps: float = EPSILON) -> bool:
        """Check whether a rect and polygon share positive area."""
        return polygon.intersection(PolygonOps.rect_polygon(rect)).area > eps

    @staticmethod
    def shape_inside(shape: Polygon, polygon: Polygon, eps: float = EPSILON) -> bool:
        return polygon.buffer(eps, join_style=2).covers(shape)

    @staticmethod
    def exterior_contact_length(rect: Rect, polygon: Polygon) -> float:
        """
        Calculate how much of a rect's boundary runs along the polygon boundary.

        Args:
            rect: Room rect
            polygon: Footprint polygon

        Returns:
            float: Total collinear contact length
        """
        shared = PolygonOps.rect_polygon(rect).boundary.intersection(polygon.boundary)
        return shared.length

    @staticmethod
    def rect_touches_exterior(rect: Rect, polygon: Polygon, eps: float = 0.01) -> bool:
        return PolygonOps.exterior_contact_length(rect, polygon) > eps

    @staticmethod
    def union_rects(rects: List[Rect]) -> Polygon:
        """Merge rects into a single shape (used for L-shaped corridors)."""
        return unary_union([PolygonOps.rect_polygon(r) for r in rects])

    @staticmethod
    def polygon_points(shape: Polygon) -> List[Point2D]:
        """Return the exterior ring of a shape without the closing point."""
        coords = list(shape.exterior.coords)
        if len(coords) > 1 and coords[0] == coords[-1]:
            coords = coords[:-1]
        return [(float(x), float(y)) for x, y in coords]


# Convenience functions
snap = GridOps.snap
snap_rect = GridOps.snap_rect
rect_width = RectOps.width
rect_height = RectOps.height
rect_area = RectOps.area
rect_center = RectOps.center
rects_overlap = RectOps.overlaps
overlap_area = RectOps.overlap_area
rect_inside = RectOps.inside
shared_edge_length = RectOps.shared_edge_length
rects_adjacent = RectOps.adjacent
touches_edge = RectOps.touches_edge
