"""
Layout frame builder.
Partitions the footprint into bands (vertical slices along x) and depths
(horizontal slices along y); their cross product forms the placement cells.
"""

import logging
from typing import Dict, List, Optional

from shapely.geometry import LineString

from floorplan_solver.models.intent import LayoutIntent, ZoneSpec
from floorplan_solver.utils.geometry import (
    Rect,
    RectOps,
    PolygonOps,
    snap,
    DIRECTIONS,
)

logger = logging.getLogger(__name__)


class ResolvedZone:
    """A band or depth resolved to concrete coordinates along its axis."""

    def __init__(self, id: str, start: float, end: float):
        self.id = id
        self.start = start
        self.end = end

    @property
    def size(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, float]:
        return {"id": self.id, "start": self.start, "end": self.end}

    def __repr__(self) -> str:
        return f"ResolvedZone({self.id}, {self.start}-{self.end})"


class LayoutCell:
    """Intersection of one band and one depth."""

    def __init__(self, band_id: str, depth_id: str, rect: Rect, inside_footprint: bool):
        self.band_id = band_id
        self.depth_id = depth_id
        self.rect = rect
        self.inside_footprint = inside_footprint

    @property
    def key(self) -> str:
        return f"{self.band_id}/{self.depth_id}"

    def to_dict(self):
        return {
            "band": self.band_id,
            "depth": self.depth_id,
            "rect": list(self.rect),
            "insideFootprint": self.inside_footprint,
        }

    def __repr__(self) -> str:
        return f"LayoutCell({self.key}, rect={self.rect})"


class LayoutFrame:
    """
    Immutable band/depth grid for one footprint, shared by all variants.
    """

    def __init__(
        self,
        footprint_rect: Rect,
        footprint_points: List,
        is_polygon: bool,
        bands: List[ResolvedZone],
        depths: List[ResolvedZone],
        cells: List[LayoutCell],
        front_edge: str,
        garden_edge: Optional[str] = None,
    ):
        self.footprint_rect = footprint_rect
        self.footprint_points = footprint_points
        self.is_polygon = is_polygon
        self.polygon = PolygonOps.make_polygon(footprint_points)
        self.bands = bands
        self.depths = depths
        self.cells = cells
        self.front_edge = front_edge
        self.garden_edge = garden_edge

    def find_cell(self, band_id: str, depth_id: str) -> Optional[LayoutCell]:
        for cell in self.cells:
            if cell.band_id == band_id and cell.depth_id == depth_id:
                return cell
        return None

    @property
    def footprint_area(self) -> float:
        return self.polygon.area

    def contains(self, rect: Rect) -> bool:
        """Check whether a rect lies within the footprint."""
        if self.is_polygon:
            return PolygonOps.rect_inside(rect, self.polygon)
        return RectOps.inside(rect, self.footprint_rect)

    def exterior_edges(self, rect: Rect) -> Dict[str, float]:
        """
        Find the sides of a rect that lie on the footprint boundary.

        Args:
            rect: Room rect

        Returns:
            Dict mapping direction to the exterior length along that side
        """
        if not self.is_polygon:
            return {
                edge: RectOps.edge_length(rect, edge)
                for edge in RectOps.touched_edges(rect, self.footprint_rect)
            }

        x1, y1, x2, y2 = rect
        sides = {
            "south": LineString([(x1, y1), (x2, y1)]),
            "north": LineString([(x1, y2), (x2, y2)]),
            "west": LineString([(x1, y1), (x1, y2)]),
            "east": LineString([(x2, y1), (x2, y2)]),
        }
        boundary = self.polygon.boundary
        edges = {}
        for edge in DIRECTIONS:
            length = sides[edge].intersection(boundary).length
            if length > 0.01:
                edges[edge] = length
        return edges

    def touches_exterior(self, rect: Rect) -> bool:
        return len(self.exterior_edges(rect)) > 0

    def touches_edge(self, rect: Rect, edge: str) -> bool:
        """Check whether a rect lies on a side of the footprint bounding box."""
        return RectOps.touches_edge(rect, self.footprint_rect, edge)

    def to_dict(self):
        return {
            "footprintRect": list(self.footprint_rect),
            "isPolygon": self.is_polygon,
            "bands": [b.to_dict() for b in self.bands],
            "depths": [d.to_dict() for d in self.depths],
            "cells": [c.to_dict() for c in self.cells],
            "frontEdge": self.front_edge,
            "gardenEdge": self.garden_edge,
        }


def build_layout_frame(intent: LayoutIntent) -> LayoutFrame:
    """
    Build the layout frame for a normalized intent.

    Bands and depths come from the intent when declared, otherwise they are
    derived from the zone ids the rooms refer to.

    Args:
        intent: Normalized layout intent

    Returns:
        LayoutFrame: The band/depth grid
    """
    footprint = intent.footprint
    bounds = footprint.bounds()
    points = footprint.polygon_points()
    is_polygon = footprint.is_polygon
    x1, y1, x2, y2 = bounds
    total_width = x2 - x1
    total_height = y2 - y1

    if intent.bands:
        bands = _distribute_zones(intent.bands, total_width, x1)
    else:
        bands = _derive_bands(intent, total_width, x1)

    front_first = intent.front_edge in ("south", "west")
    if intent.depths:
        specs = list(intent.depths) if front_first else list(reversed(intent.depths))
        depths = _distribute_zones(specs, total_height, y1)
    else:
        depths = _derive_depths(intent, total_height, y1, front_first)

    polygon = PolygonOps.make_polygon(points)
    cells = []
    for band in bands:
        for depth in depths:
            rect = (band.start, depth.start, band.end, depth.end)
            inside = PolygonOps.rect_overlaps(rect, polygon) if is_polygon else True
            cells.append(LayoutCell(band.id, depth.id, rect, inside))

    logger.debug(
        f"Built frame with {len(bands)} bands, {len(depths)} depths, "
        f"{sum(1 for c in cells if c.inside_footprint)}/{len(cells)} usable cells"
    )

    return LayoutFrame(
        footprint_rect=bounds,
        footprint_points=points,
        is_polygon=is_polygon,
        bands=bands,
        depths=depths,
        cells=cells,
        front_edge=intent.front_edge,
        garden_edge=intent.garden_edge,
    )


def _build_zones(sizes: List, start: float) -> List[ResolvedZone]:
    zones = []
    current = start
    for zone_id, size in sizes:
        end = snap(current + size)
        zones.append(ResolvedZone(zone_id, current, end))
        current = end
    return zones


def _distribute_zones(specs: List[ZoneSpec], total: float, start: float) -> List[ResolvedZone]:
    """
    Resolve explicit zone specs along one axis.

    When every spec has a target size the targets act as proportional
    weights; otherwise targeted zones keep their target and the others share
    the remainder equally. The last zone absorbs any rounding remainder.
    """
    targeted = [s for s in specs if s.target_size is not None]
    all_targeted = len(targeted) == len(specs)
    total_target = sum(s.target_size for s in targeted) if all_targeted else total
    untargeted_count = len(specs) - len(targeted)
    remaining = total - sum(s.target_size for s in targeted)

    zones = []
    current = start
    for i, spec in enumerate(specs):
        if spec.target_size is not None and total_target > 0:
            size = snap(spec.target_size / total_target * total)
        elif untargeted_count:
            size = snap(remaining / untargeted_count)
        else:
            size = snap(total / len(specs))

        if spec.min_size is not None:
            size = max(size, spec.min_size)
        if spec.max_size is not None:
            size = min(size, spec.max_size)

        if i == len(specs) - 1:
            size = snap(start + total - current)

        end = snap(current + size)
        zones.append(ResolvedZone(spec.id, current, end))
        current = end
    return zones


def _referenced_ids(intent: LayoutIntent, attr: str) -> List[str]:
    ids = []
    for room in intent.rooms:
        for zone_id in getattr(room, attr):
            if zone_id not in ids:
                ids.append(zone_id)
    return ids


def _derive_bands(intent: LayoutIntent, total_width: float, start_x: float) -> List[ResolvedZone]:
    referenced = _referenced_ids(intent, "preferred_bands")

    if "left" in referenced and "right" in referenced and "center" not in referenced:
        left = snap(total_width * 0.4)
        return _build_zones([("left", left), ("right", snap(total_width - left))], start_x)

    if "center" in referenced:
        side = snap(total_width * 0.3)
        center = snap(total_width - 2 * side)
        return _build_zones(
            [("left", side), ("center", center), ("right", snap(total_width - side - center))],
            start_x,
        )

    if referenced:
        size = snap(total_width / len(referenced))
        sizes = [(zone_id, size) for zone_id in referenced[:-1]]
        sizes.append((referenced[-1], snap(total_width - size * (len(referenced) - 1))))
        return _build_zones(sizes, start_x)

    return [ResolvedZone("full", start_x, snap(start_x + total_width))]


def _derive_depths(
    intent: LayoutIntent, total_height: float, start_y: float, front_first: bool
) -> List[ResolvedZone]:
    referenced = _referenced_ids(intent, "preferred_depths")
    has_front = "front" in referenced
    has_back = "back" in referenced

    if has_front and has_back and "middle" in referenced:
        front = snap(total_height * 0.33)
        middle = snap(total_height * 0.34)
        sizes = [("front", front), ("middle", middle), ("back", snap(total_height - front - middle))]
    elif has_front and has_back:
        front = snap(total_height * 0.45)
        sizes = [("front", front), ("back", snap(total_height - front))]
    elif referenced:
        size = snap(total_height / len(referenced))
        sizes = [(zone_id, size) for zone_id in referenced[:-1]]
        sizes.append((referenced[-1], snap(total_height - size * (len(referenced) - 1))))
    else:
        return [ResolvedZone("full", start_y, snap(start_y + total_height))]

    if not front_first:
        sizes.reverse()
    return _build_zones(sizes, start_y)


def find_preferred_cells(
    frame: LayoutFrame,
    preferred_bands: Optional[List[str]] = None,
    preferred_depths: Optional[List[str]] = None,
) -> List[LayoutCell]:
    """
    Find usable cells matching band/depth preferences.

    An empty preference list matches every band (or depth).

    Args:
        frame: Layout frame
        preferred_bands: Acceptable band ids
        preferred_depths: Acceptable depth ids

    Returns:
        List[LayoutCell]: Matching cells inside the footprint
    """
    cells = []
    for cell in frame.cells:
        if not cell.inside_footprint:
            continue
        band_ok = not preferred_bands or cell.band_id in preferred_bands
        depth_ok = not preferred_depths or cell.depth_id in preferred_depths
        if band_ok and depth_ok:
            cells.append(cell)
    return cells


def get_valid_cells(frame: LayoutFrame) -> List[LayoutCell]:
    return [cell for cell in frame.cells if cell.inside_footprint]
