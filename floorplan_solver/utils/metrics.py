"""
Evaluation metrics for floor plans.
Raw, unweighted measurements of a plan state that the soft constraints
turn into scores.
"""

from typing import Dict, List, Tuple, Any, Optional
import numpy as np

from floorplan_solver.models.intent import RoomSpec, RoomType
from floorplan_solver.models.plan_state import PlanState, PlacedRoom
from floorplan_solver.utils.geometry import Rect, RectOps, DIRECTIONS


class PlanMetrics:
    """
    Class for measuring plan quality.
    """

    def __init__(
        self,
        state: PlanState,
        specs: Dict[str, RoomSpec],
        footprint_rect: Rect,
        footprint_area: Optional[float] = None,
    ):
        """
        Initialize with a plan state.

        Args:
            state: The plan state to measure
            specs: Room specs by id
            footprint_rect: Bounding rect of the footprint
            footprint_area: Real footprint area (defaults to the rect area)
        """
        self.state = state
        self.specs = specs
        self.footprint_rect = footprint_rect
        self.footprint_area = footprint_area or RectOps.area(footprint_rect)

    def _rooms(self) -> List[PlacedRoom]:
        return list(self.state.placed.values())

    def adjacency_counts(self, eps: float = 0.01) -> Tuple[int, int]:
        """
        Count declared adjacentTo relationships and how many are realized.

        Returns:
            (satisfied, required)
        """
        satisfied = 0
        required = 0
        for room in self._rooms():
            spec = self.specs.get(room.id)
            if spec is None:
                continue
            for other_id in spec.adjacent_to:
                required += 1
                other = self.state.get_room(other_id)
                if other is not None and RectOps.adjacent(room.rect, other.rect, eps):
                    satisfied += 1
        return satisfied, required

    def circulation_area(self) -> float:
        total = 0.0
        for room in self._rooms():
            spec = self.specs.get(room.id)
            is_hall = room.room_type in (RoomType.HALL, RoomType.CORRIDOR)
            if is_hall or (spec is not None and spec.is_circulation):
                total += room.area
        return total

    def hall_ratio(self) -> float:
        return self.circulation_area() / self.footprint_area

    def utilization(self) -> float:
        """Fraction of the footprint covered by rooms."""
        covered = sum(room.area for room in self._rooms())
        return covered / self.footprint_area

    def exterior_wall_breaks(self) -> int:
        """Count rooms beyond the first along each footprint side."""
        breaks = 0
        for edge in DIRECTIONS:
            touching = sum(
                1
                for room in self._rooms()
                if RectOps.touches_edge(room.rect, self.footprint_rect, edge)
            )
            if touching > 1:
                breaks += touching - 1
        return breaks

    def adjacent_pairs(self, room_types: List[RoomType]) -> Tuple[int, int]:
        """
        Count adjacent pairs among rooms of the given types.

        Returns:
            (adjacent pairs, possible pairs)
        """
        rooms = [r for r in self._rooms() if r.room_type in room_types]
        possible = len(rooms) * (len(rooms) - 1) // 2
        adjacent = 0
        for i in range(len(rooms)):
            for j in range(i + 1, len(rooms)):
                if RectOps.adjacent(rooms[i].rect, rooms[j].rect):
                    adjacent += 1
        return adjacent, possible

    def aspect_ratios(self) -> Dict[str, float]:
        return {room.id: RectOps.aspect(room.rect) for room in self._rooms()}

    def coverage_mask(self, resolution: float = 0.1) -> np.ndarray:
        """
        Rasterize the placed rooms over the footprint bounding rect.

        Args:
            resolution: Raster cell size

        Returns:
            np.ndarray: Boolean grid (x index, y index), True where covered
        """
        x1, y1, x2, y2 = self.footprint_rect
        nx = max(1, int(round((x2 - x1) / resolution)))
        ny = max(1, int(round((y2 - y1) / resolution)))
        mask = np.zeros((nx, ny), dtype=bool)
        for room in self._rooms():
            rx1, ry1, rx2, ry2 = room.rect
            i1 = int(round((rx1 - x1) / resolution))
            i2 = int(round((rx2 - x1) / resolution))
            j1 = int(round((ry1 - y1) / resolution))
            j2 = int(round((ry2 - y1) / resolution))
            mask[max(0, i1):min(nx, i2), max(0, j1):min(ny, j2)] = True
        return mask

    def uncovered_area(self, resolution: float = 0.1) -> float:
        """Approximate footprint-bounding-rect area not covered by any room."""
        mask = self.coverage_mask(resolution)
        return float(np.count_nonzero(~mask)) * resolution * resolution

    def summary(self) -> Dict[str, Any]:
        satisfied, required = self.adjacency_counts()
        return {
            "rooms": len(self.state.placed),
            "adjacency_satisfied": satisfied,
            "adjacency_required": required,
            "hall_ratio": self.hall_ratio(),
            "utilization": self.utilization(),
            "exterior_wall_breaks": self.exterior_wall_breaks(),
        }
