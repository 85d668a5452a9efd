import os
from typing import Dict, List, Optional, Union

import matplotlib.pyplot as plt
import matplotlib.colors as mcolors
import matplotlib.patches as patches
import networkx as nx

from floorplan_solver.core.frame import LayoutFrame
from floorplan_solver.core.reachability import build_door_graph
from floorplan_solver.core.trace import InspectTrace
from floorplan_solver.models.intent import room_category
from floorplan_solver.models.plan_state import CORRIDOR_ID, PlacedOpening, PlacedRoom, PlanState
from floorplan_solver.utils.geometry import RectOps


class StyleConfig:
    """Configuration for visualization styles."""

    # Room category colors
    CATEGORY_COLORS = {
        "circulation": "#c7e9b4",
        "private": "#f7fcb9",
        "public": "#7fcdbb",
        "service": "#d9f0a3",
        "default": "#efefef",
    }

    CATEGORY_ALPHAS = {
        "circulation": 0.8,
        "private": 0.6,
        "public": 0.7,
        "service": 0.5,
        "default": 0.5,
    }

    DOOR_COLOR = "#8c510a"
    EXTERIOR_DOOR_COLOR = "#d7301f"
    WINDOW_COLOR = "#2c7fb8"
    CELL_COLOR = "#bdbdbd"

    @classmethod
    def brighten_color(cls, color_str: str) -> str:
        """
        Brighten a color for highlighting.

        Args:
            color_str: Color to brighten

        Returns:
            str: Brightened color
        """
        rgb = mcolors.to_rgb(color_str)
        brightened = [min(1.0, c * 1.5) for c in rgb]
        return mcolors.rgb2hex(brightened)


def _opening_segment(room: PlacedRoom, opening: PlacedOpening):
    """Endpoints of an opening drawn on its room wall."""
    x1, y1, x2, y2 = room.rect
    half = opening.width / 2
    if opening.edge in ("north", "south"):
        y = y2 if opening.edge == "north" else y1
        cx = x1 + (x2 - x1) * opening.position
        return (cx - half, cx + half), (y, y)
    x = x2 if opening.edge == "east" else x1
    cy = y1 + (y2 - y1) * opening.position
    return (x, x), (cy - half, cy + half)


class PlanRenderer:
    """
    2D debug renderer for solved floor plans.
    """

    def __init__(self, state: PlanState, frame: Optional[LayoutFrame] = None):
        """
        Initialize the renderer.

        Args:
            state: The plan state to render
            frame: Optional layout frame, used to draw the cell grid
        """
        self.state = state
        self.frame = frame
        self.room_colors = StyleConfig.CATEGORY_COLORS.copy()
        self.room_alphas = StyleConfig.CATEGORY_ALPHAS.copy()

    def _room_style(self, room: PlacedRoom):
        category = room_category(room.room_type) or "default"
        return self.room_colors.get(category, self.room_colors["default"]), self.room_alphas.get(
            category, self.room_alphas["default"]
        )

    def render_plan(
        self,
        ax=None,
        fig=None,
        show_labels: bool = True,
        show_cells: bool = True,
        highlight_rooms: Optional[List[str]] = None,
    ):
        """
        Render the plan.

        Args:
            ax: Optional matplotlib axis
            fig: Optional matplotlib figure
            show_labels: Whether to show room labels
            show_cells: Whether to outline the frame cells
            highlight_rooms: Optional list of room ids to highlight

        Returns:
            fig, ax: The matplotlib figure and axis
        """
        if fig is None or ax is None:
            fig, ax = plt.subplots(figsize=(12, 10))

        self._setup_axes(ax)
        self._draw_footprint(ax)
        if show_cells and self.frame is not None:
            self._draw_cells(ax)

        for room in self.state.placed.values():
            highlighted = highlight_rooms is not None and room.id in highlight_rooms
            self._draw_room(ax, room, show_labels, highlighted)

        self._draw_openings(ax)
        ax.set_aspect("equal")
        return fig, ax

    def _setup_axes(self, ax):
        x1, y1, x2, y2 = self.state.footprint.bounds()
        margin = 0.5
        ax.set_xlabel("x (m)")
        ax.set_ylabel("y (m)")
        ax.set_title("Floor Plan")
        ax.set_xlim(x1 - margin, x2 + margin)
        ax.set_ylim(y1 - margin, y2 + margin)

    def _draw_footprint(self, ax):
        points = self.state.footprint.polygon_points()
        ax.add_patch(
            patches.Polygon(points, closed=True, fill=False, edgecolor="black", linewidth=2)
        )

    def _draw_cells(self, ax):
        for cell in self.frame.cells:
            x1, y1, x2, y2 = cell.rect
            ax.add_patch(
                patches.Rectangle(
                    (x1, y1),
                    x2 - x1,
                    y2 - y1,
                    fill=False,
                    edgecolor=StyleConfig.CELL_COLOR,
                    linestyle="--",
                    linewidth=0.5,
                )
            )

    def _draw_room(self, ax, room: PlacedRoom, show_labels: bool, highlighted: bool):
        color, alpha = self._room_style(room)
        if highlighted:
            color = StyleConfig.brighten_color(color)
            alpha = min(1.0, alpha + 0.2)

        if room.id == CORRIDOR_ID and self.state.corridor_polygon:
            ax.add_patch(
                patches.Polygon(
                    self.state.corridor_polygon,
                    closed=True,
                    facecolor=color,
                    alpha=alpha,
                    edgecolor="black",
                )
            )
        else:
            x1, y1, x2, y2 = room.rect
            ax.add_patch(
                patches.Rectangle(
                    (x1, y1), x2 - x1, y2 - y1, facecolor=color, alpha=alpha, edgecolor="black"
                )
            )

        if show_labels:
            cx, cy = RectOps.center(room.rect)
            ax.text(
                cx,
                cy,
                f"{room.label}\n{room.area:.1f}m²",
                ha="center",
                va="center",
                fontsize=8,
            )

    def _draw_openings(self, ax):
        for opening in self.state.openings:
            room = self.state.get_room(opening.room_id)
            if room is None:
                continue
            xs, ys = _opening_segment(room, opening)
            if opening.opening_type == "window":
                color, width = StyleConfig.WINDOW_COLOR, 3
            elif opening.is_exterior:
                color, width = StyleConfig.EXTERIOR_DOOR_COLOR, 4
            else:
                color, width = StyleConfig.DOOR_COLOR, 4
            ax.plot(xs, ys, color=color, linewidth=width, solid_capstyle="butt")

    def save_render(self, filename: str, dpi: int = 150, **kwargs):
        """
        Save the plan render to disk.

        Args:
            filename: Output image filename
            dpi: Image resolution
        """
        output_dir = os.path.dirname(filename)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        fig, ax = self.render_plan(**kwargs)
        fig.savefig(filename, dpi=dpi, bbox_inches="tight")
        plt.close(fig)


def _door_graph(source: Union[PlanState, InspectTrace]) -> nx.Graph:
    if isinstance(source, InspectTrace):
        graph = nx.Graph()
        door_graph: Dict[str, List[str]] = source.reachability["door_graph"]
        graph.add_nodes_from(door_graph)
        for room_id, connections in door_graph.items():
            for other in connections:
                graph.add_edge(room_id, other)
        return graph
    return build_door_graph(source)


def render_door_graph(
    source: Union[PlanState, InspectTrace],
    ax=None,
    fig=None,
    entry_room: Optional[str] = None,
):
    """
    Draw the interior door graph.

    Args:
        source: Plan state with openings, or a trace with recorded reachability
        ax: Optional matplotlib axis
        fig: Optional matplotlib figure
        entry_room: Room to highlight (the trace's entry room by default)

    Returns:
        fig, ax: The matplotlib figure and axis
    """
    if fig is None or ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))

    graph = _door_graph(source)
    if entry_room is None and isinstance(source, InspectTrace):
        entry_room = source.reachability["entry_room"]

    positions = nx.spring_layout(graph, seed=42) if graph.number_of_nodes() else {}
    colors = [
        StyleConfig.EXTERIOR_DOOR_COLOR if node == entry_room else StyleConfig.CATEGORY_COLORS["public"]
        for node in graph.nodes
    ]
    nx.draw_networkx(graph, pos=positions, ax=ax, node_color=colors, font_size=8)
    ax.set_title("Door Graph")
    ax.set_axis_off()
    return fig, ax
