import json
import os
from typing import Dict, List, Any, Optional

from floorplan_solver.core.frame import LayoutFrame
from floorplan_solver.models.intent import LayoutIntent
from floorplan_solver.models.plan_state import CORRIDOR_ID, PlacedOpening, PlacedRoom, PlanState
from floorplan_solver.utils.geometry import Point2D

UNGROUPED = "ungrouped"


def format_num(value: float) -> str:
    """
    Format a coordinate for plan text.

    Rounds to 2 decimals and strips trailing zeros ("12", "2.5", "3.75").
    """
    text = f"{round(value, 2):.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _point(p: Point2D) -> str:
    return f"({format_num(p[0])}, {format_num(p[1])})"


def _footprint_lines(state: PlanState) -> List[str]:
    footprint = state.footprint
    if footprint.is_polygon:
        points = ", ".join(_point(p) for p in footprint.points)
        return ["footprint polygon [", f"    {points}", "  ]"]
    x1, y1, x2, y2 = footprint.bounds()
    return [f"footprint rect {_point((x1, y1))} {_point((x2, y2))}"]


def _room_lines(room: PlacedRoom) -> List[str]:
    x1, y1, x2, y2 = room.rect
    lines = [f"room {room.id} {{", f"  rect {_point((x1, y1))} {_point((x2, y2))}"]
    if room.label and room.label != room.id:
        lines.append(f'  label "{room.label}"')
    lines.append("}")
    return lines


def _polygon_room_lines(room: PlacedRoom, points: List[Point2D]) -> List[str]:
    lines = [f"room {room.id} {{", "  polygon ["]
    for i, p in enumerate(points):
        separator = "," if i < len(points) - 1 else ""
        lines.append(f"    {_point(p)}{separator}")
    lines.append("  ]")
    if room.label:
        lines.append(f'  label "{room.label}"')
    lines.append("}")
    return lines


def _opening_lines(opening: PlacedOpening, opening_id: str) -> List[str]:
    lines = [f"opening {opening.opening_type} {opening_id} {{"]
    if opening.connects_to and not opening.is_exterior:
        lines.append(f"  between {opening.room_id} and {opening.connects_to}")
        lines.append("  on shared_edge")
    else:
        lines.append(f"  on {opening.room_id}.edge {opening.edge}")
    lines.append(f"  at {round(opening.position * 100)}%")
    lines.append(f"  width {format_num(opening.width)}")
    lines.append("}")
    return lines


def group_rooms_by_zone(
    rooms: List[PlacedRoom], frame: Optional[LayoutFrame] = None
) -> Dict[str, List[PlacedRoom]]:
    """
    Group rooms under "band/depth" zone keys.

    Zones follow the frame's cell order when a frame is given, otherwise
    the order rooms were placed in. Rooms without a zone go last under
    "ungrouped".
    """
    groups: Dict[str, List[PlacedRoom]] = {}
    if frame is not None:
        for cell in frame.cells:
            groups[cell.key] = []

    for room in rooms:
        zone = f"{room.band}/{room.depth}" if room.band and room.depth else UNGROUPED
        groups.setdefault(zone, []).append(room)

    if UNGROUPED in groups:
        groups[UNGROUPED] = groups.pop(UNGROUPED)
    return {zone: members for zone, members in groups.items() if members}


def export_to_planscript(
    state: PlanState,
    intent: LayoutIntent,
    frame: Optional[LayoutFrame] = None,
    plan_name: str = "Generated Plan",
    include_comments: bool = True,
    include_assertions: bool = True,
) -> str:
    """
    Emit a solved plan as plan description text.

    Args:
        state: Solved plan state
        intent: Normalized intent
        frame: Layout frame, orders the zone groups
        plan_name: Name written in the plan header
        include_comments: Write zone/section comments
        include_assertions: Write validation asserts for enabled hard flags

    Returns:
        str: The plan text
    """
    lines = [
        "units m",
        "",
        "defaults {",
        f"  door_width {format_num(intent.defaults.door_width)}",
        f"  window_width {format_num(intent.defaults.window_width)}",
        "}",
        "",
        f'plan "{plan_name}" {{',
    ]
    lines.extend("  " + line for line in _footprint_lines(state))
    lines.append("")

    rooms = [room for room in state.placed.values() if room.id != CORRIDOR_ID]
    for zone, members in group_rooms_by_zone(rooms, frame).items():
        if include_comments and zone != UNGROUPED:
            lines.append(f"  # {zone} zone")
        for room in members:
            lines.extend("  " + line for line in _room_lines(room))
        lines.append("")

    corridor = state.placed.get(CORRIDOR_ID)
    if corridor is not None:
        if include_comments:
            lines.append("  # Circulation")
        polygon = state.corridor_polygon
        if polygon and len(polygon) > 4:
            room_lines = _polygon_room_lines(corridor, polygon)
        else:
            room_lines = _room_lines(corridor)
        lines.extend("  " + line for line in room_lines)
        lines.append("")

    if state.openings:
        if include_comments:
            lines.append("  # Openings")
        doors = 0
        windows = 0
        for opening in state.openings:
            if opening.opening_type == "door":
                doors += 1
                opening_id = f"d{doors}"
            else:
                windows += 1
                opening_id = f"w{windows}"
            lines.extend("  " + line for line in _opening_lines(opening, opening_id))
        lines.append("")

    if include_assertions and (intent.hard.no_overlap or intent.hard.inside_footprint):
        lines.append("  # Validation")
        if intent.hard.no_overlap:
            lines.append("  assert no_overlap rooms")
        if intent.hard.inside_footprint:
            lines.append("  assert inside footprint all_rooms")

    lines.append("}")
    return "\n".join(lines)


def export_to_json(
    state: PlanState, filename: str, score: Optional[Dict[str, Any]] = None
) -> None:
    """
    Export a plan state to JSON.

    Args:
        state: The plan state to export
        filename: Output JSON filename
        score: Optional score breakdown stored next to the plan
    """
    data = state.to_dict()
    if score is not None:
        data["score"] = score

    output_dir = os.path.dirname(filename)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with open(filename, "w") as f:
        json.dump(data, f, indent=2)
