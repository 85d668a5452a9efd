"""
Inspection trace for the solver.
A trace sink is passed through the pipeline; NullTraceSink ignores every
record, InspectTrace keeps them for debugging tools and reports.
"""

from typing import Dict, List, Any, Optional

from floorplan_solver.utils.geometry import Rect


class NullTraceSink:
    """Trace sink that records nothing."""

    enabled = False

    def record_frame(self, frame):
        pass

    def record_ordering(self, ordering):
        pass

    def record_placement(
        self,
        room_id: str,
        preferred_cells: List[str],
        candidates: List[Any],
        final_rect: Optional[Rect] = None,
        failure_reason: Optional[str] = None,
    ):
        pass

    def record_door_decision(
        self, room_a: str, room_b: str, allowed: bool, reason: Optional[str] = None
    ):
        pass

    def record_reachability(
        self,
        entry_room: Optional[str],
        reachable: List[str],
        unreachable: List[str],
        door_graph: Dict[str, List[str]],
    ):
        pass

    def record_final_layout(self, state):
        pass

    def add_warning(self, message: str):
        pass


class InspectTrace(NullTraceSink):
    """
    Recording trace sink.

    Holds the frame cells, room ordering, per-room placement decisions,
    door decisions, reachability analysis, final layout and warnings of
    the best variant.
    """

    enabled = True

    def __init__(self):
        self.frame: Dict[str, List[Dict[str, Any]]] = {"bands": [], "depths": [], "cells": []}
        self.room_ordering: List[Dict[str, Any]] = []
        self.placements: List[Dict[str, Any]] = []
        self.door_decisions: List[Dict[str, Any]] = []
        self.reachability: Dict[str, Any] = {
            "entry_room": None,
            "reachable_rooms": [],
            "unreachable_rooms": [],
            "door_graph": {},
        }
        self.final_layout: List[Dict[str, Any]] = []
        self.warnings: List[str] = []

    def record_frame(self, frame):
        self.frame = {
            "bands": [{"id": b.id, "x1": b.start, "x2": b.end} for b in frame.bands],
            "depths": [{"id": d.id, "y1": d.start, "y2": d.end} for d in frame.depths],
            "cells": [
                {"id": c.key, "rect": c.rect, "inside_footprint": c.inside_footprint}
                for c in frame.cells
            ],
        }

    def record_ordering(self, ordering):
        self.room_ordering = []
        for room in ordering.ordered_rooms:
            attached = ordering.attached_rooms.get(room.id, [])
            self.room_ordering.append(
                {
                    "id": room.id,
                    "type": room.room_type.value,
                    "priority": ordering.priorities.get(room.id, -1),
                    "breakdown": dict(ordering.breakdowns.get(room.id, {})),
                    "attached_rooms": [a.id for a in attached],
                }
            )

    def record_placement(
        self,
        room_id: str,
        preferred_cells: List[str],
        candidates: List[Any],
        final_rect: Optional[Rect] = None,
        failure_reason: Optional[str] = None,
    ):
        top = []
        for i, candidate in enumerate(candidates[:5]):
            top.append(
                {
                    "rect": candidate.rect,
                    "cell": candidate.cell.key,
                    "score": candidate.score,
                    "accepted": i == 0 and final_rect is not None,
                }
            )
        self.placements.append(
            {
                "room_id": room_id,
                "preferred_cells": list(preferred_cells),
                "candidates_evaluated": len(candidates),
                "top_candidates": top,
                "final_placement": final_rect,
                "success": final_rect is not None,
                "failure_reason": failure_reason,
            }
        )

    def record_door_decision(
        self, room_a: str, room_b: str, allowed: bool, reason: Optional[str] = None
    ):
        self.door_decisions.append(
            {"room_a": room_a, "room_b": room_b, "allowed": allowed, "reason": reason}
        )

    def record_reachability(
        self,
        entry_room: Optional[str],
        reachable: List[str],
        unreachable: List[str],
        door_graph: Dict[str, List[str]],
    ):
        self.reachability = {
            "entry_room": entry_room,
            "reachable_rooms": list(reachable),
            "unreachable_rooms": list(unreachable),
            "door_graph": {k: list(v) for k, v in door_graph.items()},
        }

    def record_final_layout(self, state):
        self.final_layout = [
            {"id": room.id, "rect": room.rect, "type": room.room_type.value}
            for room in state.placed.values()
        ]

    def add_warning(self, message: str):
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame": self.frame,
            "room_ordering": self.room_ordering,
            "placements": self.placements,
            "door_decisions": self.door_decisions,
            "reachability": self.reachability,
            "final_layout": self.final_layout,
            "warnings": self.warnings,
        }


def _heading(title: str) -> List[str]:
    return ["-" * 63, title, "-" * 63, ""]


def _size(rect: Rect) -> str:
    w = rect[2] - rect[0]
    h = rect[3] - rect[1]
    return f"{w:.1f}x{h:.1f}m"


def format_inspect_trace(trace: InspectTrace) -> str:
    """
    Format a trace as a human-readable report.

    Args:
        trace: Recorded trace

    Returns:
        str: Multi-line report
    """
    lines = ["=" * 63, "SOLVER INSPECTION TRACE", "=" * 63, ""]

    lines.extend(_heading("LAYOUT FRAME"))
    lines.append("Bands:")
    for band in trace.frame["bands"]:
        width = band["x2"] - band["x1"]
        lines.append(f"  {band['id']}: x = {band['x1']:.1f} to {band['x2']:.1f} ({width:.1f}m wide)")
    lines.append("")
    lines.append("Depths:")
    for depth in trace.frame["depths"]:
        size = depth["y2"] - depth["y1"]
        lines.append(f"  {depth['id']}: y = {depth['y1']:.1f} to {depth['y2']:.1f} ({size:.1f}m deep)")
    lines.append("")
    lines.append("Cells:")
    for cell in trace.frame["cells"]:
        status = "valid" if cell["inside_footprint"] else "OUTSIDE footprint"
        lines.append(f"  {cell['id']}: {status}")
    lines.append("")

    lines.extend(_heading("ROOM ORDERING (by placement priority)"))
    for i, room in enumerate(trace.room_ordering, start=1):
        lines.append(f"{i}. {room['id']} ({room['type']}) - priority: {room['priority']}")
        breakdown = room["breakdown"]
        parts = [
            f"{key}:{value:+g}"
            for key, value in breakdown.items()
            if key != "base" and value != 0
        ]
        if parts:
            lines.append(f"   Breakdown: base({breakdown.get('base', 0)}) {' '.join(parts)}")
        if room["attached_rooms"]:
            lines.append(f"   Attached rooms: {', '.join(room['attached_rooms'])}")
    lines.append("")

    lines.extend(_heading("PLACEMENT DECISIONS"))
    for placement in trace.placements:
        mark = "+" if placement["success"] else "x"
        lines.append(f"{mark} {placement['room_id']}")
        lines.append(f"   Preferred cells: {', '.join(placement['preferred_cells']) or 'none'}")
        lines.append(f"   Candidates evaluated: {placement['candidates_evaluated']}")
        if placement["top_candidates"]:
            lines.append("   Top candidates:")
            for cand in placement["top_candidates"][:3]:
                rect = cand["rect"]
                status = "-> SELECTED" if cand["accepted"] else ""
                lines.append(
                    f"     {_size(rect)} at ({rect[0]:.1f},{rect[1]:.1f}) "
                    f"score={cand['score']:.1f} {status}".rstrip()
                )
        final = placement["final_placement"]
        if final is not None:
            area = (final[2] - final[0]) * (final[3] - final[1])
            lines.append(f"   Final: {_size(final)} = {area:.1f}m2 at ({final[0]:.1f},{final[1]:.1f})")
        elif placement["failure_reason"]:
            lines.append(f"   FAILED: {placement['failure_reason']}")
        lines.append("")

    lines.extend(_heading("DOOR PLACEMENT DECISIONS"))
    allowed = [d for d in trace.door_decisions if d["allowed"]]
    blocked = [d for d in trace.door_decisions if not d["allowed"]]
    if allowed:
        lines.append("Doors placed:")
        for door in allowed:
            lines.append(f"  + {door['room_a']} <-> {door['room_b']}")
        lines.append("")
    if blocked:
        lines.append("Doors blocked:")
        for door in blocked:
            lines.append(f"  x {door['room_a']} <-> {door['room_b']}")
            if door["reason"]:
                lines.append(f"      Reason: {door['reason']}")
        lines.append("")

    lines.extend(_heading("REACHABILITY ANALYSIS"))
    reach = trace.reachability
    lines.append(f"Entry room: {reach['entry_room'] or 'NOT FOUND'}")
    lines.append("")
    if reach["reachable_rooms"]:
        lines.append(f"Reachable rooms ({len(reach['reachable_rooms'])}):")
        lines.append(f"  {', '.join(reach['reachable_rooms'])}")
        lines.append("")
    if reach["unreachable_rooms"]:
        lines.append(f"UNREACHABLE rooms ({len(reach['unreachable_rooms'])}):")
        lines.append(f"  {', '.join(reach['unreachable_rooms'])}")
        lines.append("")
    lines.append("Door connectivity graph:")
    for room_id, connections in reach["door_graph"].items():
        target = ", ".join(connections) if connections else "(no doors)"
        lines.append(f"  {room_id} -> {target}")
    lines.append("")

    lines.extend(_heading("FINAL LAYOUT"))
    for room in trace.final_layout:
        rect = room["rect"]
        area = (rect[2] - rect[0]) * (rect[3] - rect[1])
        lines.append(
            f"  {room['id']} ({room['type']}): {_size(rect)} = {area:.1f}m2 "
            f"at ({rect[0]:.1f},{rect[1]:.1f})"
        )
    lines.append("")

    if trace.warnings:
        lines.extend(_heading("WARNINGS"))
        for warning in trace.warnings:
            lines.append(f"  ! {warning}")
        lines.append("")

    lines.append("=" * 63)
    return "\n".join(lines)
