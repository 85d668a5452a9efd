"""
Reachability analysis over the interior door graph.
"""

import logging
from typing import Dict, List, Optional

import networkx as nx

from floorplan_solver.core.frame import LayoutFrame
from floorplan_solver.models.intent import LayoutIntent, RoomType
from floorplan_solver.models.plan_state import PlacedRoom, PlanState
from floorplan_solver.utils.geometry import RectOps

logger = logging.getLogger(__name__)

NO_ENTRY_MESSAGE = (
    "No entry room found (need a room with hasExteriorDoor, a foyer, "
    "or circulation touching front edge)"
)


def find_entry_room(
    intent: LayoutIntent, state: PlanState, frame: Optional[LayoutFrame] = None
) -> Optional[PlacedRoom]:
    """
    Resolve the room holding the main entrance.

    Priority: a room flagged hasExteriorDoor, then a foyer, then a
    circulation room on the front edge, then any room on the front edge.

    Args:
        intent: Normalized intent
        state: Plan state with placed rooms
        frame: Layout frame (the footprint bounds are used when omitted)

    Returns:
        Optional[PlacedRoom]: The entry room, or None
    """
    specs = intent.room_map()
    rooms = list(state.placed.values())

    for room in rooms:
        spec = specs.get(room.id)
        if spec is not None and spec.has_exterior_door:
            return room

    for room in rooms:
        spec = specs.get(room.id)
        if spec is not None and spec.room_type == RoomType.FOYER:
            return room

    bounds = frame.footprint_rect if frame is not None else state.footprint.bounds()
    front = intent.front_edge

    for room in rooms:
        spec = specs.get(room.id)
        if spec is not None and spec.acts_as_circulation and RectOps.touches_edge(room.rect, bounds, front):
            return room

    for room in rooms:
        if RectOps.touches_edge(room.rect, bounds, front):
            return room

    return None


def build_door_graph(state: PlanState) -> nx.Graph:
    """
    Build the connectivity graph of interior doors.

    Every placed room is a node; exterior doors and windows add no edges.
    """
    graph = nx.Graph()
    graph.add_nodes_from(state.placed)
    for opening in state.openings:
        if not opening.is_interior_door:
            continue
        if opening.room_id in graph and opening.connects_to in graph:
            graph.add_edge(opening.room_id, opening.connects_to)
    return graph


def door_graph_dict(graph: nx.Graph) -> Dict[str, List[str]]:
    """Adjacency lists of a door graph, in node order."""
    return {node: list(graph.neighbors(node)) for node in graph.nodes}


def find_reachable_rooms(entry_id: str, state: PlanState) -> List[str]:
    graph = build_door_graph(state)
    if entry_id not in graph:
        return []
    component = nx.node_connected_component(graph, entry_id)
    return [room_id for room_id in state.placed if room_id in component]


def find_unreachable_rooms(entry_id: str, state: PlanState) -> List[str]:
    """
    List placed rooms that cannot be reached from the entry through doors.

    Args:
        entry_id: Entry room id
        state: Plan state with openings

    Returns:
        List[str]: Unreachable room ids in placement order
    """
    reachable = set(find_reachable_rooms(entry_id, state))
    return [room_id for room_id in state.placed if room_id not in reachable]


def validate_reachability(
    intent: LayoutIntent, state: PlanState, frame: Optional[LayoutFrame] = None
) -> Optional[str]:
    """
    Check that every room is reachable from the entry room.

    Returns:
        Optional[str]: Error message, or None when every room is reachable
    """
    entry = find_entry_room(intent, state, frame)
    if entry is None:
        return NO_ENTRY_MESSAGE

    unreachable = find_unreachable_rooms(entry.id, state)
    if unreachable:
        return f"Rooms not reachable from entry: {', '.join(unreachable)}"
    return None
