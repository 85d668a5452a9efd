"""
Door and window placement.
Interior doors are placed between adjacent rooms the access rules and
architectural conventions allow; single-door rooms get exactly one door
to their best-ranked neighbor. The entry room gets the exterior door and
habitable rooms get windows on their exterior walls.
"""

import logging
from typing import Dict, List, Optional, Tuple

from floorplan_solver.config.config_loader import get_door_priorities, get_solver_settings
from floorplan_solver.core.access_rules import check_architectural_rules, door_allowed_between
from floorplan_solver.core.corridor import build_adjacency_graph
from floorplan_solver.core.frame import LayoutFrame
from floorplan_solver.core.reachability import find_entry_room
from floorplan_solver.core.trace import NullTraceSink
from floorplan_solver.models.intent import (
    LayoutIntent,
    RoomSpec,
    RoomType,
    get_effective_access_rules,
    is_circulation_type,
)
from floorplan_solver.models.plan_state import (
    CORRIDOR_ID,
    PlacedOpening,
    PlacedRoom,
    PlanState,
    room_shared_edge,
)
from floorplan_solver.utils.geometry import RectOps

logger = logging.getLogger(__name__)

SINGLE_DOOR_TYPES = (RoomType.BATH, RoomType.ENSUITE, RoomType.CLOSET, RoomType.LAUNDRY)
WINDOW_TYPES = (RoomType.LIVING, RoomType.BEDROOM, RoomType.OFFICE, RoomType.DINING)

GARDEN_WINDOW_SCALE = 1.5
BATH_WINDOW_SCALE = 0.5
GARDEN_WALL_MARGIN = 0.5
WINDOW_WALL_MARGIN = 0.3


def is_single_door_room(spec: Optional[RoomSpec]) -> bool:
    return spec is not None and spec.room_type in SINGLE_DOOR_TYPES


def door_target_priority(
    room: PlacedRoom, spec: Optional[RoomSpec], priorities: Optional[Dict[str, int]] = None
) -> int:
    """
    Rank a neighbor as the door target of a single-door room.

    Args:
        room: Candidate neighbor
        spec: Its spec (None for the synthesized corridor)
        priorities: Type -> rank table (configured defaults when omitted)

    Returns:
        int: Higher is better
    """
    priorities = priorities or get_door_priorities()
    room_type = spec.room_type.value if spec is not None else room.room_type.value
    if room_type in priorities:
        return priorities[room_type]
    circulation = spec.acts_as_circulation if spec is not None else is_circulation_type(room_type)
    if circulation:
        return priorities.get("circulation", 0)
    return priorities.get("default", 0)


def place_door_between(
    room_a: PlacedRoom, room_b: PlacedRoom, door_width: float, margin: float = 0.1
) -> Optional[PlacedOpening]:
    """
    Create an interior door on the wall two rooms share.

    The door is owned by room_a, centered on its facing wall.

    Returns:
        Optional[PlacedOpening]: The door, or None if the shared wall is too short
    """
    length, part_a, part_b = room_shared_edge(room_a, room_b)
    if part_a is None or length < door_width + margin:
        return None

    edge = RectOps.facing_edge(part_a, part_b, 0.01)
    if edge is None:
        return None

    return PlacedOpening(
        "door",
        room_a.id,
        edge,
        door_width,
        position=0.5,
        connects_to=room_b.id,
    )


def place_windows_for_room(
    room: PlacedRoom,
    spec: RoomSpec,
    frame: LayoutFrame,
    window_width: float,
    sill: Optional[float] = None,
) -> List[PlacedOpening]:
    """
    Place a window on one exterior wall of a room.

    The garden side is preferred, with a larger window, when it is long
    enough; otherwise the longest exterior wall is used.

    Args:
        room: Placed room
        spec: Room spec
        frame: Layout frame
        window_width: Nominal window width
        sill: Optional sill height

    Returns:
        List[PlacedOpening]: Zero or one window
    """
    exterior = frame.exterior_edges(room.rect)
    if not exterior:
        return []

    garden = frame.garden_edge
    if garden and spec.room_type in WINDOW_TYPES and garden in exterior:
        length = exterior[garden]
        if length > window_width + GARDEN_WALL_MARGIN:
            width = min(window_width * GARDEN_WINDOW_SCALE, length - GARDEN_WALL_MARGIN)
            return [
                PlacedOpening("window", room.id, garden, round(width, 3), is_exterior=True, sill=sill)
            ]

    edge, length = max(exterior.items(), key=lambda item: item[1])
    if length > window_width + WINDOW_WALL_MARGIN:
        width = min(window_width, length - WINDOW_WALL_MARGIN)
        return [PlacedOpening("window", room.id, edge, round(width, 3), is_exterior=True, sill=sill)]
    return []


def _pair_key(a: str, b: str) -> Tuple[str, str]:
    return tuple(sorted((a, b)))


def _door_block_reason(
    room: PlacedRoom,
    other: PlacedRoom,
    intent: LayoutIntent,
    rules,
    door_width: float,
    margin: float,
) -> Optional[str]:
    """Reason no door may join two adjacent rooms, or None if one may."""
    violation = check_architectural_rules(room, other, intent)
    if violation:
        return violation
    if not door_allowed_between(room, other, intent, rules):
        return "Blocked by access rules"
    length, _, _ = room_shared_edge(room, other)
    if length < door_width + margin:
        return "Shared edge too short for door"
    return None


def place_openings(
    state: PlanState,
    intent: LayoutIntent,
    frame: LayoutFrame,
    trace=None,
    door_margin: Optional[float] = None,
    priorities: Optional[Dict[str, int]] = None,
    window_sill: Optional[float] = None,
):
    """
    Place interior doors, the exterior door and windows.

    Args:
        state: Plan state to add openings to
        intent: Normalized intent
        frame: Layout frame
        trace: Optional trace sink for door decisions
        door_margin: Extra wall length a door needs beyond its width
        priorities: Door target ranking for single-door rooms
        window_sill: Sill height written on every window
    """
    trace = trace or NullTraceSink()
    if door_margin is None:
        door_margin = get_solver_settings()["door_margin"]
    priorities = priorities or get_door_priorities()

    specs = intent.room_map()
    rules = get_effective_access_rules(intent)
    door_width = intent.defaults.door_width
    rooms = list(state.placed.values())
    adjacency = build_adjacency_graph(rooms)

    door_pairs = set()
    single_done = set()
    single_candidates: Dict[str, List[Tuple[int, PlacedRoom]]] = {}
    blocked: Dict[Tuple[str, str], str] = {}

    for room in rooms:
        spec = specs.get(room.id)
        single = is_single_door_room(spec)
        if single:
            single_candidates[room.id] = []

        for other_id in adjacency.neighbors(room.id):
            if room.id == CORRIDOR_ID and other_id == CORRIDOR_ID:
                continue
            key = _pair_key(room.id, other_id)
            if key in door_pairs:
                continue

            other = state.placed[other_id]
            reason = _door_block_reason(room, other, intent, rules, door_width, door_margin)
            if reason:
                blocked[key] = reason
                continue

            other_spec = specs.get(other_id)
            if single:
                single_candidates[room.id].append(
                    (door_target_priority(other, other_spec, priorities), other)
                )
            elif is_single_door_room(other_spec):
                # placed from the single-door side
                continue
            else:
                door = place_door_between(room, other, door_width, door_margin)
                if door is not None:
                    state.openings.append(door)
                    door_pairs.add(key)

    for room_id, candidates in single_candidates.items():
        if room_id in single_done:
            continue
        candidates = [c for c in candidates if c[1].id not in single_done]
        if not candidates:
            continue

        spec = specs[room_id]
        candidates.sort(key=lambda c: -c[0])
        if spec.is_ensuite and len(spec.adjacent_to) == 1:
            owner = spec.adjacent_to[0]
            for i, (_, other) in enumerate(candidates):
                if other.id == owner:
                    candidates.insert(0, candidates.pop(i))
                    break

        target = candidates[0][1]
        key = _pair_key(room_id, target.id)
        if key in door_pairs:
            continue
        door = place_door_between(state.placed[room_id], target, door_width, door_margin)
        if door is None:
            continue
        state.openings.append(door)
        door_pairs.add(key)
        single_done.add(room_id)
        if is_single_door_room(specs.get(target.id)):
            single_done.add(target.id)

    if trace.enabled:
        _record_door_decisions(state, adjacency, door_pairs, blocked, trace)

    entry = find_entry_room(intent, state, frame)
    if entry is not None and frame.touches_edge(entry.rect, intent.front_edge):
        state.openings.append(
            PlacedOpening(
                "door",
                entry.id,
                intent.front_edge,
                intent.defaults.exterior_door_width or door_width,
                position=0.5,
                is_exterior=True,
            )
        )
    elif entry is None:
        logger.debug("No entry room for the exterior door")

    for room in rooms:
        if room.id == CORRIDOR_ID:
            continue
        spec = specs.get(room.id)
        if spec is None:
            continue
        if spec.room_type in WINDOW_TYPES:
            width = intent.defaults.window_width
        elif spec.room_type == RoomType.BATH:
            width = intent.defaults.window_width * BATH_WINDOW_SCALE
        else:
            continue
        state.openings.extend(place_windows_for_room(room, spec, frame, width, window_sill))

    logger.debug(
        f"Placed {len(state.doors())} door(s) and {len(state.windows())} window(s)"
    )


def _record_door_decisions(state: PlanState, adjacency, door_pairs, blocked, trace):
    for room_a, room_b in adjacency.edges:
        key = _pair_key(room_a, room_b)
        if key in door_pairs:
            trace.record_door_decision(room_a, room_b, True)
        elif key in blocked:
            trace.record_door_decision(room_a, room_b, False, blocked[key])
        else:
            trace.record_door_decision(
                room_a, room_b, False, "Single-door room already has its door"
            )
