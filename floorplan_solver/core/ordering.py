"""
Room ordering for the greedy placer.
Rooms that anchor the layout (entrances, circulation, edge-bound rooms)
are placed first; rooms attached to a bedroom (ensuites, closets) are
placed immediately after their owner.
"""

from typing import Dict, List, Optional

from floorplan_solver.models.intent import RoomSpec, RoomType


# Priority bonuses, added on top of the room's minimum area
PRIORITY_BONUSES: Dict[str, float] = {
    "entry": 500,
    "circulation": 300,
    "mustTouchEdge": 100,
    "mustTouchExterior": 50,
    "adjacentToCirculation": 80,
    "perAdjacency": 5,
    "perZonePreference": 5,
    "sharedBathCirculation": 90,
    "bathPenalty": -20,
}

ATTACHED_PRIORITY = -1


class RoomOrderingResult:
    """Ordered rooms plus the bookkeeping the placer and trace need."""

    def __init__(
        self,
        ordered_rooms: List[RoomSpec],
        attached_rooms: Dict[str, List[RoomSpec]],
        priorities: Dict[str, float],
        breakdowns: Dict[str, Dict[str, float]],
    ):
        self.ordered_rooms = ordered_rooms
        self.attached_rooms = attached_rooms  # owner id -> attached specs
        self.priorities = priorities
        self.breakdowns = breakdowns

    @property
    def ordered_ids(self) -> List[str]:
        return [room.id for room in self.ordered_rooms]

    def owner_of(self, room_id: str) -> Optional[str]:
        for owner_id, attached in self.attached_rooms.items():
            if any(room.id == room_id for room in attached):
                return owner_id
        return None


def _is_attached(room: RoomSpec, by_id: Dict[str, RoomSpec]) -> bool:
    """A room is attached when it belongs to exactly one owner room."""
    if len(room.adjacent_to) != 1:
        return False
    owner = by_id.get(room.adjacent_to[0])
    if owner is not None and owner.room_type == RoomType.BEDROOM:
        return True
    return bool(room.is_ensuite) or room.room_type in (RoomType.CLOSET, RoomType.ENSUITE)


def _priority(room: RoomSpec, by_id: Dict[str, RoomSpec]) -> Dict[str, float]:
    breakdown = {"base": room.min_area}

    if room.has_exterior_door:
        breakdown["entry"] = PRIORITY_BONUSES["entry"]
    elif room.acts_as_circulation:
        breakdown["circulation"] = PRIORITY_BONUSES["circulation"]

    if room.must_touch_edge:
        breakdown["mustTouchEdge"] = PRIORITY_BONUSES["mustTouchEdge"]
    if room.must_touch_exterior:
        breakdown["mustTouchExterior"] = PRIORITY_BONUSES["mustTouchExterior"]

    if room.adjacent_to:
        targets = [by_id[t] for t in room.adjacent_to if t in by_id]
        if any(t.acts_as_circulation for t in targets):
            breakdown["adjacentToCirculation"] = PRIORITY_BONUSES["adjacentToCirculation"]
        breakdown["adjacencyCount"] = len(room.adjacent_to) * PRIORITY_BONUSES["perAdjacency"]

    zone_count = int(bool(room.preferred_bands)) + int(bool(room.preferred_depths))
    if zone_count:
        breakdown["zonePreferences"] = zone_count * PRIORITY_BONUSES["perZonePreference"]

    if room.room_type in (RoomType.BATH, RoomType.LAUNDRY):
        shared_bath = room.room_type == RoomType.BATH and room.is_ensuite is False
        targets = [by_id[t] for t in room.adjacent_to if t in by_id]
        needs_access = any(
            t.acts_as_circulation or t.room_type in (RoomType.KITCHEN, RoomType.LIVING)
            for t in targets
        )
        if shared_bath and needs_access:
            breakdown["sharedBathCirculation"] = PRIORITY_BONUSES["sharedBathCirculation"]
        else:
            breakdown["bathPenalty"] = PRIORITY_BONUSES["bathPenalty"]

    return breakdown


def order_rooms(rooms: List[RoomSpec]) -> RoomOrderingResult:
    """
    Compute the placement order for a list of rooms.

    Standalone rooms are sorted by descending priority (declared order breaks
    ties); each attached room follows its owner directly.

    Args:
        rooms: Room specs in declared order

    Returns:
        RoomOrderingResult: Order, attachment map and priority breakdowns
    """
    by_id = {room.id: room for room in rooms}
    attached: Dict[str, List[RoomSpec]] = {}
    standalone = []

    for room in rooms:
        if _is_attached(room, by_id) and room.adjacent_to[0] in by_id:
            attached.setdefault(room.adjacent_to[0], []).append(room)
        else:
            standalone.append(room)

    # Attached rooms whose owner is itself attached are placed as standalone rooms
    for owner_id in list(attached):
        if owner_id not in {r.id for r in standalone}:
            standalone.extend(attached.pop(owner_id))
    standalone.sort(key=lambda r: rooms.index(r))

    priorities = {}
    breakdowns = {}
    for room in standalone:
        breakdown = _priority(room, by_id)
        breakdowns[room.id] = breakdown
        priorities[room.id] = sum(breakdown.values())

    # sorted() is stable, so equal priorities keep declared order
    standalone = sorted(standalone, key=lambda r: -priorities[r.id])

    ordered = []
    for room in standalone:
        ordered.append(room)
        for child in attached.get(room.id, []):
            ordered.append(child)
            priorities[child.id] = ATTACHED_PRIORITY
            breakdowns[child.id] = {"attached": 0}

    return RoomOrderingResult(ordered, attached, priorities, breakdowns)
