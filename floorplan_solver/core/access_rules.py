"""
Door permission rules.
Two layers decide whether two adjacent rooms may share a door: the
declared access rules (allow-lists keyed by room type or category) and a
fixed set of residential conventions (no pass-through bedrooms, shared
bathrooms off circulation, ensuites only from their bedroom).
"""

from typing import Dict, List, Optional

from floorplan_solver.config.config_loader import ROOM_CATEGORIES
from floorplan_solver.models.intent import (
    AccessRule,
    LayoutIntent,
    RoomSpec,
    RoomType,
    get_effective_access_rules,
    room_category,
)
from floorplan_solver.models.plan_state import PlacedRoom

BATH_TYPES = (RoomType.BATH, RoomType.ENSUITE)
CLEAN_TYPES = (RoomType.KITCHEN, RoomType.DINING)
PRIVATE_ACCESS_TYPES = (RoomType.BATH, RoomType.ENSUITE, RoomType.BEDROOM, RoomType.CLOSET)


def is_bathroom_ensuite(bath: RoomSpec, specs: Dict[str, RoomSpec]) -> bool:
    """
    Decide whether a bathroom is private to one bedroom.

    An explicit is_ensuite flag wins. Otherwise the bathroom is an ensuite
    when its adjacentTo names exactly one bedroom and no circulation room;
    no declared adjacency means shared.

    Args:
        bath: Bathroom spec
        specs: Room id -> spec for the whole intent

    Returns:
        bool: True for an ensuite, False for a shared bathroom
    """
    if bath.is_ensuite is not None:
        return bath.is_ensuite
    if not bath.adjacent_to:
        return False

    bedrooms = 0
    has_circulation = False
    for other_id in bath.adjacent_to:
        other = specs.get(other_id)
        if other is None:
            continue
        if other.room_type == RoomType.BEDROOM:
            bedrooms += 1
        if other.acts_as_circulation:
            has_circulation = True

    return bedrooms == 1 and not has_circulation


def get_ensuite_owner(bath: RoomSpec, specs: Dict[str, RoomSpec]) -> Optional[str]:
    """Get the bedroom an ensuite belongs to, or None for shared bathrooms."""
    if not is_bathroom_ensuite(bath, specs):
        return None
    for other_id in bath.adjacent_to:
        other = specs.get(other_id)
        if other is not None and other.room_type == RoomType.BEDROOM:
            return other.id
    return None


def _bath_rule(
    bath_id: str, bath: RoomSpec, other_id: str, other: RoomSpec, specs: Dict[str, RoomSpec]
) -> Optional[str]:
    if is_bathroom_ensuite(bath, specs):
        owner = get_ensuite_owner(bath, specs)
        if other_id != owner:
            return f"Ensuite {bath_id} is only accessible from bedroom {owner}, not {other_id}"
    elif not other.acts_as_circulation:
        return (
            f"Shared bathroom {bath_id} should only be accessible from circulation, "
            f"not {other.room_type.value} {other_id}"
        )
    return None


def _bedroom_rule(
    bedroom_id: str, other_id: str, other: RoomSpec, specs: Dict[str, RoomSpec]
) -> Optional[str]:
    if other.acts_as_circulation:
        return None
    if other.room_type in BATH_TYPES:
        if get_ensuite_owner(other, specs) != bedroom_id:
            return f"Bedroom {bedroom_id} cannot connect to bathroom {other_id} (not its ensuite)"
    elif other.room_type == RoomType.CLOSET:
        if bedroom_id not in other.adjacent_to:
            return f"Bedroom {bedroom_id} cannot connect to closet {other_id} (not its closet)"
    elif other.room_type == RoomType.BEDROOM:
        return (
            f"Cannot connect bedrooms {bedroom_id} and {other_id} directly "
            f"(would create pass-through)"
        )
    return None


def check_architectural_rules(
    room_a: PlacedRoom, room_b: PlacedRoom, intent: LayoutIntent
) -> Optional[str]:
    """
    Check a door between two rooms against the residential conventions.

    Rooms without a spec (the synthesized corridor) are never restricted.

    Args:
        room_a: First room
        room_b: Second room
        intent: Normalized intent

    Returns:
        Optional[str]: Violation message, or None when the door is acceptable
    """
    specs = intent.room_map()
    spec_a = specs.get(room_a.id)
    spec_b = specs.get(room_b.id)
    if spec_a is None or spec_b is None:
        return None

    if spec_a.room_type in BATH_TYPES:
        message = _bath_rule(room_a.id, spec_a, room_b.id, spec_b, specs)
        if message:
            return message
    if spec_b.room_type in BATH_TYPES:
        message = _bath_rule(room_b.id, spec_b, room_a.id, spec_a, specs)
        if message:
            return message

    if spec_a.room_type == RoomType.BEDROOM:
        message = _bedroom_rule(room_a.id, room_b.id, spec_b, specs)
        if message:
            return message
    if spec_b.room_type == RoomType.BEDROOM:
        message = _bedroom_rule(room_b.id, room_a.id, spec_a, specs)
        if message:
            return message

    # Bedrooms may open onto kitchen/dining (open plan)
    for clean, clean_id, other, other_id in (
        (spec_a, room_a.id, spec_b, room_b.id),
        (spec_b, room_b.id, spec_a, room_a.id),
    ):
        if (
            clean.room_type in CLEAN_TYPES
            and other.room_type in PRIVATE_ACCESS_TYPES
            and other.room_type != RoomType.BEDROOM
        ):
            return (
                f"{clean.room_type.value} {clean_id} should not connect directly to "
                f"{other.room_type.value} {other_id}"
            )

    return None


def _is_category(value: str) -> bool:
    return value in ROOM_CATEGORIES


def find_rule_for_room(room_type: str, rules: List[AccessRule]) -> Optional[AccessRule]:
    """
    Find the access rule for a room type.

    An exact type match wins over a category match.
    """
    for rule in rules:
        if rule.room_type == str(room_type):
            return rule
    category = room_category(room_type)
    for rule in rules:
        if _is_category(rule.room_type) and rule.room_type == category:
            return rule
    return None


def is_type_allowed_in(room_type: str, allowed: List[str], is_circulation: bool = False) -> bool:
    """
    Check a room type against an allow-list of types and categories.

    Rooms flagged as circulation match the "circulation" entry whatever
    their type.
    """
    category = room_category(room_type)
    for item in allowed:
        if item == str(room_type):
            return True
        if _is_category(item) and item == category:
            return True
        if item == "circulation" and is_circulation:
            return True
    return False


def is_door_allowed(
    from_room: PlacedRoom,
    to_room: PlacedRoom,
    intent: LayoutIntent,
    rules: Optional[List[AccessRule]] = None,
) -> bool:
    """
    Check a door walked from one room into another against the access rules.

    Args:
        from_room: Room the door is entered from
        to_room: Room the door leads into
        intent: Normalized intent
        rules: Effective access rules (resolved from the intent when omitted)

    Returns:
        bool: False if the destination refuses the source or the source may
            not lead to the destination
    """
    if rules is None:
        rules = get_effective_access_rules(intent)
    if not rules:
        return True

    specs = intent.room_map()
    from_spec = specs.get(from_room.id)
    to_spec = specs.get(to_room.id)
    if from_spec is None or to_spec is None:
        return True

    to_rule = find_rule_for_room(to_spec.room_type, rules)
    if to_rule is not None and to_rule.accessible_from is not None:
        if not is_type_allowed_in(from_spec.room_type, to_rule.accessible_from, from_spec.is_circulation):
            return False

    from_rule = find_rule_for_room(from_spec.room_type, rules)
    if from_rule is not None and from_rule.can_lead_to is not None:
        if not is_type_allowed_in(to_spec.room_type, from_rule.can_lead_to, to_spec.is_circulation):
            return False

    return True


def door_allowed_between(
    room_a: PlacedRoom,
    room_b: PlacedRoom,
    intent: LayoutIntent,
    rules: Optional[List[AccessRule]] = None,
) -> bool:
    """
    Check whether the access rules let a door join two rooms.

    Doors are two-way; the pair is refused only when neither walking
    direction is permitted.
    """
    if rules is None:
        rules = get_effective_access_rules(intent)
    return is_door_allowed(room_a, room_b, intent, rules) or is_door_allowed(
        room_b, room_a, intent, rules
    )
