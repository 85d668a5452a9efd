"""
Intent model for the floor plan solver.
An intent is the declarative description of a plan: the footprint, the
rooms with their area/adjacency/edge requirements, band/depth zoning,
opening defaults, hard constraint flags and access rules.
"""

import copy
from enum import Enum
from typing import Dict, List, Any, Optional, Tuple

from floorplan_solver.config.config_loader import (
    ROOM_CATEGORIES,
    get_access_rule_preset,
    get_default_weights,
)
from floorplan_solver.utils.geometry import PolygonOps, Rect, DIRECTIONS


class IntentError(ValueError):
    """Raised when an intent cannot be interpreted."""


class RoomType(str, Enum):
    """Closed set of room types understood by the solver."""

    BEDROOM = "bedroom"
    BATH = "bath"
    ENSUITE = "ensuite"
    KITCHEN = "kitchen"
    DINING = "dining"
    LIVING = "living"
    OFFICE = "office"
    GARAGE = "garage"
    LAUNDRY = "laundry"
    HALL = "hall"
    CORRIDOR = "corridor"
    FOYER = "foyer"
    STAIRWELL = "stairwell"
    CLOSET = "closet"
    UTILITY = "utility"
    STORAGE = "storage"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


def room_category(room_type: str) -> Optional[str]:
    """
    Get the category a room type belongs to.

    Args:
        room_type: Room type value

    Returns:
        Optional[str]: "circulation", "private", "public", "service" or None
    """
    for category, members in ROOM_CATEGORIES.items():
        if str(room_type) in members:
            return category
    return None


def is_circulation_type(room_type: str) -> bool:
    return room_category(room_type) == "circulation"


def _room_type(value: Any) -> RoomType:
    try:
        return RoomType(str(value))
    except ValueError:
        raise IntentError(f"Unknown room type: {value}")


class Footprint:
    """Buildable outline: an axis-aligned rectangle or an ordered polygon."""

    def __init__(
        self,
        kind: str,
        min_point: Optional[Tuple[float, float]] = None,
        max_point: Optional[Tuple[float, float]] = None,
        points: Optional[List[Tuple[float, float]]] = None,
    ):
        if kind not in ("rect", "polygon"):
            raise IntentError(f"Unknown footprint kind: {kind}")
        self.kind = kind
        self.min_point = tuple(min_point) if min_point is not None else None
        self.max_point = tuple(max_point) if max_point is not None else None
        self.points = [tuple(p) for p in points] if points else []

    @property
    def is_polygon(self) -> bool:
        return self.kind == "polygon"

    def bounds(self) -> Rect:
        """Get the bounding rect of the footprint."""
        if self.is_polygon:
            return PolygonOps.bounds(self.points)
        return (
            self.min_point[0],
            self.min_point[1],
            self.max_point[0],
            self.max_point[1],
        )

    def polygon_points(self) -> List[Tuple[float, float]]:
        """Get the footprint outline as a point list (rects become 4 corners)."""
        if self.is_polygon:
            return list(self.points)
        x1, y1, x2, y2 = self.bounds()
        return [(x1, y1), (x2, y1), (x2, y2), (x1, y2)]

    def area(self) -> float:
        return PolygonOps.make_polygon(self.polygon_points()).area

    def scaled(self, divisor: float) -> "Footprint":
        if self.is_polygon:
            return Footprint(
                "polygon", points=[(x / divisor, y / divisor) for x, y in self.points]
            )
        return Footprint(
            "rect",
            min_point=tuple(v / divisor for v in self.min_point),
            max_point=tuple(v / divisor for v in self.max_point),
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.is_polygon:
            return {"kind": "polygon", "points": [list(p) for p in self.points]}
        return {
            "kind": "rect",
            "min": list(self.min_point),
            "max": list(self.max_point),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Footprint":
        kind = data.get("kind")
        if kind == "polygon":
            return cls("polygon", points=data.get("points", []))
        if kind == "rect":
            return cls("rect", min_point=data["min"], max_point=data["max"])
        raise IntentError(f"Unknown footprint kind: {kind}")

    def __repr__(self) -> str:
        return f"Footprint(kind={self.kind}, bounds={self.bounds()})"


class ZoneSpec:
    """A named band (along x) or depth (along y) with optional size hints."""

    def __init__(
        self,
        id: str,
        min_size: Optional[float] = None,
        target_size: Optional[float] = None,
        max_size: Optional[float] = None,
    ):
        self.id = id
        self.min_size = min_size
        self.target_size = target_size
        self.max_size = max_size

    def scaled(self, divisor: float) -> "ZoneSpec":
        def _scale(v):
            return v / divisor if v is not None else None

        return ZoneSpec(
            self.id,
            _scale(self.min_size),
            _scale(self.target_size),
            _scale(self.max_size),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], axis: str) -> "ZoneSpec":
        """
        Create a zone from a band ({minWidth, targetWidth, maxWidth}) or
        depth ({minDepth, targetDepth, maxDepth}) dictionary.
        """
        suffix = "Width" if axis == "band" else "Depth"
        return cls(
            id=data["id"],
            min_size=data.get(f"min{suffix}"),
            target_size=data.get(f"target{suffix}"),
            max_size=data.get(f"max{suffix}"),
        )

    def __repr__(self) -> str:
        return f"ZoneSpec(id={self.id}, target={self.target_size})"


class RoomSpec:
    """
    Declared requirements for a single room.
    """

    def __init__(
        self,
        id: str,
        room_type: str,
        min_area: float,
        label: Optional[str] = None,
        target_area: Optional[float] = None,
        max_area: Optional[float] = None,
        min_width: Optional[float] = None,
        min_height: Optional[float] = None,
        max_width: Optional[float] = None,
        max_height: Optional[float] = None,
        aspect: Optional[Tuple[float, float]] = None,
        fill_cell: bool = False,
        preferred_bands: Optional[List[str]] = None,
        preferred_depths: Optional[List[str]] = None,
        must_touch_exterior: bool = False,
        must_touch_edge: Optional[str] = None,
        adjacent_to: Optional[List[str]] = None,
        avoid_adjacent_to: Optional[List[str]] = None,
        needs_access_from: Optional[List[str]] = None,
        is_circulation: bool = False,
        has_exterior_door: bool = False,
        is_ensuite: Optional[bool] = None,
    ):
        """
        Initialize a room spec.

        Args:
            id: Unique room identifier
            room_type: Room type (see RoomType)
            min_area: Minimum floor area
            label: Display label
            target_area: Preferred floor area
            max_area: Maximum floor area
            min_width, min_height, max_width, max_height: Dimension bounds
            aspect: (min, max) width/height ratio bounds
            fill_cell: Size the room to fill its whole cell
            preferred_bands: Band ids the room should sit in
            preferred_depths: Depth ids the room should sit in
            must_touch_exterior: Room needs an exterior wall
            must_touch_edge: Footprint side the room must lie on
            adjacent_to: Room ids this room should share a wall with
            avoid_adjacent_to: Room ids this room should not touch
            needs_access_from: Room ids that should open into this room
            is_circulation: Room acts as circulation regardless of type
            has_exterior_door: Room holds the main entrance
            is_ensuite: Tri-state ensuite flag (None = infer from adjacency)
        """
        if must_touch_edge is not None and must_touch_edge not in DIRECTIONS:
            raise IntentError(f"Room {id} has invalid mustTouchEdge: {must_touch_edge}")
        self.id = id
        self.room_type = _room_type(room_type)
        self.min_area = min_area
        self.label = label
        self.target_area = target_area
        self.max_area = max_area
        self.min_width = min_width
        self.min_height = min_height
        self.max_width = max_width
        self.max_height = max_height
        self.aspect = tuple(aspect) if aspect is not None else None
        self.fill_cell = fill_cell
        self.preferred_bands = list(preferred_bands or [])
        self.preferred_depths = list(preferred_depths or [])
        self.must_touch_exterior = must_touch_exterior
        self.must_touch_edge = must_touch_edge
        self.adjacent_to = list(adjacent_to or [])
        self.avoid_adjacent_to = list(avoid_adjacent_to or [])
        self.needs_access_from = list(needs_access_from or [])
        self.is_circulation = is_circulation
        self.has_exterior_door = has_exterior_door
        self.is_ensuite = is_ensuite

    @property
    def category(self) -> Optional[str]:
        return room_category(self.room_type)

    @property
    def acts_as_circulation(self) -> bool:
        """True if the room is flagged as circulation or has a circulation type."""
        return self.is_circulation or is_circulation_type(self.room_type)

    def scaled(self, divisor: float) -> "RoomSpec":
        """Return a copy with lengths divided by divisor and areas by divisor**2."""
        room = copy.copy(self)
        area_divisor = divisor * divisor

        def _len(v):
            return v / divisor if v is not None else None

        def _area(v):
            return v / area_divisor if v is not None else None

        room.min_area = self.min_area / area_divisor
        room.target_area = _area(self.target_area)
        room.max_area = _area(self.max_area)
        room.min_width = _len(self.min_width)
        room.min_height = _len(self.min_height)
        room.max_width = _len(self.max_width)
        room.max_height = _len(self.max_height)
        return room

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        data = {
            "id": self.id,
            "type": self.room_type.value,
            "minArea": self.min_area,
        }
        optional = {
            "label": self.label,
            "targetArea": self.target_area,
            "maxArea": self.max_area,
            "minWidth": self.min_width,
            "minHeight": self.min_height,
            "maxWidth": self.max_width,
            "maxHeight": self.max_height,
            "mustTouchEdge": self.must_touch_edge,
            "isEnsuite": self.is_ensuite,
        }
        for key, value in optional.items():
            if value is not None:
                data[key] = value
        if self.aspect is not None:
            data["aspect"] = {"min": self.aspect[0], "max": self.aspect[1]}
        for key, value in (
            ("preferredBands", self.preferred_bands),
            ("preferredDepths", self.preferred_depths),
            ("adjacentTo", self.adjacent_to),
            ("avoidAdjacentTo", self.avoid_adjacent_to),
            ("needsAccessFrom", self.needs_access_from),
        ):
            if value:
                data[key] = list(value)
        for key, value in (
            ("fillCell", self.fill_cell),
            ("mustTouchExterior", self.must_touch_exterior),
            ("isCirculation", self.is_circulation),
            ("hasExteriorDoor", self.has_exterior_door),
        ):
            if value:
                data[key] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoomSpec":
        """Create a RoomSpec from its intent dictionary representation"""
        if "id" not in data:
            raise IntentError("Room is missing an id")
        aspect = data.get("aspect")
        return cls(
            id=data["id"],
            room_type=data.get("type", "other"),
            min_area=data.get("minArea", 0),
            label=data.get("label"),
            target_area=data.get("targetArea"),
            max_area=data.get("maxArea"),
            min_width=data.get("minWidth"),
            min_height=data.get("minHeight"),
            max_width=data.get("maxWidth"),
            max_height=data.get("maxHeight"),
            aspect=(aspect["min"], aspect["max"]) if aspect else None,
            fill_cell=data.get("fillCell", False),
            preferred_bands=data.get("preferredBands"),
            preferred_depths=data.get("preferredDepths"),
            must_touch_exterior=data.get("mustTouchExterior", False),
            must_touch_edge=data.get("mustTouchEdge"),
            adjacent_to=data.get("adjacentTo"),
            avoid_adjacent_to=data.get("avoidAdjacentTo"),
            needs_access_from=data.get("needsAccessFrom"),
            is_circulation=data.get("isCirculation", False),
            has_exterior_door=data.get("hasExteriorDoor", False),
            is_ensuite=data.get("isEnsuite"),
        )

    def __repr__(self) -> str:
        return f"RoomSpec(id={self.id}, type={self.room_type.value}, min_area={self.min_area})"


class AccessRule:
    """
    Door permission rule for a room type or category.

    Allow-lists hold room types, categories, or the pseudo-category
    "circulation" which also matches rooms flagged is_circulation.
    None means unrestricted.
    """

    def __init__(
        self,
        room_type: str,
        accessible_from: Optional[List[str]] = None,
        can_lead_to: Optional[List[str]] = None,
    ):
        self.room_type = room_type
        self.accessible_from = list(accessible_from) if accessible_from is not None else None
        self.can_lead_to = list(can_lead_to) if can_lead_to is not None else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessRule":
        return cls(
            room_type=data["roomType"],
            accessible_from=data.get("accessibleFrom"),
            can_lead_to=data.get("canLeadTo"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"roomType": self.room_type}
        if self.accessible_from is not None:
            data["accessibleFrom"] = list(self.accessible_from)
        if self.can_lead_to is not None:
            data["canLeadTo"] = list(self.can_lead_to)
        return data

    def __repr__(self) -> str:
        return (
            f"AccessRule({self.room_type}, from={self.accessible_from}, "
            f"to={self.can_lead_to})"
        )


class IntentDefaults:
    """Opening and circulation dimensions used when rooms do not override them."""

    def __init__(
        self,
        door_width: float = 0.9,
        window_width: float = 1.5,
        exterior_door_width: Optional[float] = None,
        corridor_width: Optional[float] = None,
    ):
        self.door_width = door_width
        self.window_width = window_width
        self.exterior_door_width = exterior_door_width
        self.corridor_width = corridor_width

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IntentDefaults":
        return cls(
            door_width=data.get("doorWidth", 0.9),
            window_width=data.get("windowWidth", 1.5),
            exterior_door_width=data.get("exteriorDoorWidth"),
            corridor_width=data.get("corridorWidth"),
        )


class HardConstraints:
    """Hard constraint flags for a solve."""

    def __init__(
        self,
        no_overlap: bool = True,
        inside_footprint: bool = True,
        all_rooms_reachable: Optional[bool] = None,
    ):
        self.no_overlap = no_overlap
        self.inside_footprint = inside_footprint
        self.all_rooms_reachable = all_rooms_reachable is not False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HardConstraints":
        return cls(
            no_overlap=data.get("noOverlap", True),
            inside_footprint=data.get("insideFootprint", True),
            all_rooms_reachable=data.get("allRoomsReachable"),
        )


class LayoutIntent:
    """
    Complete declarative description of a plan to solve.
    """

    def __init__(
        self,
        footprint: Optional[Footprint],
        rooms: List[RoomSpec],
        front_edge: str = "south",
        units: str = "m",
        garden_edge: Optional[str] = None,
        bands: Optional[List[ZoneSpec]] = None,
        depths: Optional[List[ZoneSpec]] = None,
        defaults: Optional[IntentDefaults] = None,
        hard: Optional[HardConstraints] = None,
        access_rule_preset: Optional[str] = None,
        access_rules: Optional[List[AccessRule]] = None,
        weights: Optional[Dict[str, float]] = None,
    ):
        """
        Initialize an intent.

        Args:
            footprint: Buildable outline
            rooms: Room specs in declared order
            front_edge: Side of the footprint facing the street
            units: "m" or "cm"
            garden_edge: Side of the footprint facing the garden
            bands: Explicit band specs (derived from rooms when omitted)
            depths: Explicit depth specs (derived from rooms when omitted)
            defaults: Opening and corridor dimensions
            hard: Hard constraint flags
            access_rule_preset: Named preset of access rules
            access_rules: Explicit access rules merged over the preset
            weights: Soft score weights merged over the defaults
        """
        if units not in ("m", "cm"):
            raise IntentError(f"Unknown units: {units}")
        if front_edge not in DIRECTIONS:
            raise IntentError(f"Invalid frontEdge: {front_edge}")
        if garden_edge is not None and garden_edge not in DIRECTIONS:
            raise IntentError(f"Invalid gardenEdge: {garden_edge}")
        self.footprint = footprint
        self.rooms = list(rooms)
        self.front_edge = front_edge
        self.units = units
        self.garden_edge = garden_edge
        self.bands = list(bands) if bands else None
        self.depths = list(depths) if depths else None
        self.defaults = defaults or IntentDefaults()
        self.hard = hard or HardConstraints()
        self.access_rule_preset = access_rule_preset
        self.access_rules = list(access_rules) if access_rules else None
        self.weights = dict(weights) if weights else None

    def get_room(self, room_id: str) -> Optional[RoomSpec]:
        for room in self.rooms:
            if room.id == room_id:
                return room
        return None

    def room_map(self) -> Dict[str, RoomSpec]:
        return {room.id: room for room in self.rooms}

    def has_circulation(self) -> bool:
        return any(room.acts_as_circulation for room in self.rooms)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutIntent":
        """Create an intent from its dictionary representation"""
        footprint = data.get("footprint")
        return cls(
            footprint=Footprint.from_dict(footprint) if footprint else None,
            rooms=[RoomSpec.from_dict(r) for r in data.get("rooms", [])],
            front_edge=data.get("frontEdge", "south"),
            units=data.get("units", "m"),
            garden_edge=data.get("gardenEdge"),
            bands=[ZoneSpec.from_dict(b, "band") for b in data.get("bands") or []],
            depths=[ZoneSpec.from_dict(d, "depth") for d in data.get("depths") or []],
            defaults=IntentDefaults.from_dict(data.get("defaults", {})),
            hard=HardConstraints.from_dict(data.get("hard", {})),
            access_rule_preset=data.get("accessRulePreset"),
            access_rules=[AccessRule.from_dict(r) for r in data.get("accessRules") or []],
            weights=data.get("weights"),
        )

    def __repr__(self) -> str:
        return f"LayoutIntent(rooms={len(self.rooms)}, footprint={self.footprint})"


def normalize_intent(intent: LayoutIntent) -> LayoutIntent:
    """
    Produce a solver-ready copy of an intent.

    Converts centimetres to metres, fills opening defaults and merges the
    soft score weights over the configured defaults. The input is not
    modified.

    Args:
        intent: Intent as declared

    Returns:
        LayoutIntent: Normalized intent in metres
    """
    result = copy.copy(intent)
    defaults = copy.copy(intent.defaults)

    if intent.units == "cm":
        divisor = 100.0
        if intent.footprint is not None:
            result.footprint = intent.footprint.scaled(divisor)
        result.rooms = [room.scaled(divisor) for room in intent.rooms]
        if intent.bands:
            result.bands = [b.scaled(divisor) for b in intent.bands]
        if intent.depths:
            result.depths = [d.scaled(divisor) for d in intent.depths]
        defaults.door_width /= divisor
        defaults.window_width /= divisor
        if defaults.exterior_door_width is not None:
            defaults.exterior_door_width /= divisor
        if defaults.corridor_width is not None:
            defaults.corridor_width /= divisor
    else:
        result.rooms = list(intent.rooms)

    if defaults.exterior_door_width is None:
        defaults.exterior_door_width = defaults.door_width
    if defaults.corridor_width is None:
        defaults.corridor_width = 1.2

    weights = get_default_weights()
    weights.update(intent.weights or {})

    result.units = "m"
    result.defaults = defaults
    result.weights = weights
    return result


def get_effective_access_rules(intent: LayoutIntent) -> List[AccessRule]:
    """
    Resolve the access rules in force for an intent.

    Explicit rules replace preset rules with the same room type key.

    Args:
        intent: Layout intent

    Returns:
        List[AccessRule]: Effective rules (empty = everything allowed)

    Raises:
        IntentError: If the named preset does not exist
    """
    rules: Dict[str, AccessRule] = {}
    if intent.access_rule_preset:
        try:
            preset = get_access_rule_preset(intent.access_rule_preset)
        except KeyError:
            raise IntentError(f"Unknown access rule preset: {intent.access_rule_preset}")
        for data in preset:
            rule = AccessRule.from_dict(data)
            rules[rule.room_type] = rule
    for rule in intent.access_rules or []:
        rules[rule.room_type] = rule
    return list(rules.values())


def validate_intent(intent: LayoutIntent) -> List[str]:
    """
    Check an intent for problems that make solving impossible.

    Args:
        intent: Layout intent

    Returns:
        List[str]: Error messages (empty when the intent is usable)
    """
    errors = []

    if intent.footprint is None:
        errors.append("Missing footprint")
    elif intent.footprint.is_polygon and len(intent.footprint.points) < 3:
        errors.append("Polygon footprint needs at least 3 points")

    if not intent.rooms:
        errors.append("No rooms specified")

    seen = set()
    for room in intent.rooms:
        if room.id in seen:
            errors.append(f"Duplicate room ID: {room.id}")
        seen.add(room.id)
        if room.min_area is None or room.min_area <= 0:
            errors.append(f"Room {room.id} has invalid minArea")

    ids = {room.id for room in intent.rooms}
    for room in intent.rooms:
        for other in room.adjacent_to:
            if other not in ids:
                errors.append(
                    f"Room {room.id} references unknown room {other} in adjacentTo"
                )
        for other in room.needs_access_from:
            if other not in ids:
                errors.append(
                    f"Room {room.id} references unknown room {other} in needsAccessFrom"
                )

    return errors


def check_circulation_requirement(intent: LayoutIntent) -> Optional[str]:
    """
    Warn when private rooms need a hallway under a strict preset but none is declared.
    """
    has_private = any(room.category == "private" for room in intent.rooms)
    strict = intent.access_rule_preset in ("traditional", "privacy_focused")
    if has_private and strict and not intent.has_circulation():
        return (
            f"Access preset '{intent.access_rule_preset}' expects circulation, "
            "but no hall/corridor/foyer is declared; a corridor will be synthesized if possible"
        )
    return None


def validate_intent_warnings(intent: LayoutIntent) -> List[str]:
    """
    Collect non-blocking warnings about an intent.

    Args:
        intent: Layout intent (normalized)

    Returns:
        List[str]: Warning messages
    """
    warnings = []

    if intent.footprint is not None and intent.rooms:
        total = sum(room.min_area for room in intent.rooms)
        available = intent.footprint.area()
        if total > available:
            warnings.append(
                f"Total minimum room area ({total:.1f}) exceeds footprint area "
                f"({available:.1f})"
            )

    for room in intent.rooms:
        if room.target_area is not None and room.target_area < room.min_area:
            warnings.append(f"Room {room.id} has targetArea below minArea")
        if room.max_area is not None and room.max_area < room.min_area:
            warnings.append(f"Room {room.id} has maxArea below minArea")

    circulation_warning = check_circulation_requirement(intent)
    if circulation_warning:
        warnings.append(circulation_warning)

    return warnings
