"""Shared fixtures for the floor plan solver tests."""

import matplotlib

matplotlib.use("Agg")

import pytest

from floorplan_solver.core.frame import build_layout_frame
from floorplan_solver.models.intent import (
    Footprint,
    IntentDefaults,
    LayoutIntent,
    RoomSpec,
    normalize_intent,
)
from floorplan_solver.models.plan_state import PlacedRoom, PlanState


def _make_room(id, room_type="bedroom", min_area=10.0, **kwargs):
    return RoomSpec(id, room_type, min_area, **kwargs)


def _make_intent(rooms, width=16.0, height=12.0, normalize=True, **kwargs):
    kwargs.setdefault("defaults", IntentDefaults(door_width=0.9, window_width=1.5))
    intent = LayoutIntent(
        Footprint("rect", min_point=(0, 0), max_point=(width, height)), rooms, **kwargs
    )
    return normalize_intent(intent) if normalize else intent


def _make_placed(id, rect, room_type="bedroom", **kwargs):
    return PlacedRoom(id, rect, room_type, **kwargs)


def _make_state(intent, rooms):
    state = PlanState(intent.footprint)
    for room in rooms:
        state.add_room(room)
    return state


@pytest.fixture
def make_room():
    """Factory for room specs: make_room(id, type, min_area, **kwargs)."""
    return _make_room


@pytest.fixture
def make_intent():
    """Factory for rect-footprint intents, normalized by default."""
    return _make_intent


@pytest.fixture
def make_placed():
    """Factory for placed rooms: make_placed(id, rect, type, **kwargs)."""
    return _make_placed


@pytest.fixture
def make_state():
    """Factory for plan states holding the given placed rooms."""
    return _make_state


@pytest.fixture
def suite_intent():
    """
    Hall along the south wall with a master bedroom, its ensuite, a shared
    bath and an office behind it (12 x 8).
    """
    rooms = [
        _make_room("hall", "hall", 10, is_circulation=True, has_exterior_door=True),
        _make_room("master", "bedroom", 30, adjacent_to=["hall"]),
        _make_room("ens", "bath", 6, adjacent_to=["master"], is_ensuite=True),
        _make_room("bath2", "bath", 6, adjacent_to=["hall"], is_ensuite=False),
        _make_room("office", "office", 12),
    ]
    return _make_intent(rooms, width=12, height=8)


@pytest.fixture
def suite_state(suite_intent):
    """Hand-placed layout for suite_intent."""
    return _make_state(
        suite_intent,
        [
            _make_placed("hall", (0, 0, 12, 2), "hall"),
            _make_placed("master", (0, 2, 6, 8), "bedroom"),
            _make_placed("ens", (6, 2, 9, 5), "bath"),
            _make_placed("bath2", (9, 2, 12, 5), "bath"),
            _make_placed("office", (6, 5, 12, 8), "office"),
        ],
    )


@pytest.fixture
def suite_frame(suite_intent):
    return build_layout_frame(suite_intent)
