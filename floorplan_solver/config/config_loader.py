"""
Configuration loader for the floor plan solver.
This module holds the default solver configuration (weights, opening
defaults, access rule presets, room categories) and provides a small API
for reading it, optionally overridden from a JSON file.
"""

import os
import json
import copy
import logging
from typing import Dict, List, Any, Optional

logger = logging.getLogger(__name__)

# Room type -> category membership
ROOM_CATEGORIES: Dict[str, List[str]] = {
    "circulation": ["hall", "corridor", "foyer", "stairwell"],
    "private": ["bedroom", "bath", "closet", "ensuite"],
    "public": ["living", "dining", "kitchen", "office"],
    "service": ["laundry", "garage", "storage", "utility"],
}

DEFAULT_WEIGHTS: Dict[str, float] = {
    "respectPreferredZones": 2.0,
    "adjacencySatisfaction": 3.0,
    "minimizeHallArea": 1.0,
    "maximizeExteriorGlazing": 1.0,
    "bathroomClustering": 1.0,
    "compactness": 1.0,
    "minimizeExteriorWallBreaks": 1.0,
    "aspectRatio": 1.0,
    "areaEfficiency": 1.0,
}

DEFAULT_OPENINGS: Dict[str, float] = {
    "doorWidth": 0.9,
    "windowWidth": 1.5,
    "corridorWidth": 1.2,
}

# Interior door target ranking for single-door rooms
DOOR_PRIORITIES: Dict[str, int] = {
    "corridor": 100,
    "hall": 100,
    "foyer": 90,
    "circulation": 80,
    "living": 40,
    "dining": 40,
    "kitchen": 30,
    "bedroom": 20,
    "default": 10,
}

# Ideal long/short side ratio per room type for the aspect score
IDEAL_ASPECTS: Dict[str, float] = {
    "bedroom": 1.3,
    "living": 1.3,
    "kitchen": 1.3,
    "bath": 1.5,
    "ensuite": 1.5,
    "hall": 3.0,
    "corridor": 3.0,
    "default": 1.2,
}

SOLVER_SETTINGS: Dict[str, Any] = {
    "max_candidates_per_room": 15,
    "repair_max_passes": 10,
    "gap_fill_max_passes": 5,
    "door_margin": 0.1,
    "grid_snap": 0.05,
    "geometry_epsilon": 0.001,
    "default_aspect_min": 0.5,
    "default_aspect_max": 2.0,
}

ACCESS_RULE_PRESETS: Dict[str, List[Dict[str, Any]]] = {
    "open_plan": [
        {"roomType": "bedroom", "accessibleFrom": ["circulation", "bedroom"]},
    ],
    "traditional": [
        {
            "roomType": "bedroom",
            "accessibleFrom": ["circulation"],
            "canLeadTo": ["ensuite", "closet", "bath"],
        },
        {"roomType": "bath", "accessibleFrom": ["circulation", "bedroom"]},
        {"roomType": "ensuite", "accessibleFrom": ["bedroom"]},
        {"roomType": "closet", "accessibleFrom": ["bedroom", "circulation"]},
        {
            "roomType": "living",
            "accessibleFrom": ["circulation", "dining", "kitchen", "foyer"],
        },
        {"roomType": "dining", "accessibleFrom": ["circulation", "living", "kitchen"]},
        {
            "roomType": "kitchen",
            "accessibleFrom": ["circulation", "dining", "living", "laundry", "garage"],
        },
        {"roomType": "office", "accessibleFrom": ["circulation", "living"]},
        {"roomType": "garage", "accessibleFrom": ["circulation", "kitchen", "laundry"]},
        {"roomType": "laundry", "accessibleFrom": ["circulation", "kitchen", "garage"]},
    ],
    "privacy_focused": [
        {
            "roomType": "bedroom",
            "accessibleFrom": ["circulation"],
            "canLeadTo": ["ensuite", "closet"],
        },
        {"roomType": "bath", "accessibleFrom": ["circulation"]},
        {"roomType": "ensuite", "accessibleFrom": ["bedroom"]},
        {"roomType": "closet", "accessibleFrom": ["bedroom"]},
        {"roomType": "living", "accessibleFrom": ["circulation"]},
        {"roomType": "dining", "accessibleFrom": ["circulation", "kitchen"]},
        {"roomType": "kitchen", "accessibleFrom": ["circulation", "dining"]},
        {"roomType": "office", "accessibleFrom": ["circulation"]},
    ],
}


def _load_json_file(filepath: str, default: Any = None) -> Any:
    """
    Load a JSON file, falling back to a default when it is missing.

    Args:
        filepath: Path to the JSON file
        default: Value returned if the file does not exist

    Returns:
        Loaded JSON data or default value
    """
    if not os.path.exists(filepath):
        return default
    with open(filepath, "r", encoding="utf-8") as f:
        return json.load(f)


def get_default_weights() -> Dict[str, float]:
    return dict(DEFAULT_WEIGHTS)


def get_default_opening_defaults() -> Dict[str, float]:
    return dict(DEFAULT_OPENINGS)


def get_door_priorities() -> Dict[str, int]:
    return dict(DOOR_PRIORITIES)


def get_ideal_aspects() -> Dict[str, float]:
    return dict(IDEAL_ASPECTS)


def get_solver_settings() -> Dict[str, Any]:
    return dict(SOLVER_SETTINGS)


def get_access_rule_preset(name: str) -> List[Dict[str, Any]]:
    """
    Get the access rules for a named preset.

    Args:
        name: Preset name ("open_plan", "traditional" or "privacy_focused")

    Returns:
        List of access rule dictionaries

    Raises:
        KeyError: If the preset does not exist
    """
    if name not in ACCESS_RULE_PRESETS:
        raise KeyError(f"Unknown access rule preset: {name}")
    return copy.deepcopy(ACCESS_RULE_PRESETS[name])


def load_solver_config(filepath: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the full solver configuration, merging an optional JSON override.

    The override file may contain any of the keys "weights", "openings",
    "door_priorities", "ideal_aspects" and "settings"; each is merged over
    the matching defaults.

    Args:
        filepath: Optional path to a JSON override file

    Returns:
        Dict with the merged configuration sections
    """
    config = {
        "weights": get_default_weights(),
        "openings": get_default_opening_defaults(),
        "door_priorities": get_door_priorities(),
        "ideal_aspects": get_ideal_aspects(),
        "settings": get_solver_settings(),
    }

    if filepath is None:
        return config

    overrides = _load_json_file(filepath, default={})
    if not overrides:
        logger.info(f"No solver config overrides found at {filepath}")
        return config

    for section, values in overrides.items():
        if section not in config:
            logger.warning(f"Ignoring unknown solver config section: {section}")
            continue
        config[section].update(values)

    logger.info(f"Loaded solver config overrides from {filepath}")
    return config
