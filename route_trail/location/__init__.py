"""
Pluggable location sources for the sampling thread.

Usage:
    from route_trail.location import ManualProvider

    provider = ManualProvider()
    provider.push_fix(37.5, 127.0)
    sample = provider.get_fix()
"""

import json
from typing import List, Tuple

from .providers import (
    LocationProvider,
    ManualProvider,
    ReplayProvider,
    PermissionUnavailable,
)


def load_replay_coords(path: str) -> List[Tuple[float, float]]:
    """Read a JSON list of ``[lat, lon]`` pairs for ReplayProvider."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of [lat, lon] pairs")
    coords = []
    for i, item in enumerate(data):
        if not isinstance(item, (list, tuple)) or len(item) < 2:
            raise ValueError(f"{path}: entry {i} is not a [lat, lon] pair")
        coords.append((float(item[0]), float(item[1])))
    return coords


__all__ = [
    "LocationProvider",
    "ManualProvider",
    "ReplayProvider",
    "PermissionUnavailable",
    "load_replay_coords",
]
