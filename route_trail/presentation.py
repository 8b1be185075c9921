"""
Read-only views of a RouteSnapshot for whatever draws the map.

Nothing here mutates the tracker; every function takes a snapshot and
returns plain data (GeoJSON dicts, floats).
"""

from typing import Dict, Optional

import numpy as np

from route_trail.tracker import RouteSnapshot

EARTH_RADIUS_M = 6371000.0


def route_array(snapshot: RouteSnapshot) -> np.ndarray:
    """Return the trail as an (N, 2) float array of (lat, lon)."""
    if not snapshot.coordinates:
        return np.empty((0, 2), dtype=np.float64)
    return np.array([c.as_tuple() for c in snapshot.coordinates], dtype=np.float64)


def to_geojson(snapshot: RouteSnapshot) -> Dict:
    """FeatureCollection: the trail as a LineString plus one Point per marker.

    GeoJSON positions are (lon, lat).  The LineString is omitted until the
    route has two points.
    """
    features = []
    if len(snapshot.coordinates) >= 2:
        features.append({
            "type": "Feature",
            "geometry": {
                "type": "LineString",
                "coordinates": [[c.longitude, c.latitude] for c in snapshot.coordinates],
            },
            "properties": {"kind": "route", "state": snapshot.state.value},
        })
    for i, marker in enumerate(snapshot.markers):
        features.append({
            "type": "Feature",
            "geometry": {
                "type": "Point",
                "coordinates": [marker.coordinate.longitude, marker.coordinate.latitude],
            },
            "properties": {
                "kind": "marker",
                "index": i,
                "role": marker.role.value,
                "label": marker.label,
            },
        })
    return {"type": "FeatureCollection", "features": features}


def bounds(snapshot: RouteSnapshot) -> Optional[Dict[str, float]]:
    """Bounding box of the trail, for framing the map camera."""
    arr = route_array(snapshot)
    if arr.shape[0] == 0:
        return None
    mins = arr.min(axis=0)
    maxs = arr.max(axis=0)
    return {
        "min_lat": float(mins[0]),
        "min_lon": float(mins[1]),
        "max_lat": float(maxs[0]),
        "max_lon": float(maxs[1]),
    }


def track_length_m(snapshot: RouteSnapshot) -> float:
    """Haversine length of the trail in metres."""
    arr = route_array(snapshot)
    if arr.shape[0] < 2:
        return 0.0
    lat = np.radians(arr[:, 0])
    lon = np.radians(arr[:, 1])
    dphi = np.diff(lat)
    dlmb = np.diff(lon)
    s = np.sin(dphi / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlmb / 2) ** 2
    seg = 2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(s, 0.0, 1.0)))
    return float(seg.sum())
