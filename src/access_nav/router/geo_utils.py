# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects; only models are imported from this project.

import math
from typing import Optional, Sequence

import numpy as np

from .models import GeoPoint, NearestPoint


EARTH_RADIUS_M = 6_371_000.0

DIRECTION_NAMES = (
    "north", "northeast", "east", "southeast",
    "south", "southwest", "west", "northwest",
)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Distance in metres.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_many(lat: float, lon: float, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Vectorised haversine_distance from one point to arrays of points, in metres."""
    rlat = np.radians(lat)
    rlats = np.radians(lats)
    d_lat = rlats - rlat
    d_lon = np.radians(lons - lon)
    a = np.sin(d_lat / 2) ** 2 + np.cos(rlat) * np.cos(rlats) * np.sin(d_lon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Forward azimuth (bearing) from point 1 to point 2 in degrees [0, 360).

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Bearing in degrees.
    """
    rlat1, rlon1 = math.radians(lat1), math.radians(lon1)
    rlat2, rlon2 = math.radians(lat2), math.radians(lon2)
    d_lon = rlon2 - rlon1
    y = math.sin(d_lon) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(d_lon)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def distance(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance between two GeoPoints in metres."""
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def bearing(a: GeoPoint, b: GeoPoint) -> float:
    """Initial great-circle bearing from a to b in degrees [0, 360)."""
    return calculate_bearing(a.latitude, a.longitude, b.latitude, b.longitude)


def nearest_point(ref: GeoPoint, points: Sequence[GeoPoint]) -> Optional[NearestPoint]:
    """
    Linear scan for the point closest to ref.

    Ties go to the first occurrence.

    Returns:
        NearestPoint, or None when points is empty.
    """
    best: Optional[NearestPoint] = None
    for i, point in enumerate(points):
        d = distance(ref, point)
        if best is None or d < best.distance:
            best = NearestPoint(point=point, distance=d, index=i)
    return best


def get_direction_name(bearing_deg: float) -> str:
    """8-point compass name ("north", "southeast", ...) for a bearing."""
    normalized = bearing_deg % 360
    return DIRECTION_NAMES[int(math.floor(normalized / 45 + 0.5)) % 8]


def get_turn_instruction(bearing_diff: float) -> str:
    """
    Human-readable turn instruction derived from the change in bearing.

    Args:
        bearing_diff: Difference between consecutive bearings in degrees.

    Returns:
        Turn instruction string.
    """
    diff = (bearing_diff + 180) % 360 - 180
    if diff > 45:
        return "Turn sharp right"
    elif diff > 10:
        return "Turn right"
    elif diff < -45:
        return "Turn sharp left"
    elif diff < -10:
        return "Turn left"
    return "Go straight"


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{int(round(meters))} meters"
    return f"{meters / 1000:.1f} km"


def estimate_travel_time(meters: float, speed_mps: float) -> float:
    """Seconds needed to cover meters at speed_mps."""
    return meters / speed_mps


def format_travel_time(seconds: float) -> str:
    if seconds < 60:
        return f"{int(round(seconds))} seconds"
    if seconds < 3600:
        return f"{int(round(seconds / 60))} minutes"
    hours = int(seconds // 3600)
    minutes = int(round((seconds % 3600) / 60))
    return (
        f"{hours} hour{'s' if hours > 1 else ''} "
        f"{minutes} minute{'s' if minutes != 1 else ''}"
    )
