"""Geodesic helpers and route encoding."""

import math
from typing import List, Sequence, Tuple

import polyline

from .models import RoutePoint


EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two coordinates in meters.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def distance_between(a, b) -> float:
    """Distance in meters between two objects with latitude/longitude."""
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def offset_coordinate(
    latitude: float, longitude: float, north_m: float, east_m: float
) -> Tuple[float, float]:
    """Move a coordinate by a number of meters north and east."""
    d_lat = north_m / EARTH_RADIUS_M
    d_lon = east_m / (EARTH_RADIUS_M * math.cos(math.radians(latitude)))
    return latitude + math.degrees(d_lat), longitude + math.degrees(d_lon)


def encode_route(route: Sequence[RoutePoint]) -> str:
    """Encode a route as a Google polyline string."""
    return polyline.encode([p.coordinate for p in route])


def decode_route(encoded: str) -> List[RoutePoint]:
    """Decode a polyline string into route points without timestamps."""
    if not encoded:
        return []
    return [RoutePoint(lat, lon) for lat, lon in polyline.decode(encoded)]
