"""Point-in-geofence predicates.

Points are anything with `lat` and `lng` attributes in decimal degrees
(Coordinate, LocationSample). All functions are pure.
"""

from __future__ import annotations

from math import atan2, cos, isclose, radians, sin, sqrt
from typing import Dict, Iterable, Optional, Sequence

from ..core.constants import EARTH_RADIUS_M
from .model import CircleShape, Coordinate, Geofence, PolygonShape, RectangleShape

# Collinearity tolerance for the on-edge test, in square degrees.
EDGE_TOLERANCE = 1e-12


def haversine_distance(p1, p2) -> float:
    """Great-circle distance in metres."""

    φ1, φ2 = radians(p1.lat), radians(p2.lat)
    Δφ = radians(p2.lat - p1.lat)
    Δλ = radians(p2.lng - p1.lng)

    a = sin(Δφ / 2) ** 2 + cos(φ1) * cos(φ2) * sin(Δλ / 2) ** 2
    # Rounding can push antipodal points just past 1.
    a = min(1.0, a)
    return 2 * EARTH_RADIUS_M * atan2(sqrt(a), sqrt(1 - a))


def point_in_circle(point, center, radius: float) -> bool:
    return haversine_distance(point, center) <= radius


def point_in_bounding_rectangle(point, corners: Sequence[Coordinate]) -> bool:
    # corners[0] and corners[2] are diagonal opposites; 1 and 3 are ignored.
    a, c = corners[0], corners[2]
    lat_min, lat_max = min(a.lat, c.lat), max(a.lat, c.lat)
    lng_min, lng_max = min(a.lng, c.lng), max(a.lng, c.lng)

    return lat_min <= point.lat <= lat_max and lng_min <= point.lng <= lng_max


def _on_segment(point, a, b) -> bool:
    cross = (b.lng - a.lng) * (point.lat - a.lat) - (b.lat - a.lat) * (point.lng - a.lng)
    if not isclose(cross, 0.0, abs_tol=EDGE_TOLERANCE):
        return False
    return (
        min(a.lat, b.lat) <= point.lat <= max(a.lat, b.lat)
        and min(a.lng, b.lng) <= point.lng <= max(a.lng, b.lng)
    )


def point_on_polygon_boundary(point, vertices: Sequence[Coordinate]) -> bool:
    # vertices[-1] closes the ring for i == 0
    return any(_on_segment(point, vertices[i - 1], vertices[i]) for i in range(len(vertices)))


def point_in_polygon(point, vertices: Sequence[Coordinate]) -> bool:
    """Even-odd ray casting over an implicitly closed ring.

    Points on an edge or a vertex count as inside, matching the inclusive
    circle and rectangle checks.
    """

    if len(vertices) < 3:
        return False
    if point_on_polygon_boundary(point, vertices):
        return True

    inside = False
    j = len(vertices) - 1
    for i, vi in enumerate(vertices):
        vj = vertices[j]
        if (vi.lat > point.lat) != (vj.lat > point.lat) and point.lng < (vj.lng - vi.lng) * (point.lat - vi.lat) / (
            vj.lat - vi.lat
        ) + vi.lng:
            inside = not inside
        j = i
    return inside


def is_inside_geofence(point, geofence: Geofence) -> bool:
    shape = geofence.shape
    if isinstance(shape, CircleShape):
        return point_in_circle(point, shape.center, shape.radius)
    if isinstance(shape, RectangleShape):
        return point_in_bounding_rectangle(point, shape.coordinates)
    if isinstance(shape, PolygonShape):
        return point_in_polygon(point, shape.coordinates)
    # Unknown geometry never grants membership.
    return False


def is_inside_any_geofence(point, geofences: Iterable[Geofence]) -> bool:
    return any(is_inside_geofence(point, g) for g in geofences)


def membership_by_geofence(point, geofences: Iterable[Geofence]) -> Dict[Optional[int], bool]:
    """Per-geofence membership, e.g. for highlighting zones on the map."""

    return {g.geofence_id: is_inside_geofence(point, g) for g in geofences}


def format_distance(distance_m: float) -> str:
    if distance_m >= 1000:
        return f"{distance_m / 1000:.1f} km"
    return f"{int(distance_m)} m"
