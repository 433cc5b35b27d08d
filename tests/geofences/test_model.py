from __future__ import annotations

from datetime import datetime

import pytest

from src.geofence_attendance.geofence_attendance.core.exceptions import ValidationError
from src.geofence_attendance.geofence_attendance.geofences.model import (
    CircleShape,
    Coordinate,
    PolygonShape,
    RectangleShape,
    UnknownShape,
    describe,
    geofence_from_dict,
    geofence_to_dict,
    shape_from_dict,
)


def test_circle_payload_parses_and_serializes_back():
    payload = {
        "id": 7,
        "name": "Main Office",
        "type": "circle",
        "center": {"lat": 14.5995, "lng": 120.9842},
        "radius": 50,
        "createdBy": "sup-1",
        "createdAt": "2026-03-01T08:30:00",
    }

    g = geofence_from_dict(payload)

    assert g.geofence_id == 7
    assert g.type == "circle"
    assert g.shape == CircleShape(center=Coordinate(lat=14.5995, lng=120.9842), radius=50.0)
    assert g.created_at == datetime(2026, 3, 1, 8, 30)
    assert geofence_to_dict(g) == {**payload, "radius": 50.0}


def test_rectangle_from_bounds_orders_corners_nw_ne_se_sw():
    shape = shape_from_dict({"type": "rectangle", "bounds": {"north": 20, "south": 10, "east": 110, "west": 100}})

    assert isinstance(shape, RectangleShape)
    assert [(c.lat, c.lng) for c in shape.coordinates] == [(20, 100), (20, 110), (10, 110), (10, 100)]


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "circle", "center": {"lat": 1, "lng": 1}, "radius": 0},
        {"type": "circle", "center": {"lat": 1, "lng": 1}, "radius": "inf"},
        {"type": "circle", "center": {"lat": 1, "lng": 1}, "radius": "nan"},
        {"type": "circle", "center": {"lat": "nan", "lng": 1}, "radius": 10},
        {"type": "circle", "center": {"lat": 91, "lng": 1}, "radius": 10},
        {"type": "circle", "radius": 10},
        {"type": "rectangle", "coordinates": [{"lat": 0, "lng": 0}, {"lat": 1, "lng": 1}]},
        {"type": "polygon", "coordinates": [{"lat": 0, "lng": 0}, {"lat": 1, "lng": 1}]},
        {"type": "polygon", "coordinates": "not-a-list"},
    ],
)
def test_invalid_shapes_are_rejected(payload):
    with pytest.raises(ValidationError):
        shape_from_dict(payload)


def test_unknown_type_is_kept_as_unknown_shape():
    shape = shape_from_dict({"type": "Hexagon", "coordinates": [{"lat": 0, "lng": 0}]})

    assert isinstance(shape, UnknownShape)
    assert shape.type == "hexagon"
    assert shape.to_dict() == {"type": "hexagon", "coordinates": [{"lat": 0, "lng": 0}]}


def test_describe():
    poly = geofence_from_dict(
        {"type": "polygon", "coordinates": [{"lat": 0, "lng": 0}, {"lat": 0, "lng": 1}, {"lat": 1, "lng": 1}]}
    )
    circle = geofence_from_dict({"type": "circle", "center": {"lat": 0, "lng": 0}, "radius": 75.5})

    assert describe(poly) == "Polygon - 3 points"
    assert describe(circle) == "Circle - Radius: 75.5m"
    assert isinstance(poly.shape, PolygonShape)
