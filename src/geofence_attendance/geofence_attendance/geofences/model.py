from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Mapping, Optional, Tuple, Union

from ..common.validators import require_float, require_latitude, require_longitude
from ..core.enums import GeofenceType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 point in decimal degrees (no altitude)."""

    lat: float
    lng: float

    @classmethod
    def from_dict(cls, data: Any) -> "Coordinate":
        if not isinstance(data, Mapping):
            raise ValidationError("Coordinate must be an object with lat/lng")
        return cls(lat=require_latitude(data.get("lat")), lng=require_longitude(data.get("lng")))

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


def _coordinates(data: Any) -> Tuple[Coordinate, ...]:
    if not isinstance(data, (list, tuple)):
        raise ValidationError("coordinates must be a list of points")
    return tuple(Coordinate.from_dict(p) for p in data)


@dataclass(frozen=True)
class CircleShape:
    center: Coordinate
    radius: float

    type: ClassVar[str] = GeofenceType.CIRCLE.value

    def __post_init__(self):
        if not 0 < self.radius < float("inf"):
            raise ValidationError("Circle radius must be a finite number greater than 0")

    def to_dict(self) -> dict:
        return {"type": self.type, "center": self.center.to_dict(), "radius": self.radius}


@dataclass(frozen=True)
class RectangleShape:
    """Four corners; corners 0 and 2 must be diagonal opposites.

    Membership uses the axis-aligned bounding box of those two corners, so a
    rotated rectangle behaves like its bounding box.
    """

    coordinates: Tuple[Coordinate, ...]

    type: ClassVar[str] = GeofenceType.RECTANGLE.value

    def __post_init__(self):
        if len(self.coordinates) != 4:
            raise ValidationError("Rectangle needs exactly 4 corners")

    def to_dict(self) -> dict:
        return {"type": self.type, "coordinates": [c.to_dict() for c in self.coordinates]}


@dataclass(frozen=True)
class PolygonShape:
    """Implicitly closed ring: the last vertex connects back to the first."""

    coordinates: Tuple[Coordinate, ...]

    type: ClassVar[str] = GeofenceType.POLYGON.value

    def __post_init__(self):
        if len(self.coordinates) < 3:
            raise ValidationError("Polygon needs at least 3 points")

    def to_dict(self) -> dict:
        return {"type": self.type, "coordinates": [c.to_dict() for c in self.coordinates]}


@dataclass(frozen=True)
class UnknownShape:
    """Stored geometry of a kind this version does not understand.

    Kept so the record round-trips through the store; it never contains a point.
    """

    kind: str
    raw: dict = field(default_factory=dict, compare=False)

    @property
    def type(self) -> str:
        return self.kind

    def to_dict(self) -> dict:
        return {**self.raw, "type": self.kind}


Shape = Union[CircleShape, RectangleShape, PolygonShape, UnknownShape]


@dataclass(frozen=True)
class Geofence:
    """Domain entity: a supervisor-defined work area."""

    geofence_id: Optional[int]
    name: str
    shape: Shape
    created_by: str
    created_at: Optional[datetime] = None

    @property
    def type(self) -> str:
        return self.shape.type


def shape_from_dict(data: Mapping[str, Any]) -> Shape:
    kind = str(data.get("type") or "").strip().lower()
    if kind == GeofenceType.CIRCLE.value:
        return CircleShape(center=Coordinate.from_dict(data.get("center")), radius=require_float(data.get("radius"), "radius"))
    if kind == GeofenceType.RECTANGLE.value:
        bounds = data.get("bounds")
        if isinstance(bounds, Mapping) and not data.get("coordinates"):
            return shape_from_bounds(
                north=require_latitude(bounds.get("north")),
                south=require_latitude(bounds.get("south")),
                east=require_longitude(bounds.get("east")),
                west=require_longitude(bounds.get("west")),
            )
        return RectangleShape(coordinates=_coordinates(data.get("coordinates")))
    if kind == GeofenceType.POLYGON.value:
        return PolygonShape(coordinates=_coordinates(data.get("coordinates")))

    geometry = {k: v for k, v in data.items() if k in {"center", "radius", "coordinates"}}
    return UnknownShape(kind=kind, raw=geometry)


def shape_from_bounds(*, north: float, south: float, east: float, west: float) -> RectangleShape:
    """Build rectangle corners the way the drawing surface reports bounds.

    Order is NW, NE, SE, SW so corners 0 and 2 are diagonal opposites.
    """

    return RectangleShape(
        coordinates=(
            Coordinate(lat=north, lng=west),
            Coordinate(lat=north, lng=east),
            Coordinate(lat=south, lng=east),
            Coordinate(lat=south, lng=west),
        )
    )


def _parse_created_at(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid createdAt: {value!r}") from None


def geofence_from_dict(data: Mapping[str, Any], *, geofence_id: Optional[int] = None) -> Geofence:
    """Parse the store/drawing-surface payload into a Geofence."""

    if geofence_id is None and data.get("id") is not None:
        geofence_id = int(data["id"])

    return Geofence(
        geofence_id=geofence_id,
        name=str(data.get("name") or "").strip(),
        shape=shape_from_dict(data),
        created_by=str(data.get("createdBy") or ""),
        created_at=_parse_created_at(data.get("createdAt")),
    )


def geofence_to_dict(geofence: Geofence) -> dict:
    out = {
        "id": geofence.geofence_id,
        "name": geofence.name,
        "createdBy": geofence.created_by,
        "createdAt": geofence.created_at.isoformat() if geofence.created_at else None,
    }
    out.update(geofence.shape.to_dict())
    return out


def describe(geofence: Geofence) -> str:
    shape = geofence.shape
    if isinstance(shape, CircleShape):
        return f"Circle - Radius: {shape.radius:g}m"
    if isinstance(shape, RectangleShape):
        return "Rectangle"
    if isinstance(shape, PolygonShape):
        return f"Polygon - {len(shape.coordinates)} points"
    return f"Unsupported ({shape.kind or 'no type'})"
