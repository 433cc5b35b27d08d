from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import Geofence, Shape, UnknownShape, shape_from_dict
from .repository import GeofenceRepository

logger = logging.getLogger(__name__)

_COLUMNS = "geofence_id, name, geofence_type, geometry, created_by, created_at"


def _to_shape(r: Dict[str, Any]) -> Shape:
    geometry = load_json(r["geometry"]) or {}
    try:
        return shape_from_dict({**geometry, "type": r["geofence_type"]})
    except ValidationError as e:
        # Corrupt rows stay listable but never contain a point.
        logger.warning("Geofence %s has invalid geometry: %s", r["geofence_id"], e)
        return UnknownShape(kind=str(r["geofence_type"]), raw=geometry)


def _to_geofence(r: Dict[str, Any]) -> Geofence:
    return Geofence(
        geofence_id=int(r["geofence_id"]),
        name=r["name"],
        shape=_to_shape(r),
        created_by=str(r["created_by"]),
        created_at=r.get("created_at"),
    )


def _geometry_json(shape: Shape) -> str:
    payload = shape.to_dict()
    payload.pop("type", None)
    return json.dumps(payload)


class MySQLGeofenceRepository(GeofenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Geofence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM geofences ORDER BY geofence_id")
            return [_to_geofence(r) for r in fetchall(cur)]

    def list_by_owner(self, created_by: str) -> Sequence[Geofence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM geofences WHERE created_by=%s ORDER BY geofence_id",
                (created_by,),
            )
            return [_to_geofence(r) for r in fetchall(cur)]

    def get_by_id(self, geofence_id: int) -> Optional[Geofence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM geofences WHERE geofence_id=%s", (int(geofence_id),))
            r = fetchone(cur)
            return _to_geofence(r) if r else None

    def create(self, *, name: str, shape: Shape, created_by: str, created_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO geofences(name, geofence_type, geometry, created_by, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (name, shape.type, _geometry_json(shape), created_by, created_at),
            )
            return int(cur.lastrowid)

    def update_shape(self, *, geofence_id: int, shape: Shape) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE geofences SET geometry=%s WHERE geofence_id=%s",
                (_geometry_json(shape), int(geofence_id)),
            )
            return cur.rowcount > 0

    def delete(self, *, geofence_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM geofences WHERE geofence_id=%s", (int(geofence_id),))
            return cur.rowcount > 0
