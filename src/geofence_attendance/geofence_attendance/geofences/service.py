from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_GEOFENCE_BASE_NAME
from ..core.exceptions import AuthorizationError, ValidationError
from ..users.model import SessionUser
from .geometry import format_distance, haversine_distance, is_inside_any_geofence, membership_by_geofence
from .model import CircleShape, Coordinate, Geofence, UnknownShape, shape_from_dict
from .repository import GeofenceRepository

logger = logging.getLogger(__name__)


def generate_unique_name(geofences: Sequence[Geofence], base: str = DEFAULT_GEOFENCE_BASE_NAME) -> str:
    """Lowest free 'Geofence N'. A bare 'Geofence' occupies N=1."""

    pattern = re.compile(rf"^{re.escape(base)}\s+(\d+)$", re.IGNORECASE)
    used: set[int] = set()
    for g in geofences:
        name = (g.name or "").strip()
        m = pattern.match(name)
        if m:
            used.add(int(m.group(1)))
        elif name.lower() == base.lower():
            used.add(1)

    i = 1
    while i in used:
        i += 1
    return f"{base} {i}"


def display_names(geofences: Sequence[Geofence], base: str = DEFAULT_GEOFENCE_BASE_NAME) -> List[str]:
    """Display-only de-dup: 'Name', then 'Name (2)', 'Name (3)', ...

    Stored names are never changed; collisions are resolved case-insensitively
    in list order.
    """

    counts: Dict[str, int] = {}
    out: List[str] = []
    for index, g in enumerate(geofences):
        name = (g.name or "").strip() or f"{base} {index + 1}"
        key = name.lower()
        counts[key] = counts.get(key, 0) + 1
        n = counts[key]
        out.append(name if n == 1 else f"{name} ({n})")
    return out


@dataclass(frozen=True)
class PointCheck:
    inside_any: bool
    by_geofence: Dict[Optional[int], bool]
    distances: Dict[Optional[int], str]


class GeofenceService:
    """Use case: supervisors manage work areas; everyone reads them."""

    def __init__(self, geofences: GeofenceRepository, *, clock: Callable[[], datetime] = now_local):
        self._geofences = geofences
        self._clock = clock

    def list_all(self) -> Sequence[Geofence]:
        return self._geofences.list_all()

    def list_visible(self, user: SessionUser) -> Sequence[Geofence]:
        # Supervisors manage their own zones; interns are checked against all of them.
        if user.is_supervisor:
            return self._geofences.list_by_owner(user.user_id)
        return self._geofences.list_all()

    def create(self, user: SessionUser, payload: Mapping[str, Any]) -> Geofence:
        self._require_supervisor(user)

        shape = shape_from_dict(payload)
        if isinstance(shape, UnknownShape):
            raise ValidationError(f"Unsupported geofence type: {shape.kind or 'missing'}")

        name = str(payload.get("name") or "").strip()
        if not name:
            name = generate_unique_name(self._geofences.list_by_owner(user.user_id))

        created_at = self._clock()
        geofence_id = self._geofences.create(name=name, shape=shape, created_by=user.user_id, created_at=created_at)
        logger.info("Geofence %s (%s) created by %s", geofence_id, shape.type, user.user_id)

        return Geofence(
            geofence_id=geofence_id,
            name=name,
            shape=shape,
            created_by=user.user_id,
            created_at=created_at,
        )

    def update_geometry(self, user: SessionUser, geofence_id: int, payload: Mapping[str, Any]) -> Geofence:
        """Apply an edit from the drawing surface. Identity, name and owner are kept."""

        current = self._get_owned(user, geofence_id)

        # Edit deltas usually omit the type; the shape kind cannot change.
        shape = shape_from_dict({**payload, "type": payload.get("type") or current.type})
        if shape.type != current.type:
            raise ValidationError("Geofence type cannot be changed")
        if isinstance(shape, UnknownShape):
            raise ValidationError(f"Unsupported geofence type: {shape.kind or 'missing'}")

        if not self._geofences.update_shape(geofence_id=current.geofence_id, shape=shape):
            raise ValidationError("Geofence update failed")

        logger.info("Geofence %s geometry updated by %s", geofence_id, user.user_id)
        return replace(current, shape=shape)

    def delete(self, user: SessionUser, geofence_id: int) -> None:
        current = self._get_owned(user, geofence_id)
        if not self._geofences.delete(geofence_id=current.geofence_id):
            raise ValidationError("Geofence delete failed")
        logger.info("Geofence %s deleted by %s", geofence_id, user.user_id)

    def check_point(self, point: Coordinate, geofences: Optional[Sequence[Geofence]] = None) -> PointCheck:
        if geofences is None:
            geofences = self._geofences.list_all()

        distances = {
            g.geofence_id: format_distance(haversine_distance(point, g.shape.center))
            for g in geofences
            if isinstance(g.shape, CircleShape)
        }
        return PointCheck(
            inside_any=is_inside_any_geofence(point, geofences),
            by_geofence=membership_by_geofence(point, geofences),
            distances=distances,
        )

    def _require_supervisor(self, user: SessionUser) -> None:
        if not user.is_supervisor:
            raise AuthorizationError("Only supervisors can manage geofences")

    def _get_owned(self, user: SessionUser, geofence_id: int) -> Geofence:
        self._require_supervisor(user)

        geofence = self._geofences.get_by_id(int(geofence_id))
        if not geofence:
            raise ValidationError("Geofence not found")
        if geofence.created_by != user.user_id:
            raise AuthorizationError("You can only change geofences you created")
        return geofence
