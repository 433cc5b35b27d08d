from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Geofence, Shape


class GeofenceRepository(Protocol):
    """Repository interface for geofences.

    Note: the store assigns `geofence_id`; services depend on this interface, not a concrete DB.
    """

    def list_all(self) -> Sequence[Geofence]:
        raise NotImplementedError

    def list_by_owner(self, created_by: str) -> Sequence[Geofence]:
        raise NotImplementedError

    def get_by_id(self, geofence_id: int) -> Optional[Geofence]:
        raise NotImplementedError

    def create(self, *, name: str, shape: Shape, created_by: str, created_at: datetime) -> int:
        raise NotImplementedError

    def update_shape(self, *, geofence_id: int, shape: Shape) -> bool:
        raise NotImplementedError

    def delete(self, *, geofence_id: int) -> bool:
        raise NotImplementedError
