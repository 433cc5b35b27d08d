from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PunchType
from ..geofences.model import Coordinate
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Append-only attendance history."""

    def append(
        self,
        *,
        user_id: str,
        user_name: str,
        punch_type: PunchType,
        timestamp: datetime,
        location: Coordinate,
        accuracy: float,
        date: str,
        shift_duration_ms: Optional[int] = None,
    ) -> int:
        """Durably store one record and return its id.

        Raises StorageFailure when the write does not happen.
        """

        raise NotImplementedError

    def list_for_user(self, user_id: str, limit: int) -> Sequence[AttendanceRecord]:
        """Newest first."""

        raise NotImplementedError

    def count_for_user_and_date(self, user_id: str, date: str) -> int:
        raise NotImplementedError
