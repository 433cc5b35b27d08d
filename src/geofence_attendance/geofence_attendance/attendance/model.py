from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.validators import require_float, require_latitude, require_longitude
from ..core.enums import PunchType
from ..core.exceptions import ValidationError
from ..geofences.model import Coordinate


@dataclass(frozen=True)
class LocationSample:
    """One fix from the positioning sensor. Never persisted on its own."""

    lat: float
    lng: float
    accuracy: float
    timestamp: datetime

    def __post_init__(self):
        if not 0 <= self.accuracy < float("inf"):
            raise ValidationError("Accuracy must be a finite number >= 0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, timestamp: datetime) -> "LocationSample":
        accuracy = data.get("accuracy")
        return cls(
            lat=require_latitude(data.get("lat")),
            lng=require_longitude(data.get("lng")),
            accuracy=require_float(accuracy, "accuracy") if accuracy not in (None, "") else 0.0,
            timestamp=timestamp,
        )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one time-in or time-out event. Immutable once stored."""

    record_id: int
    user_id: str
    user_name: str
    punch_type: PunchType
    timestamp: datetime
    location: Coordinate
    accuracy: float
    date: str
    shift_duration_ms: Optional[int] = None

    def to_dict(self) -> dict:
        out = {
            "id": self.record_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "type": self.punch_type.value,
            "timestamp": self.timestamp.isoformat(),
            "location": self.location.to_dict(),
            "accuracy": self.accuracy,
            "date": self.date,
        }
        if self.shift_duration_ms is not None:
            out["shiftDuration"] = self.shift_duration_ms
        return out


@dataclass(frozen=True)
class Shift:
    """Active-shift marker: the time-in that has not been closed yet."""

    shift_id: int
    user_id: str
    user_name: str
    timestamp: datetime
    location: Coordinate
    accuracy: float
    date: str

    punch_type = PunchType.TIME_IN

    @classmethod
    def from_record(cls, record: AttendanceRecord) -> "Shift":
        return cls(
            shift_id=record.record_id,
            user_id=record.user_id,
            user_name=record.user_name,
            timestamp=record.timestamp,
            location=record.location,
            accuracy=record.accuracy,
            date=record.date,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Shift":
        return cls(
            shift_id=int(data["id"]),
            user_id=str(data["userId"]),
            user_name=str(data.get("userName") or ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            location=Coordinate.from_dict(data["location"]),
            accuracy=float(data.get("accuracy") or 0.0),
            date=str(data["date"]),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.shift_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "type": self.punch_type.value,
            "timestamp": self.timestamp.isoformat(),
            "location": self.location.to_dict(),
            "accuracy": self.accuracy,
            "date": self.date,
        }
