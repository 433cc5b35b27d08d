from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    SUPERVISOR = "supervisor"
    INTERN = "intern"


class GeofenceType(str, Enum):
    """Shape kinds stored in the `type` field of a geofence."""

    CIRCLE = "circle"
    RECTANGLE = "rectangle"
    POLYGON = "polygon"


class PunchType(str, Enum):
    TIME_IN = "time-in"
    TIME_OUT = "time-out"


class AttendanceState(str, Enum):
    CLOCKED_OUT = "CLOCKED_OUT"
    CLOCKED_IN = "CLOCKED_IN"


class ShiftPeriod(str, Enum):
    MORNING = "Morning Shift"
    EVENING = "Evening Shift"
    OUTSIDE = "Outside Shift Hours"


class LocationErrorCode(str, Enum):
    """Failure kinds reported by a positioning sensor."""

    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"
