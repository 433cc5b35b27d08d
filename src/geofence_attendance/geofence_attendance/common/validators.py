from __future__ import annotations

import math
from typing import Any

from ..core.exceptions import ValidationError


def require_float(value: Any, field_name: str) -> float:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}") from None
    if not math.isfinite(number):
        raise ValidationError(f"Invalid {field_name}")
    return number


def require_latitude(value: Any) -> float:
    lat = require_float(value, "latitude")
    if not (-90 <= lat <= 90):
        raise ValidationError("Latitude must be between -90 and 90")
    return lat


def require_longitude(value: Any) -> float:
    lng = require_float(value, "longitude")
    if not (-180 <= lng <= 180):
        raise ValidationError("Longitude must be between -180 and 180")
    return lng
