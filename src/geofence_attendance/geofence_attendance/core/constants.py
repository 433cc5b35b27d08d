"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_M = 6_371_000

DEFAULT_HISTORY_LIMIT = 10
DEFAULT_GEOFENCE_BASE_NAME = "Geofence"

# Positioning sensor bounds (seconds)
DEFAULT_LOCATION_TIMEOUT_SECONDS = 10.0
DEFAULT_LOCATION_MAX_AGE_SECONDS = 60.0

DEFAULT_SHIFT_SCHEDULE = {
    "morning": {"start": "08:00", "end": "12:00"},
    "evening": {"start": "13:00", "end": "17:00"},
}

CURRENT_SHIFT_KEY_PREFIX = "current_shift"
