import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ojt_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Informational shift windows, HH:MM inclusive.
SHIFT_SCHEDULE = {
    "morning": {"start": os.getenv("MORNING_SHIFT_START", "08:00"), "end": os.getenv("MORNING_SHIFT_END", "12:00")},
    "evening": {"start": os.getenv("EVENING_SHIFT_START", "13:00"), "end": os.getenv("EVENING_SHIFT_END", "17:00")},
}

LOCATION_TIMEOUT_SECONDS = float(os.getenv("LOCATION_TIMEOUT_SECONDS", "10"))
LOCATION_MAX_AGE_SECONDS = float(os.getenv("LOCATION_MAX_AGE_SECONDS", "60"))
