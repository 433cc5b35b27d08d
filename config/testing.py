import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ojt_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

SHIFT_SCHEDULE = {
    "morning": {"start": "08:00", "end": "12:00"},
    "evening": {"start": "13:00", "end": "17:00"},
}

LOCATION_TIMEOUT_SECONDS = 1.0
LOCATION_MAX_AGE_SECONDS = 60.0
