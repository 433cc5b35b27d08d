"""Drive the service layer directly, without Flask.

Prints geofence membership for one point and the latest attendance rows of
one user.
"""

import importlib
import sys

from config import get_settings_module

from src.geofence_attendance.geofence_attendance.container import build_container
from src.geofence_attendance.geofence_attendance.geofences.model import Coordinate


def main():
    user_id = sys.argv[1] if len(sys.argv) > 1 else "demo-intern"
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    check = container.geofence_service.check_point(Coordinate(lat=14.5995, lng=120.9842))
    print("inside any geofence:", check.inside_any)
    for geofence_id, inside in check.by_geofence.items():
        print(f"  #{geofence_id}: inside={inside} distance={check.distances.get(geofence_id, '-')}")

    for row in container.attendance_service.get_history_ui(user_id, limit=5):
        print(row)


if __name__ == "__main__":
    main()
