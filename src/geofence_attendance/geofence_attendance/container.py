from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LOCATION_MAX_AGE_SECONDS, DEFAULT_LOCATION_TIMEOUT_SECONDS
from .database.connection import DatabaseConnection, DBConfig
from .database.kv_store import KeyValueStore, MySQLKeyValueStore
from .geofences.mysql_geofence_repository import MySQLGeofenceRepository
from .geofences.repository import GeofenceRepository
from .geofences.service import GeofenceService
from .shifts.model import ShiftSchedule
from .tracking.sensor import ReportedLocationSensor
from .tracking.tracker import TrackerRegistry


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    geofences_repo: GeofenceRepository
    attendance_repo: AttendanceRepository
    markers: KeyValueStore

    geofence_service: GeofenceService
    attendance_service: AttendanceService
    trackers: TrackerRegistry
    shift_schedule: ShiftSchedule


def build_services(
    *,
    geofences_repo: GeofenceRepository,
    attendance_repo: AttendanceRepository,
    markers: KeyValueStore,
    shift_schedule: Optional[ShiftSchedule] = None,
    location_timeout: float = DEFAULT_LOCATION_TIMEOUT_SECONDS,
    location_max_age: float = DEFAULT_LOCATION_MAX_AGE_SECONDS,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    geofence_service = GeofenceService(geofences_repo)
    attendance_service = AttendanceService(attendance_repo, markers)
    trackers = TrackerRegistry(
        lambda: ReportedLocationSensor(max_age=location_max_age),
        geofence_service.list_all,
        request_timeout=location_timeout,
        max_age=location_max_age,
        idle_timeout=location_max_age,
    )

    return Container(
        conn=conn,
        geofences_repo=geofences_repo,
        attendance_repo=attendance_repo,
        markers=markers,
        geofence_service=geofence_service,
        attendance_service=attendance_service,
        trackers=trackers,
        shift_schedule=shift_schedule or ShiftSchedule.default(),
    )


def build_container(*, db_config: dict, settings: object = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    schedule_cfg = getattr(settings, "SHIFT_SCHEDULE", None)
    return build_services(
        geofences_repo=MySQLGeofenceRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        markers=MySQLKeyValueStore(conn),
        shift_schedule=ShiftSchedule.from_dict(schedule_cfg) if schedule_cfg else None,
        location_timeout=float(getattr(settings, "LOCATION_TIMEOUT_SECONDS", DEFAULT_LOCATION_TIMEOUT_SECONDS)),
        location_max_age=float(getattr(settings, "LOCATION_MAX_AGE_SECONDS", DEFAULT_LOCATION_MAX_AGE_SECONDS)),
        conn=conn,
    )
