from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import PunchType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..geofences.model import Coordinate
from .model import AttendanceRecord
from .repository import AttendanceRepository


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    duration = r.get("shift_duration_ms")
    return AttendanceRecord(
        record_id=int(r["attendance_id"]),
        user_id=str(r["user_id"]),
        user_name=r["user_name"],
        punch_type=PunchType(r["punch_type"]),
        timestamp=r["punched_at"],
        location=Coordinate(lat=float(r["lat"]), lng=float(r["lng"])),
        accuracy=float(r.get("accuracy") or 0.0),
        date=r["work_date"],
        shift_duration_ms=int(duration) if duration is not None else None,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    user_id, user_name, punch_type, punched_at, lat, lng, accuracy, work_date, shift_duration_ms
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    user_id,
                    user_name,
                    punch_type.value,
                    timestamp,
                    location.lat,
                    location.lng,
                    accuracy,
                    date,
                    shift_duration_ms,
                ),
            )
            return int(cur.lastrowid)

    def list_for_user(self, user_id: str, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, user_id, user_name, punch_type, punched_at,
                       lat, lng, accuracy, work_date, shift_duration_ms
                FROM attendance_records
                WHERE user_id=%s
                ORDER BY punched_at DESC, attendance_id DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_for_user_and_date(self, user_id: str, date: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (user_id, date),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0
