from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest

from src.geofence_attendance.geofence_attendance.attendance.model import AttendanceRecord
from src.geofence_attendance.geofence_attendance.core.enums import PunchType, Role
from src.geofence_attendance.geofence_attendance.core.exceptions import StorageFailure
from src.geofence_attendance.geofence_attendance.geofences.model import Geofence
from src.geofence_attendance.geofence_attendance.users.model import SessionUser


class InMemoryGeofences:
    def __init__(self, geofences=()):
        self._items: dict[int, Geofence] = {}
        self._next_id = 1
        for g in geofences:
            self.add(g)

    def add(self, geofence: Geofence) -> Geofence:
        stored = replace(geofence, geofence_id=self._next_id)
        self._items[self._next_id] = stored
        self._next_id += 1
        return stored

    def list_all(self):
        return list(self._items.values())

    def list_by_owner(self, created_by: str):
        return [g for g in self._items.values() if g.created_by == created_by]

    def get_by_id(self, geofence_id: int) -> Optional[Geofence]:
        return self._items.get(int(geofence_id))

    def create(self, *, name, shape, created_by, created_at) -> int:
        stored = self.add(Geofence(geofence_id=None, name=name, shape=shape, created_by=created_by, created_at=created_at))
        return stored.geofence_id

    def update_shape(self, *, geofence_id, shape) -> bool:
        current = self._items.get(int(geofence_id))
        if not current:
            return False
        self._items[int(geofence_id)] = replace(current, shape=shape)
        return True

    def delete(self, *, geofence_id) -> bool:
        return self._items.pop(int(geofence_id), None) is not None


class InMemoryAttendance:
    def __init__(self):
        self.records: list[AttendanceRecord] = []
        self.fail_writes = False

    def append(self, *, user_id, user_name, punch_type, timestamp, location, accuracy, date, shift_duration_ms=None) -> int:
        if self.fail_writes:
            raise StorageFailure("database unavailable")
        record = AttendanceRecord(
            record_id=len(self.records) + 1,
            user_id=user_id,
            user_name=user_name,
            punch_type=punch_type,
            timestamp=timestamp,
            location=location,
            accuracy=accuracy,
            date=date,
            shift_duration_ms=shift_duration_ms,
        )
        self.records.append(record)
        return record.record_id

    def list_for_user(self, user_id, limit):
        items = [r for r in self.records if r.user_id == user_id]
        items.sort(key=lambda r: (r.timestamp, r.record_id), reverse=True)
        return items[:limit]

    def count_for_user_and_date(self, user_id, date) -> int:
        return sum(1 for r in self.records if r.user_id == user_id and r.date == date)

    def of_type(self, punch_type: PunchType):
        return [r for r in self.records if r.punch_type == punch_type]


class InMemoryKV:
    """Stores values as JSON text, like the kv_store table."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.fail_writes = False

    def get(self, key):
        raw = self.data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key, value) -> None:
        if self.fail_writes:
            raise StorageFailure("database unavailable")
        self.data[key] = json.dumps(value)

    def remove(self, key) -> None:
        if self.fail_writes:
            raise StorageFailure("database unavailable")
        self.data.pop(key, None)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def geofences_repo() -> InMemoryGeofences:
    return InMemoryGeofences()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def kv() -> InMemoryKV:
    return InMemoryKV()


@pytest.fixture
def supervisor() -> SessionUser:
    return SessionUser(user_id="sup-1", name="Maria Santos", role=Role.SUPERVISOR)


@pytest.fixture
def intern() -> SessionUser:
    return SessionUser(user_id="intern-1", name="Juan Dela Cruz", role=Role.INTERN)
