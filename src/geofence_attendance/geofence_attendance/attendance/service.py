from __future__ import annotations

import logging
import threading
from datetime import date, datetime
from typing import Callable, Dict, Optional, Sequence

from ..common.datetime_utils import calendar_day, duration_ms, format_duration, now_local
from ..core.constants import CURRENT_SHIFT_KEY_PREFIX, DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceState, PunchType
from ..core.exceptions import InvalidTransition, LocationUnavailable, OutsideGeofence, StorageFailure, ValidationError
from ..database.kv_store import KeyValueStore
from ..geofences.geometry import is_inside_any_geofence
from ..geofences.model import Geofence
from ..users.model import SessionUser
from .model import AttendanceRecord, LocationSample, Shift
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def current_shift_key(user_id: str) -> str:
    return f"{CURRENT_SHIFT_KEY_PREFIX}:{user_id}"


def is_in_work_area(location: LocationSample, geofences: Sequence[Geofence]) -> bool:
    """No configured geofences means attendance is not location-restricted."""

    return not geofences or is_inside_any_geofence(location, geofences)


class AttendanceService:
    """Per-user time clock: CLOCKED_OUT <-> CLOCKED_IN.

    Every transition receives the location captured at the moment of the action
    and the geofence set to check it against. A transition is serialized per
    user: guards, durable append and marker write happen under one lock, and
    the marker is only touched after the append succeeded.
    """

    def __init__(
        self,
        records: AttendanceRepository,
        markers: KeyValueStore,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._markers = markers
        self._clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def restore_shift(self, user_id: str, *, today: Optional[date] = None) -> Optional[Shift]:
        """Load the active shift marker; a marker from another day is discarded."""

        key = current_shift_key(user_id)
        data = self._markers.get(key)
        if not data:
            return None

        try:
            shift = Shift.from_dict(data)
        except (KeyError, TypeError, ValueError, ValidationError):
            logger.warning("Discarding unreadable shift marker for user %s", user_id)
            self._markers.remove(key)
            return None

        if shift.date != calendar_day(today or self._clock()):
            logger.info("Discarding stale shift marker for user %s dated %s", user_id, shift.date)
            self._markers.remove(key)
            return None
        return shift

    def get_state(self, user_id: str, *, now: Optional[datetime] = None) -> AttendanceState:
        now = now or self._clock()
        if self.restore_shift(user_id, today=now.date()):
            return AttendanceState.CLOCKED_IN
        return AttendanceState.CLOCKED_OUT

    def time_in(
        self,
        user: SessionUser,
        location: Optional[LocationSample],
        geofences: Sequence[Geofence],
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or self._clock()

        with self._lock_for(user.user_id):
            self._check_location(user, location, geofences)
            if self.restore_shift(user.user_id, today=now.date()):
                logger.info("Time-in rejected for %s: already clocked in", user.user_id)
                raise InvalidTransition("You are already clocked in.")

            record = self._append(user, PunchType.TIME_IN, location, now)
            try:
                self._markers.set(current_shift_key(user.user_id), Shift.from_record(record).to_dict())
            except StorageFailure:
                # The record is already durable; only the marker write failed.
                logger.exception("Failed to save shift marker for user %s", user.user_id)
                raise

        logger.info("User %s clocked in (record %s)", user.user_id, record.record_id)
        return record

    def time_out(
        self,
        user: SessionUser,
        location: Optional[LocationSample],
        geofences: Sequence[Geofence],
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or self._clock()

        with self._lock_for(user.user_id):
            self._check_location(user, location, geofences)
            shift = self.restore_shift(user.user_id, today=now.date())
            if not shift:
                logger.info("Time-out rejected for %s: not clocked in", user.user_id)
                raise InvalidTransition("You are not currently clocked in.")

            record = self._append(
                user,
                PunchType.TIME_OUT,
                location,
                now,
                shift_duration_ms=duration_ms(shift.timestamp, now),
            )
            try:
                self._markers.remove(current_shift_key(user.user_id))
            except StorageFailure:
                logger.exception("Failed to clear shift marker for user %s", user.user_id)
                raise

        logger.info(
            "User %s clocked out (record %s, %s)",
            user.user_id,
            record.record_id,
            format_duration(record.shift_duration_ms or 0),
        )
        return record

    def elapsed_ms(self, user_id: str, *, now: Optional[datetime] = None) -> Optional[int]:
        """Running duration of the active shift, None when clocked out."""

        now = now or self._clock()
        shift = self.restore_shift(user_id, today=now.date())
        if not shift:
            return None
        return duration_ms(shift.timestamp, now)

    def get_history(self, user_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._records.list_for_user(user_id, limit)

    def get_history_ui(self, user_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT):
        return [self._to_ui(r) for r in self.get_history(user_id, limit=limit)]

    def count_today(self, user_id: str, *, now: Optional[datetime] = None) -> int:
        return self._records.count_for_user_and_date(user_id, calendar_day(now or self._clock()))

    def _check_location(self, user: SessionUser, location: Optional[LocationSample], geofences: Sequence[Geofence]) -> None:
        if location is None:
            logger.info("Attendance rejected for %s: no location fix", user.user_id)
            raise LocationUnavailable("Location not available. Please enable GPS and try again.")
        if not is_in_work_area(location, geofences):
            logger.info("Attendance rejected for %s: outside work area", user.user_id)
            raise OutsideGeofence("You are not within the designated work area. Please move to the correct location.")

    def _append(
        self,
        user: SessionUser,
        punch_type: PunchType,
        location: LocationSample,
        now: datetime,
        *,
        shift_duration_ms: Optional[int] = None,
    ) -> AttendanceRecord:
        day = calendar_day(now)
        try:
            record_id = self._records.append(
                user_id=user.user_id,
                user_name=user.name,
                punch_type=punch_type,
                timestamp=now,
                location=location.coordinate,
                accuracy=location.accuracy,
                date=day,
                shift_duration_ms=shift_duration_ms,
            )
        except StorageFailure:
            logger.exception("Failed to record %s for user %s", punch_type.value, user.user_id)
            raise

        return AttendanceRecord(
            record_id=record_id,
            user_id=user.user_id,
            user_name=user.name,
            punch_type=punch_type,
            timestamp=now,
            location=location.coordinate,
            accuracy=location.accuracy,
            date=day,
            shift_duration_ms=shift_duration_ms,
        )

    def _to_ui(self, r: AttendanceRecord) -> dict:
        label = {
            PunchType.TIME_IN: "Time in",
            PunchType.TIME_OUT: "Time out",
        }.get(r.punch_type, r.punch_type.value)

        css = {
            PunchType.TIME_IN: "bg-green-100",
            PunchType.TIME_OUT: "bg-red-100",
        }.get(r.punch_type, "bg-gray-100")

        return {
            "id": r.record_id,
            "type": r.punch_type.value,
            "label": label,
            "date": r.timestamp.strftime("%Y-%m-%d"),
            "time": r.timestamp.strftime("%H:%M:%S"),
            "accuracy": f"±{round(r.accuracy or 0)}m",
            "duration": format_duration(r.shift_duration_ms) if r.shift_duration_ms else None,
            "css_class": css,
        }
