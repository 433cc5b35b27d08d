from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from src.geofence_attendance.geofence_attendance.attendance.model import LocationSample
from src.geofence_attendance.geofence_attendance.core.enums import LocationErrorCode
from src.geofence_attendance.geofence_attendance.core.exceptions import LocationUnavailable
from src.geofence_attendance.geofence_attendance.geofences.model import CircleShape, Coordinate, Geofence
from src.geofence_attendance.geofence_attendance.tracking.sensor import (
    LocationError,
    ReportedLocationSensor,
    location_error_message,
    parse_error_code,
)
from src.geofence_attendance.geofence_attendance.tracking.tracker import LocationTracker, TrackerRegistry

OFFICE = Coordinate(lat=14.5995, lng=120.9842)
FENCE = Geofence(geofence_id=1, name="Office", shape=CircleShape(center=OFFICE, radius=50), created_by="sup-1")


class DeniedSensor:
    def get_current_location(self, *, timeout):
        raise LocationError(LocationErrorCode.PERMISSION_DENIED)

    def watch_location(self, on_update, on_error):
        return 1

    def unsubscribe(self, handle):
        pass


@pytest.fixture
def sensor(fixed_now):
    return ReportedLocationSensor(max_age=60, clock=lambda: fixed_now)


def _at(now, lat=OFFICE.lat, lng=OFFICE.lng):
    return LocationSample(lat=lat, lng=lng, accuracy=5.0, timestamp=now)


def test_updates_overwrite_sample_and_recompute_membership(sensor, fixed_now):
    tracker = LocationTracker(sensor, [FENCE])
    tracker.start()
    tracker.start()

    sensor.report(_at(fixed_now))
    assert tracker.snapshot().inside_geofence is True

    far = _at(fixed_now, lat=OFFICE.lat + 0.01)
    sensor.report(far)
    snap = tracker.snapshot()
    assert snap.sample == far
    assert snap.inside_geofence is False
    assert snap.is_tracking is True


def test_error_is_kept_until_next_fix(sensor, fixed_now):
    tracker = LocationTracker(sensor, [FENCE])
    tracker.start()

    sensor.report_error(LocationErrorCode.PERMISSION_DENIED)
    snap = tracker.snapshot()
    assert snap.last_error == LocationErrorCode.PERMISSION_DENIED
    assert snap.error_message == "Location access denied. Please enable location permissions."

    sensor.report(_at(fixed_now))
    assert tracker.snapshot().last_error is None


def test_stop_unsubscribes(sensor, fixed_now):
    tracker = LocationTracker(sensor, [FENCE])
    tracker.start()
    tracker.stop()
    tracker.stop()

    sensor.report(_at(fixed_now))

    snap = tracker.snapshot()
    assert snap.sample is None
    assert snap.is_tracking is False


def test_geofence_change_recomputes_membership(sensor, fixed_now):
    tracker = LocationTracker(sensor, [])
    tracker.start()
    sensor.report(_at(fixed_now))
    assert tracker.snapshot().inside_geofence is False

    tracker.set_geofences([FENCE])
    assert tracker.snapshot().inside_geofence is True


def test_one_shot_request_uses_fresh_cached_fix(sensor, fixed_now):
    sample = _at(fixed_now)
    sensor.report(sample)

    tracker = LocationTracker(sensor, [FENCE], request_timeout=1)

    assert tracker.request_current_location() == sample
    assert tracker.snapshot().inside_geofence is True


def test_one_shot_request_waits_for_next_report(sensor, fixed_now):
    tracker = LocationTracker(sensor, [FENCE], request_timeout=5)
    sample = _at(fixed_now)
    timer = threading.Timer(0.05, sensor.report, args=(sample,))
    timer.start()
    try:
        assert tracker.request_current_location() == sample
    finally:
        timer.cancel()


def test_one_shot_request_times_out(fixed_now):
    now = {"value": fixed_now}
    sensor = ReportedLocationSensor(max_age=60, clock=lambda: now["value"])
    sensor.report(_at(fixed_now))
    now["value"] = fixed_now + timedelta(minutes=5)

    tracker = LocationTracker(sensor, [FENCE], request_timeout=0.05)

    with pytest.raises(LocationUnavailable):
        tracker.request_current_location()
    assert tracker.snapshot().last_error == LocationErrorCode.TIMEOUT


def test_one_shot_request_surfaces_sensor_error():
    tracker = LocationTracker(DeniedSensor(), request_timeout=1)

    with pytest.raises(LocationUnavailable) as exc:
        tracker.request_current_location()

    assert str(exc.value) == location_error_message(LocationErrorCode.PERMISSION_DENIED)
    assert tracker.snapshot().last_error == LocationErrorCode.PERMISSION_DENIED


def test_parse_error_code_falls_back_to_unknown():
    assert parse_error_code("TIMEOUT") == LocationErrorCode.TIMEOUT
    assert parse_error_code("gps exploded") == LocationErrorCode.UNKNOWN
    assert parse_error_code(None) == LocationErrorCode.UNKNOWN


def test_registry_keeps_one_tracker_per_user(fixed_now):
    fences = []
    sensors = []

    def make_sensor():
        s = ReportedLocationSensor(clock=lambda: fixed_now)
        sensors.append(s)
        return s

    registry = TrackerRegistry(make_sensor, lambda: list(fences))

    tracker = registry.get("intern-1")
    assert registry.get("intern-1") is tracker
    assert registry.get("intern-2") is not tracker

    tracker.start()
    sensors[0].report(_at(fixed_now))
    assert tracker.snapshot().inside_geofence is False

    fences.append(FENCE)
    registry.refresh_geofences()
    assert tracker.snapshot().inside_geofence is True

    registry.discard("intern-1")
    assert tracker.is_tracking is False
    assert registry.get("intern-1") is not tracker


def test_fresh_sample_ignores_fix_older_than_max_age(sensor, fixed_now):
    now = {"value": fixed_now}
    tracker = LocationTracker(sensor, [FENCE], max_age=60, clock=lambda: now["value"])
    tracker.start()
    sensor.report(_at(fixed_now))

    assert tracker.fresh_sample() == _at(fixed_now)

    now["value"] = fixed_now + timedelta(seconds=61)
    assert tracker.fresh_sample() is None
    assert tracker.snapshot().sample == _at(fixed_now)


def test_registry_evicts_trackers_idle_past_timeout(fixed_now):
    ticks = {"value": 1000.0}
    registry = TrackerRegistry(
        lambda: ReportedLocationSensor(clock=lambda: fixed_now),
        lambda: [],
        idle_timeout=60,
        clock=lambda: ticks["value"],
    )

    idle = registry.get("intern-1")
    idle.start()
    ticks["value"] += 30
    active = registry.get("intern-2")
    assert len(registry) == 2

    ticks["value"] += 45
    assert registry.get("intern-2") is active
    assert len(registry) == 1
    assert idle.is_tracking is False
    assert registry.get("intern-1") is not idle
