from __future__ import annotations

from datetime import timedelta

import pytest

from src.geofence_attendance.geofence_attendance.common.datetime_utils import now_local
from src.geofence_attendance.geofence_attendance.container import build_services
from src.geofence_attendance.geofence_attendance.main import create_app

OFFICE = {"lat": 14.5995, "lng": 120.9842}
FAR = {"lat": 14.6095, "lng": 120.9842}
CIRCLE = {"name": "Office", "type": "circle", "center": OFFICE, "radius": 50}


@pytest.fixture
def container(geofences_repo, attendance_repo, kv):
    return build_services(
        geofences_repo=geofences_repo,
        attendance_repo=attendance_repo,
        markers=kv,
        location_timeout=0.05,
    )


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, user_id, role, name="Test User"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["name"] = name
        sess["role"] = role


def test_requests_without_session_are_rejected(client):
    resp = client.get("/api/attendance/status")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "unauthenticated"


def test_unknown_role_is_forbidden(client):
    _login(client, "u-1", "admin")
    assert client.get("/api/geofences").status_code == 403


def test_supervisor_manages_geofences(client):
    _login(client, "sup-1", "supervisor")

    created = client.post("/api/geofences", json=CIRCLE)
    assert created.status_code == 201
    geofence_id = created.get_json()["geofence"]["id"]

    patched = client.patch(f"/api/geofences/{geofence_id}", json={"center": OFFICE, "radius": 80})
    assert patched.status_code == 200
    assert patched.get_json()["geofence"]["radius"] == 80

    listed = client.get("/api/geofences").get_json()
    assert listed["count"] == 1
    assert listed["geofences"][0]["displayName"] == "Office"
    assert listed["geofences"][0]["summary"] == "Circle - Radius: 80m"

    assert client.delete(f"/api/geofences/{geofence_id}").status_code == 200
    assert client.get("/api/geofences").get_json()["count"] == 0


def test_intern_cannot_create_geofence(client):
    _login(client, "intern-1", "intern")
    resp = client.post("/api/geofences", json=CIRCLE)
    assert resp.status_code == 403


def test_invalid_geofence_payload_is_400(client):
    _login(client, "sup-1", "supervisor")
    resp = client.post("/api/geofences", json={"type": "circle", "center": OFFICE, "radius": -5})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid"


def test_check_point(client):
    _login(client, "sup-1", "supervisor")
    client.post("/api/geofences", json=CIRCLE)

    body = client.post("/api/geofences/check", json=OFFICE).get_json()

    assert body["insideAny"] is True
    assert body["geofences"] == [{"id": 1, "inside": True, "distance": "0 m"}]


def test_intern_clock_in_and_out(client):
    _login(client, "sup-1", "supervisor")
    client.post("/api/geofences", json=CIRCLE)
    _login(client, "intern-1", "intern", name="Juan")

    outside = client.post("/api/attendance/time-in", json={**FAR, "accuracy": 10})
    assert outside.status_code == 400
    assert outside.get_json()["error"] == "outside_geofence"

    clock_in = client.post("/api/attendance/time-in", json={**OFFICE, "accuracy": 10})
    assert clock_in.status_code == 201
    assert clock_in.get_json()["record"]["type"] == "time-in"

    again = client.post("/api/attendance/time-in", json=OFFICE)
    assert again.status_code == 400
    assert again.get_json()["error"] == "invalid_transition"

    status = client.get("/api/attendance/status").get_json()
    assert status["state"] == "CLOCKED_IN"
    assert status["elapsedMs"] >= 0
    assert status["elapsed"] == "0h 0m"
    assert status["shift"]["userName"] == "Juan"

    clock_out = client.post("/api/attendance/time-out", json=OFFICE)
    assert clock_out.status_code == 201
    assert "shiftDuration" in clock_out.get_json()["record"]

    history = client.get("/api/attendance/history?limit=5").get_json()
    assert [row["type"] for row in history["history"]] == ["time-out", "time-in"]
    assert client.get("/api/attendance/status").get_json()["state"] == "CLOCKED_OUT"


def test_status_reads_shift_marker_once(client, kv, monkeypatch):
    _login(client, "intern-1", "intern")
    assert client.post("/api/attendance/time-in", json=OFFICE).status_code == 201

    reads = []
    original_get = kv.get

    def counting_get(key):
        reads.append(key)
        return original_get(key)

    monkeypatch.setattr(kv, "get", counting_get)
    status = client.get("/api/attendance/status").get_json()

    assert status["state"] == "CLOCKED_IN"
    assert status["elapsedMs"] is not None
    assert len(reads) == 1


def test_time_in_without_any_fix_is_location_unavailable(client, attendance_repo):
    _login(client, "intern-1", "intern")

    resp = client.post("/api/attendance/time-in", json={})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "location_unavailable"
    assert attendance_repo.records == []


def test_time_in_falls_back_to_reported_location(client):
    _login(client, "intern-1", "intern")

    reported = client.post("/api/location", json={**OFFICE, "accuracy": 6})
    assert reported.status_code == 200
    assert reported.get_json()["isTracking"] is True

    resp = client.post("/api/attendance/time-in", json={})
    assert resp.status_code == 201
    assert resp.get_json()["record"]["location"] == OFFICE


def test_time_in_ignores_stale_tracker_fix(client, attendance_repo, monkeypatch):
    _login(client, "intern-1", "intern")
    with monkeypatch.context() as m:
        # The fix is reported nine hours before the clock-in attempt.
        m.setattr(
            "src.geofence_attendance.geofence_attendance.tracking.controller.now_local",
            lambda: now_local() - timedelta(hours=9),
        )
        assert client.post("/api/location", json={**OFFICE, "accuracy": 6}).status_code == 200

    resp = client.post("/api/attendance/time-in", json={})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "location_unavailable"
    assert attendance_repo.records == []


def test_location_error_report_and_stop(client):
    _login(client, "intern-1", "intern")

    body = client.post("/api/location", json={"error": "permission_denied"}).get_json()
    assert body["locationError"] == "permission_denied"
    assert body["location"] is None

    assert client.post("/api/location/stop").status_code == 200
    assert client.get("/api/location").get_json()["isTracking"] is False


def test_storage_failure_is_503(client, attendance_repo):
    _login(client, "intern-1", "intern")
    attendance_repo.fail_writes = True

    resp = client.post("/api/attendance/time-in", json=OFFICE)

    assert resp.status_code == 503
    assert resp.get_json()["error"] == "storage_failure"


def test_current_shift(client):
    _login(client, "intern-1", "intern")

    body = client.get("/api/shift/current").get_json()

    assert body["shift"] in {"Morning Shift", "Evening Shift", "Outside Shift Hours"}
    assert body["schedule"]["morning"] == {"start": "08:00", "end": "12:00"}


def test_time_in_waits_for_tracker_then_gives_up(client, attendance_repo):
    _login(client, "intern-1", "intern")
    client.post("/api/location", json={"error": "timeout"})

    resp = client.post("/api/attendance/time-in", json={})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "location_unavailable"
    assert resp.get_json()["message"] == "Location request timed out."
    assert attendance_repo.records == []
