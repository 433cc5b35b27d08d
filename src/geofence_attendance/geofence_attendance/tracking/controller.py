from __future__ import annotations

from flask import Flask, g, jsonify

from ..attendance.model import LocationSample
from ..common.datetime_utils import now_local
from ..common.web import error_response, json_body, login_required
from ..container import Container
from ..core.exceptions import DomainError
from .sensor import ReportedLocationSensor, parse_error_code
from .tracker import TrackerSnapshot


def _snapshot_to_dict(snap: TrackerSnapshot) -> dict:
    sample = snap.sample
    return {
        "isTracking": snap.is_tracking,
        "insideGeofence": snap.inside_geofence,
        "location": (
            {
                "lat": sample.lat,
                "lng": sample.lng,
                "accuracy": sample.accuracy,
                "timestamp": sample.timestamp.isoformat(),
            }
            if sample
            else None
        ),
        "locationError": snap.last_error.value if snap.last_error else None,
        "errorMessage": snap.error_message,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/location", methods=["POST"], endpoint="location_report")
    @login_required
    def location_report():
        """Browser watchPosition callback: either a fix or an error code."""

        body = json_body()
        tracker = container.trackers.get(g.user.user_id)
        tracker.start()

        sensor = tracker.sensor
        if not isinstance(sensor, ReportedLocationSensor):
            return jsonify({"success": False, "error": "invalid", "message": "Sensor does not accept reports"}), 400

        if body.get("error"):
            sensor.report_error(parse_error_code(body.get("error")))
        else:
            try:
                sensor.report(LocationSample.from_dict(body, timestamp=now_local()))
            except DomainError as e:
                return error_response(e)

        return jsonify({"success": True, **_snapshot_to_dict(tracker.snapshot())})

    @app.route("/api/location", methods=["GET"], endpoint="location_snapshot")
    @login_required
    def location_snapshot():
        tracker = container.trackers.get(g.user.user_id)
        return jsonify({"success": True, **_snapshot_to_dict(tracker.snapshot())})

    @app.route("/api/location/stop", methods=["POST"], endpoint="location_stop")
    @login_required
    def location_stop():
        container.trackers.discard(g.user.user_id)
        return jsonify({"success": True})
