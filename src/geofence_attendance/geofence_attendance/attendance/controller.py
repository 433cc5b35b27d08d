from __future__ import annotations

from typing import Optional

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import duration_ms, format_duration, now_local
from ..common.web import error_response, json_body, login_required, server_error
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceState
from ..core.exceptions import DomainError
from ..shifts.classifier import classify_current_shift, greeting_for
from .model import LocationSample


def register(app: Flask, container: Container) -> None:
    def _current_location(body: dict) -> Optional[LocationSample]:
        # A fix posted with the action wins over the tracker's last sample.
        if body.get("lat") is not None or body.get("lng") is not None:
            return LocationSample.from_dict(body, timestamp=now_local())

        tracker = container.trackers.get(g.user.user_id)
        sample = tracker.fresh_sample()
        if sample is None and tracker.is_tracking:
            # Raises LocationUnavailable when no report arrives in time.
            sample = tracker.request_current_location()
        return sample

    def _status_payload(user_id: str) -> dict:
        now = now_local()
        service = container.attendance_service
        shift = service.restore_shift(user_id, today=now.date())
        # State and elapsed time both come from this single marker read.
        state = AttendanceState.CLOCKED_IN if shift else AttendanceState.CLOCKED_OUT
        elapsed = duration_ms(shift.timestamp, now) if shift else None
        return {
            "state": state.value,
            "shift": shift.to_dict() if shift else None,
            "elapsedMs": elapsed,
            "elapsed": format_duration(elapsed) if elapsed is not None else None,
            "todayCount": service.count_today(user_id, now=now),
            "currentShift": classify_current_shift(container.shift_schedule, now=now).value,
            "greeting": greeting_for(now),
        }

    @app.route("/api/attendance/status", methods=["GET"], endpoint="attendance_status")
    @login_required
    def attendance_status():
        try:
            payload = _status_payload(g.user.user_id)
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, **payload})

    @app.route("/api/attendance/time-in", methods=["POST"], endpoint="attendance_time_in")
    @login_required
    def attendance_time_in():
        try:
            location = _current_location(json_body())
            record = container.attendance_service.time_in(
                g.user, location, container.geofence_service.list_all()
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("recording time in")

        return jsonify({"success": True, "message": "Time in recorded successfully!", "record": record.to_dict()}), 201

    @app.route("/api/attendance/time-out", methods=["POST"], endpoint="attendance_time_out")
    @login_required
    def attendance_time_out():
        try:
            location = _current_location(json_body())
            record = container.attendance_service.time_out(
                g.user, location, container.geofence_service.list_all()
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("recording time out")

        return jsonify(
            {
                "success": True,
                "message": f"Time out recorded successfully! Shift duration: {format_duration(record.shift_duration_ms or 0)}",
                "record": record.to_dict(),
            }
        ), 201

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def attendance_history():
        limit = request.args.get("limit", default=DEFAULT_HISTORY_LIMIT, type=int)
        if limit is None or limit <= 0:
            limit = DEFAULT_HISTORY_LIMIT

        try:
            items = container.attendance_service.get_history_ui(g.user.user_id, limit=limit)
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "history": items, "count": len(items)})
