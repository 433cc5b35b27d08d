from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import hhmm, now_local
from ..common.web import login_required
from ..container import Container
from .classifier import classify_current_shift, greeting_for


def register(app: Flask, container: Container) -> None:
    @app.route("/api/shift/current", methods=["GET"], endpoint="shift_current")
    @login_required
    def shift_current():
        now = now_local()
        return jsonify(
            {
                "success": True,
                "shift": classify_current_shift(container.shift_schedule, now=now).value,
                "time": hhmm(now),
                "greeting": greeting_for(now),
                "schedule": container.shift_schedule.to_dict(),
            }
        )
