from __future__ import annotations

import logging
from functools import wraps

from flask import g, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, GuardRejected, StorageFailure
from ..users.model import SessionUser

logger = logging.getLogger(__name__)


def login_required(view):
    """Require the session identity set by the auth provider; exposes it as g.user."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "unauthenticated", "message": "Please sign in to continue."}), 401

        try:
            role = Role(session.get("role"))
        except ValueError:
            return jsonify({"success": False, "error": "forbidden", "message": "Unknown role."}), 403

        g.user = SessionUser(user_id=str(session["user_id"]), name=session.get("name") or "", role=role)
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def error_response(e: DomainError):
    """Map domain errors to JSON. Guard rejections are user-facing and non-fatal."""

    if isinstance(e, GuardRejected):
        return jsonify({"success": False, "error": e.code, "message": str(e)}), 400
    if isinstance(e, AuthorizationError):
        return jsonify({"success": False, "error": "forbidden", "message": str(e)}), 403
    if isinstance(e, StorageFailure):
        return jsonify({"success": False, "error": "storage_failure", "message": "Error saving data. Please try again."}), 503
    return jsonify({"success": False, "error": "invalid", "message": str(e)}), 400


def server_error(action: str):
    logger.exception("Unexpected error while %s", action)
    return jsonify({"success": False, "error": "server_error", "message": f"System error while {action}"}), 500
