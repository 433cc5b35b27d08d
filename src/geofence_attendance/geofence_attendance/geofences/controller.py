from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.web import error_response, json_body, login_required, server_error
from ..core.exceptions import DomainError
from ..container import Container
from .model import Coordinate, describe, geofence_to_dict
from .service import display_names


def register(app: Flask, container: Container) -> None:
    def _serialize(geofences):
        names = display_names(geofences)
        return [
            {**geofence_to_dict(gf), "displayName": name, "summary": describe(gf)}
            for gf, name in zip(geofences, names)
        ]

    @app.route("/api/geofences", methods=["GET"], endpoint="geofences_list")
    @login_required
    def geofences_list():
        geofences = container.geofence_service.list_visible(g.user)
        return jsonify({"success": True, "geofences": _serialize(geofences), "count": len(geofences)})

    @app.route("/api/geofences", methods=["POST"], endpoint="geofences_create")
    @login_required
    def geofences_create():
        try:
            geofence = container.geofence_service.create(g.user, json_body())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("saving geofence")

        container.trackers.refresh_geofences()
        return jsonify({"success": True, "geofence": geofence_to_dict(geofence)}), 201

    @app.route("/api/geofences/<int:geofence_id>", methods=["PATCH"], endpoint="geofences_update")
    @login_required
    def geofences_update(geofence_id: int):
        try:
            geofence = container.geofence_service.update_geometry(g.user, geofence_id, json_body())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("updating geofence")

        container.trackers.refresh_geofences()
        return jsonify({"success": True, "geofence": geofence_to_dict(geofence)})

    @app.route("/api/geofences/<int:geofence_id>", methods=["DELETE"], endpoint="geofences_delete")
    @login_required
    def geofences_delete(geofence_id: int):
        try:
            container.geofence_service.delete(g.user, geofence_id)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("deleting geofence")

        container.trackers.refresh_geofences()
        return jsonify({"success": True})

    @app.route("/api/geofences/check", methods=["POST"], endpoint="geofences_check")
    @login_required
    def geofences_check():
        """Membership of one point against every geofence (map highlighting)."""

        try:
            point = Coordinate.from_dict(json_body())
            result = container.geofence_service.check_point(point)
        except DomainError as e:
            return error_response(e)

        return jsonify(
            {
                "success": True,
                "insideAny": result.inside_any,
                "geofences": [
                    {"id": gid, "inside": inside, "distance": result.distances.get(gid)}
                    for gid, inside in result.by_geofence.items()
                ],
            }
        )
