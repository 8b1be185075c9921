"""
Flask application: Web UI for route-trail.

Provides:
  - Main page with Start / Stop / Reset buttons and a status line.
  - API endpoints: /api/start, /api/stop, /api/reset, /api/location,
    /api/permission, /api/route, /api/status.
"""

import os
from datetime import datetime

from flask import Flask, render_template, request, jsonify

from route_trail import __version__
from route_trail import presentation
from route_trail.controller import LifecycleController
from route_trail.location.providers import PermissionUnavailable
from route_trail.logger import get_logger
from route_trail.tracker import PreconditionNotMet

_log = get_logger("web_ui")


def create_app(controller: LifecycleController) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    controller : LifecycleController
        Every route goes through the controller; the app holds no state
        of its own.
    """
    template_dir = os.path.join(os.path.dirname(__file__), "templates")
    app = Flask(__name__, template_folder=template_dir)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------
    @app.route("/")
    def index():
        return render_template("main.html", version=__version__)

    # ------------------------------------------------------------------
    # API: recording controls
    # ------------------------------------------------------------------
    @app.route("/api/start", methods=["POST"])
    def api_start():
        try:
            message = controller.user_requests_start()
        except PermissionUnavailable as e:
            return jsonify({"error": str(e)}), 403
        except PreconditionNotMet as e:
            return jsonify({"error": str(e)}), 409
        _log.info("API start -> %s", message)
        return jsonify({"status": "ok", "message": message})

    @app.route("/api/stop", methods=["POST"])
    def api_stop():
        message = controller.user_requests_stop()
        _log.info("API stop -> %s", message)
        return jsonify({"status": "ok", "message": message})

    @app.route("/api/reset", methods=["POST"])
    def api_reset():
        try:
            message = controller.user_requests_reset()
        except PreconditionNotMet as e:
            return jsonify({"error": str(e)}), 409
        _log.info("API reset -> %s", message)
        return jsonify({"status": "ok", "message": message})

    # ------------------------------------------------------------------
    # API: location source (phone pushes fixes and its permission state)
    # ------------------------------------------------------------------
    @app.route("/api/location", methods=["POST"])
    def api_location():
        provider = controller.provider
        if not provider.accepts_pushed_fixes:
            return jsonify({"error": "Active location provider does not accept pushed fixes"}), 404
        data = request.get_json(silent=True) or {}
        try:
            lat = float(data["latitude"])
            lon = float(data["longitude"])
            ts = data.get("timestamp")
            timestamp = datetime.fromisoformat(ts) if ts else None
            sample = provider.push_fix(lat, lon, timestamp)
        except (KeyError, TypeError, ValueError) as e:
            return jsonify({"error": f"Need JSON with latitude and longitude (degrees): {e}"}), 400
        _log.debug("API location received: (%.6f, %.6f)", lat, lon)
        return jsonify({
            "status": "ok",
            "latitude": sample.coordinate.latitude,
            "longitude": sample.coordinate.longitude,
            "timestamp": sample.timestamp.isoformat(),
        })

    @app.route("/api/permission", methods=["POST"])
    def api_permission():
        data = request.get_json(silent=True)
        granted = data.get("granted") if isinstance(data, dict) else None
        if not isinstance(granted, bool):
            return jsonify({"error": "Need JSON with boolean 'granted'"}), 400
        controller.provider.set_authorized(granted)
        _log.info("API permission -> %s", "granted" if granted else "denied")
        return jsonify({"status": "ok", "authorized": granted})

    # ------------------------------------------------------------------
    # API: read-only views
    # ------------------------------------------------------------------
    @app.route("/api/route")
    def api_route():
        snap = controller.tracker.snapshot()
        return jsonify({
            "snapshot": snap.to_dict(),
            "geojson": presentation.to_geojson(snap),
            "bounds": presentation.bounds(snap),
            "length_m": round(presentation.track_length_m(snap), 1),
        })

    @app.route("/api/status")
    def api_status():
        status = controller.status()
        status["app_version"] = __version__
        return jsonify(status)

    return app
