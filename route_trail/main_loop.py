"""
Main loop: load config, build tracker / provider / controller, start the
Web UI, then idle until Ctrl+C.

Run from the repo root:
    python -m route_trail.main_loop
    python -m route_trail.main_loop --interval 3 --replay route.json

Then open http://localhost:5000 in your browser.
"""

import argparse
import logging
import threading
import time

from route_trail.config import TrackingConfig
from route_trail.controller import LifecycleController
from route_trail.location import ManualProvider, ReplayProvider, load_replay_coords
from route_trail.logger import get_logger, LOG_FILE
from route_trail.tracker import RouteTracker, TrackerEvent
from route_trail.web_ui.app import create_app

log = get_logger("main_loop")

# Suppress noisy Flask/werkzeug access logs (they still go to the file)
logging.getLogger("werkzeug").setLevel(logging.WARNING)

STATUS_LOG_EVERY_SEC = 30.0


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Record a GPS trail from pushed or replayed fixes.")
    parser.add_argument("--config-dir", default=None, help="Directory holding tracking.json")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between location polls")
    parser.add_argument("--host", default=None, help="Web UI bind address")
    parser.add_argument("--port", type=int, default=None, help="Web UI port")
    parser.add_argument("--replay", default=None,
                        help="JSON file with [lat, lon] pairs to replay instead of pushed fixes")
    parser.add_argument("--loop", action="store_true", help="Restart the replay when it runs out")
    return parser.parse_args(argv)


def _log_route_events(event: TrackerEvent, snapshot) -> None:
    if event == TrackerEvent.SAMPLE_RECORDED and snapshot.markers:
        m = snapshot.markers[-1]
        log.info("Marker %s '%s' at (%.6f, %.6f); %d points",
                 m.role.value, m.label, m.coordinate.latitude, m.coordinate.longitude,
                 len(snapshot.coordinates))


def main(argv=None):
    args = parse_args(argv)

    # ------------------------------------------------------------------
    # 1. Load config
    # ------------------------------------------------------------------
    config = TrackingConfig(
        args.config_dir,
        interval_sec=args.interval,
        web_host=args.host,
        web_port=args.port,
    )
    log.info("Config loaded: %s", config.as_dict())

    # ------------------------------------------------------------------
    # 2. Location provider, tracker, controller
    # ------------------------------------------------------------------
    if args.replay:
        coords = load_replay_coords(args.replay)
        provider = ReplayProvider(coords, loop=args.loop)
        log.info("Replaying %d coordinates from %s", len(coords), args.replay)
    else:
        provider = ManualProvider(authorized=False)
        log.info("Waiting for fixes on POST /api/location (permission not yet granted)")

    tracker = RouteTracker(waypoint_label_pattern=config.waypoint_label_pattern)
    tracker.subscribe(_log_route_events)
    controller = LifecycleController(tracker, provider, config)

    # ------------------------------------------------------------------
    # 3. Start Web UI (Flask) in a background thread
    # ------------------------------------------------------------------
    app = create_app(controller)
    flask_thread = threading.Thread(
        target=lambda: app.run(host=config.web_host, port=config.web_port,
                               threaded=True, use_reloader=False),
        name="RouteTrail-Flask", daemon=True,
    )
    flask_thread.start()
    log.info("Web UI started on http://%s:%d", config.web_host, config.web_port)

    # ------------------------------------------------------------------
    # 4. Idle loop: periodic status line until Ctrl+C
    # ------------------------------------------------------------------
    log.info("Running. State: %s. Log file: %s", tracker.state.value, LOG_FILE)
    try:
        while flask_thread.is_alive():
            time.sleep(STATUS_LOG_EVERY_SEC)
            status = controller.status()
            log.info("Status: state=%s sampling=%s points=%d markers=%d",
                     status["state"], status["sampling"],
                     status["point_count"], status["marker_count"])
        log.error("Web UI thread exited; shutting down")
    except KeyboardInterrupt:
        log.info("Shutting down...")
    finally:
        controller.shutdown()
        log.info("Bye.")


if __name__ == "__main__":
    main()
