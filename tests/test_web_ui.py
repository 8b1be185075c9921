"""
Tests for route_trail.web_ui — Flask routes via the test client.

Run: python -m pytest tests/test_web_ui.py -v
"""

import sys
import os
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from route_trail import __version__
from route_trail.config import TrackingConfig
from route_trail.controller import LifecycleController
from route_trail.location import ManualProvider, ReplayProvider
from route_trail.tracker import RouteTracker
from route_trail.web_ui.app import create_app


@pytest.fixture
def setup():
    tracker = RouteTracker()
    provider = ManualProvider(authorized=False)
    controller = LifecycleController(
        tracker, provider, TrackingConfig(interval_sec=0.01)
    )
    app = create_app(controller)
    app.config["TESTING"] = True
    yield app.test_client(), controller, tracker
    controller.shutdown()


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_index_page(setup):
    client, _, _ = setup
    res = client.get("/")
    assert res.status_code == 200
    assert __version__.encode() in res.data


def test_start_requires_permission(setup):
    client, _, tracker = setup
    res = client.post("/api/start")
    assert res.status_code == 403
    assert res.get_json()["error"] == "Permission denied!"
    assert tracker.state.value == "idle"


def test_full_session(setup):
    client, controller, tracker = setup
    assert client.post("/api/permission", json={"granted": True}).status_code == 200

    res = client.post("/api/start")
    assert res.status_code == 200
    assert res.get_json()["message"] == "Location service started"
    assert client.post("/api/start").status_code == 409

    res = client.post("/api/location", json={"latitude": 37.5, "longitude": 127.0,
                                              "timestamp": "2024-05-01T09:15:00"})
    assert res.status_code == 200
    assert _wait_for(lambda: len(tracker.snapshot().coordinates) == 2)
    client.post("/api/location", json={"latitude": 37.6, "longitude": 127.1,
                                       "timestamp": "2024-05-01T09:16:07"})
    assert _wait_for(lambda: len(tracker.snapshot().coordinates) == 3)

    res = client.post("/api/reset")
    assert res.status_code == 409
    assert "stop recording first" in res.get_json()["error"]

    route = client.get("/api/route").get_json()
    assert route["snapshot"]["state"] == "recording"
    assert route["snapshot"]["markers"][1]["label"] == "09:16:07"
    assert route["bounds"]["max_lat"] == 37.6
    assert route["length_m"] > 0

    status = client.get("/api/status").get_json()
    assert status["sampling"] is True
    assert status["point_count"] == 3
    assert status["app_version"] == __version__

    res = client.post("/api/stop")
    assert res.get_json()["message"] == "Location service stopped"
    assert not controller.is_sampling

    res = client.post("/api/reset")
    assert res.status_code == 200
    assert client.get("/api/route").get_json()["snapshot"]["coordinates"] == []


def test_location_validation(setup):
    client, _, _ = setup
    assert client.post("/api/location", json={"latitude": 37.5}).status_code == 400
    assert client.post("/api/location", json={"latitude": "x", "longitude": 1}).status_code == 400
    assert client.post("/api/location", json={"latitude": 95, "longitude": 1}).status_code == 400
    assert client.post("/api/location", data="not json").status_code == 400
    assert client.post("/api/location", json=[37.5, 127.0]).status_code == 400


def test_permission_validation(setup):
    client, _, _ = setup
    assert client.post("/api/permission", json={"granted": "yes"}).status_code == 400
    assert client.post("/api/permission", json=[True]).status_code == 400
    assert client.post("/api/permission", json=1).status_code == 400
    assert client.post("/api/permission", data="not json").status_code == 400


def test_location_push_refused_for_replay_provider():
    controller = LifecycleController(RouteTracker(), ReplayProvider([(1.0, 2.0)]),
                                     TrackingConfig(interval_sec=0.01))
    client = create_app(controller).test_client()
    res = client.post("/api/location", json={"latitude": 1.0, "longitude": 2.0})
    assert res.status_code == 404


def test_stop_when_idle(setup):
    client, _, _ = setup
    res = client.post("/api/stop")
    assert res.status_code == 200
    assert res.get_json()["message"] == "Location service is not running"
