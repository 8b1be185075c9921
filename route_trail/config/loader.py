"""
Load tracking settings from JSON.  Exposes the sampling interval,
notification channel/text settings and the web UI bind address.
Config dir is next to this file unless one is given.
"""
import json
import os
from typing import Any, Optional

_CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_FILE = "tracking.json"

_DEFAULTS = {
    "interval_sec": 60.0,
    "notification_channel_id": "location_notification_channel",
    "notification_title": "Location Service",
    "start_time_pattern": "%Y-%m-%d %H:%M:%S",
    "waypoint_label_pattern": "%H:%M:%S",
    "join_timeout_sec": 2.0,
    "web_host": "0.0.0.0",
    "web_port": 5000,
}


def _load_json(config_dir: str, name: str) -> dict:
    path = os.path.join(config_dir, name)
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class TrackingConfig:
    """Single place for all tracking settings.

    Values come from ``tracking.json`` in *config_dir*; keyword overrides
    (e.g. from the command line) win over the file, and the file wins over
    built-in defaults.  Unknown override keys raise ``TypeError``.
    """

    def __init__(self, config_dir: Optional[str] = None, **overrides: Any):
        self._dir = config_dir or _CONFIG_DIR
        self._values = dict(_DEFAULTS)
        self._values.update(_load_json(self._dir, CONFIG_FILE))
        for key, value in overrides.items():
            if key not in _DEFAULTS:
                raise TypeError(f"Unknown config key: {key}")
            if value is not None:
                self._values[key] = value

        if self.interval_sec <= 0:
            raise ValueError(f"interval_sec must be > 0, got {self.interval_sec}")
        if self.join_timeout_sec <= 0:
            raise ValueError(f"join_timeout_sec must be > 0, got {self.join_timeout_sec}")

    @property
    def interval_sec(self) -> float:
        """Seconds between location polls while recording."""
        return float(self._values["interval_sec"])

    @property
    def notification_channel_id(self) -> str:
        return str(self._values["notification_channel_id"])

    @property
    def notification_title(self) -> str:
        return str(self._values["notification_title"])

    @property
    def start_time_pattern(self) -> str:
        """strftime pattern for the session start time in the notification."""
        return str(self._values["start_time_pattern"])

    @property
    def waypoint_label_pattern(self) -> str:
        return str(self._values["waypoint_label_pattern"])

    @property
    def join_timeout_sec(self) -> float:
        """Upper bound on waiting for the sampling thread to exit."""
        return float(self._values["join_timeout_sec"])

    @property
    def web_host(self) -> str:
        return str(self._values["web_host"])

    @property
    def web_port(self) -> int:
        return int(self._values["web_port"])

    def as_dict(self) -> dict:
        return dict(self._values)
