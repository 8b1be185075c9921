"""
Route tracker: the recording state machine and the trail it owns.

States: IDLE, RECORDING.  Commands (start / stop / reset / record_sample)
are linearised under one lock; subscribers are notified after the lock is
released so they may call back into the tracker or join worker threads.
No UI, service or hardware dependency.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from route_trail.logger import get_logger

log = get_logger("tracker")

START_LABEL = "Start"
WAYPOINT_LABEL_PATTERN = "%H:%M:%S"


class RecordingState(Enum):
    IDLE = "idle"
    RECORDING = "recording"


class Command(Enum):
    START = "start"
    STOP = "stop"
    RESET = "reset"
    RECORD_SAMPLE = "record_sample"


class TrackerEvent(Enum):
    STARTED = "started"
    STOPPED = "stopped"
    RESET = "reset"
    SAMPLE_RECORDED = "sample_recorded"


class MarkerRole(Enum):
    START = "start"
    WAYPOINT = "waypoint"


# Commands allowed in each state.  Anything else is either rejected with
# PreconditionNotMet or dropped, see _REJECTED.
_ALLOWED = {
    (RecordingState.IDLE, Command.START): RecordingState.RECORDING,
    (RecordingState.IDLE, Command.RESET): RecordingState.IDLE,
    (RecordingState.RECORDING, Command.STOP): RecordingState.IDLE,
    (RecordingState.RECORDING, Command.RECORD_SAMPLE): RecordingState.RECORDING,
}

# Disallowed commands that the caller must hear about.  stop() while idle
# and record_sample() while idle are silent no-ops instead.
_REJECTED = {
    (RecordingState.RECORDING, Command.START),
    (RecordingState.RECORDING, Command.RESET),
}


class RouteTrailError(Exception):
    """Base class for route-trail errors surfaced to the user."""


class PreconditionNotMet(RouteTrailError):
    """A command was issued in a state that does not allow it."""

    def __init__(self, command: Command, state: RecordingState):
        self.command = command
        self.state = state
        super().__init__(
            f"Cannot {command.value} while {state.value}"
            + (": stop recording first" if state == RecordingState.RECORDING else "")
        )


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range [-90,90]: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range [-180,180]: {self.longitude}")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class Sample:
    """One location fix: where and when."""

    coordinate: Coordinate
    timestamp: datetime

    @classmethod
    def at(cls, latitude: float, longitude: float, timestamp: Optional[datetime] = None) -> "Sample":
        """Build a sample from raw degrees; *timestamp* defaults to now."""
        return cls(
            Coordinate(float(latitude), float(longitude)),
            timestamp if timestamp is not None else datetime.now(),
        )


@dataclass(frozen=True)
class Marker:
    role: MarkerRole
    coordinate: Coordinate
    label: str

    def to_dict(self) -> Dict:
        return {
            "role": self.role.value,
            "latitude": self.coordinate.latitude,
            "longitude": self.coordinate.longitude,
            "label": self.label,
        }


@dataclass(frozen=True)
class RouteSnapshot:
    """Consistent, immutable copy of the tracker's observable state."""

    state: RecordingState
    coordinates: Tuple[Coordinate, ...]
    markers: Tuple[Marker, ...]

    def to_dict(self) -> Dict:
        return {
            "state": self.state.value,
            "coordinates": [list(c.as_tuple()) for c in self.coordinates],
            "markers": [m.to_dict() for m in self.markers],
        }


Listener = Callable[[TrackerEvent, RouteSnapshot], None]


class RouteTracker:
    """Single source of truth for the recorded trail and recording state."""

    def __init__(self, waypoint_label_pattern: str = WAYPOINT_LABEL_PATTERN):
        self._lock = threading.Lock()
        self._state = RecordingState.IDLE
        self._route: List[Coordinate] = []
        self._markers: List[Marker] = []
        self._label_pattern = waypoint_label_pattern

        self._listeners_lock = threading.Lock()
        self._listeners: List[Listener] = []

    # ── reads ────────────────────────────────────────────────────────

    @property
    def state(self) -> RecordingState:
        with self._lock:
            return self._state

    @property
    def is_recording(self) -> bool:
        return self.state == RecordingState.RECORDING

    def snapshot(self) -> RouteSnapshot:
        with self._lock:
            return self._snapshot_locked()

    # ── subscription ─────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # ── commands ─────────────────────────────────────────────────────

    def start(self) -> RouteSnapshot:
        """IDLE -> RECORDING.  The existing trail is kept.

        Raises PreconditionNotMet when already recording.
        """
        with self._lock:
            self._transition(Command.START)
            snap = self._snapshot_locked()
        log.info("Recording started (%d points kept)", len(snap.coordinates))
        self._notify(TrackerEvent.STARTED, snap)
        return snap

    def stop(self) -> bool:
        """RECORDING -> IDLE.  Returns False (no-op) when already idle."""
        with self._lock:
            if self._state == RecordingState.IDLE:
                log.debug("stop() while idle ignored")
                return False
            self._transition(Command.STOP)
            snap = self._snapshot_locked()
        log.info("Recording stopped (%d points, %d markers)", len(snap.coordinates), len(snap.markers))
        self._notify(TrackerEvent.STOPPED, snap)
        return True

    def reset(self) -> RouteSnapshot:
        """Clear route and markers.  Only allowed while idle."""
        with self._lock:
            self._transition(Command.RESET)
            self._route.clear()
            self._markers.clear()
            snap = self._snapshot_locked()
        log.info("Route reset")
        self._notify(TrackerEvent.RESET, snap)
        return snap

    def record_sample(self, sample: Sample) -> bool:
        """Add one fix to the trail.

        The first fix of an empty route seeds it with two coincident points
        and a start marker; later fixes append one point and one waypoint
        labelled with the fix time.  Returns False when the fix arrived
        while idle (late callback after stop) and was dropped.
        """
        with self._lock:
            if self._state == RecordingState.IDLE:
                log.debug("Stale sample dropped: (%.6f, %.6f) at %s",
                          sample.coordinate.latitude, sample.coordinate.longitude,
                          sample.timestamp.isoformat())
                return False
            self._transition(Command.RECORD_SAMPLE)
            coord = sample.coordinate
            if not self._route:
                self._route.extend((coord, coord))
                self._markers.append(Marker(MarkerRole.START, coord, START_LABEL))
            else:
                self._route.append(coord)
                label = sample.timestamp.strftime(self._label_pattern)
                self._markers.append(Marker(MarkerRole.WAYPOINT, coord, label))
            snap = self._snapshot_locked()
        log.debug("Sample recorded: (%.6f, %.6f) -> %d points",
                  coord.latitude, coord.longitude, len(snap.coordinates))
        self._notify(TrackerEvent.SAMPLE_RECORDED, snap)
        return True

    # ── internals ────────────────────────────────────────────────────

    def _transition(self, command: Command) -> None:
        """Apply *command* to the current state.  Caller holds the lock."""
        key = (self._state, command)
        new_state = _ALLOWED.get(key)
        if new_state is None:
            if key in _REJECTED:
                log.warning("Rejected %s while %s", command.value, self._state.value)
            raise PreconditionNotMet(command, self._state)
        self._state = new_state

    def _snapshot_locked(self) -> RouteSnapshot:
        return RouteSnapshot(self._state, tuple(self._route), tuple(self._markers))

    def _notify(self, event: TrackerEvent, snap: RouteSnapshot) -> None:
        # Fire outside the state lock: a STOPPED listener joins the sampling
        # thread, which may itself be waiting on the lock in record_sample().
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, snap)
            except Exception:
                log.exception("Tracker listener failed on %s", event.value)
