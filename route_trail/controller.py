"""
Lifecycle controller: permission gate, sampling thread and user commands.

Sits between the user-facing surface (web UI) and the RouteTracker.  It
subscribes to the tracker and starts the sampler thread on STARTED and
stops it on STOPPED, so the tracker never needs to know that a thread or
a location provider exists.
"""

import threading
from datetime import datetime
from typing import Optional

from route_trail.config import TrackingConfig
from route_trail.location.providers import LocationProvider, PermissionUnavailable
from route_trail.logger import get_logger
from route_trail.threads.sampler import run_sampler_loop
from route_trail.tracker import RouteSnapshot, RouteTracker, Sample, TrackerEvent

log = get_logger("controller")

MSG_STARTED = "Location service started"
MSG_STOPPED = "Location service stopped"
MSG_NOT_RUNNING = "Location service is not running"
MSG_RESET = "Route cleared"


class LifecycleController:
    """Owns the sampler thread; translates user actions into tracker commands.

    Parameters
    ----------
    tracker : RouteTracker
        The trail owner.  The controller subscribes to it on construction.
    provider : LocationProvider
        Source of fixes for the sampler thread.
    config : TrackingConfig
        Interval, notification and join-timeout settings.
    """

    def __init__(
        self,
        tracker: RouteTracker,
        provider: LocationProvider,
        config: Optional[TrackingConfig] = None,
    ) -> None:
        self._tracker = tracker
        self._provider = provider
        self._config = config or TrackingConfig()

        # Held across a tracker command and the sampler change it causes,
        # so start/stop requests from different threads apply in one order.
        self._command_lock = threading.RLock()
        # Guards the sampler thread handle and session info
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._started_at: Optional[datetime] = None

        tracker.subscribe(self._on_tracker_event)

    # ── read-only views ───────────────────────────────────────────────

    @property
    def tracker(self) -> RouteTracker:
        return self._tracker

    @property
    def provider(self) -> LocationProvider:
        return self._provider

    @property
    def config(self) -> TrackingConfig:
        return self._config

    @property
    def is_sampling(self) -> bool:
        """True while the sampler thread is alive."""
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    @property
    def notification(self) -> Optional[str]:
        """Foreground notification text for the running session, or None."""
        with self._lock:
            started_at = self._started_at
        if started_at is None:
            return None
        return "Started at " + started_at.strftime(self._config.start_time_pattern)

    def status(self) -> dict:
        snap = self._tracker.snapshot()
        return {
            "state": snap.state.value,
            "sampling": self.is_sampling,
            "authorized": self._provider.authorized,
            "interval_sec": self._config.interval_sec,
            "notification": {
                "channel_id": self._config.notification_channel_id,
                "title": self._config.notification_title,
                "text": self.notification,
            },
            "point_count": len(snap.coordinates),
            "marker_count": len(snap.markers),
        }

    # ── user actions ──────────────────────────────────────────────────

    def user_requests_start(self) -> str:
        """Start recording.  Raises PermissionUnavailable or PreconditionNotMet."""
        with self._command_lock:
            if not self._provider.authorized:
                log.warning("Start refused: location permission not granted")
                raise PermissionUnavailable()
            self._tracker.start()
        return MSG_STARTED

    def user_requests_stop(self) -> str:
        with self._command_lock:
            if not self._tracker.stop():
                return MSG_NOT_RUNNING
        return MSG_STOPPED

    def user_requests_reset(self) -> str:
        """Clear the trail.  Raises PreconditionNotMet while recording."""
        with self._command_lock:
            self._tracker.reset()
        return MSG_RESET

    def on_sample_available(self, sample: Sample) -> bool:
        """Delivery callback for the sampler thread."""
        return self._tracker.record_sample(sample)

    def shutdown(self) -> None:
        """Stop recording (if any) and wait for the sampler thread."""
        with self._command_lock:
            self._tracker.stop()
            self._end_sampling()

    # ── tracker subscription ──────────────────────────────────────────

    def _on_tracker_event(self, event: TrackerEvent, snapshot: RouteSnapshot) -> None:
        if event not in (TrackerEvent.STARTED, TrackerEvent.STOPPED):
            return
        # Events can reach us late and out of order when the tracker is
        # driven from several threads; follow the tracker's current state,
        # not the event.
        with self._command_lock:
            if self._tracker.is_recording:
                self._begin_sampling()
            else:
                self._end_sampling()

    def _begin_sampling(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                log.debug("Sampler already running")
                return
            # Drop any fix queued before this session
            self._provider.clear()
            stop_event = threading.Event()
            thread = threading.Thread(
                target=run_sampler_loop,
                args=(self._provider, self.on_sample_available, stop_event),
                kwargs={"interval_sec": self._config.interval_sec},
                name="RouteTrail-Sampler",
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            self._started_at = datetime.now()
            thread.start()
        log.info("%s [%s]: %s", self._config.notification_title,
                 self._config.notification_channel_id, self.notification)

    def _end_sampling(self) -> None:
        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None
            self._started_at = None
        if thread is None:
            return
        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=self._config.join_timeout_sec)
            if thread.is_alive():
                log.warning("Sampler thread did not exit within %.1f s",
                            self._config.join_timeout_sec)
        log.info("Sampling ended")
