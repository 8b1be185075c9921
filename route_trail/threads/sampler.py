"""
Sampler thread.

Polls a LocationProvider every ``interval_sec`` and hands each fix to a
delivery callback until *stop_event* is set.  The first poll happens
immediately so a fresh session gets its start point without waiting a
full interval.
"""

import threading
import time
from typing import Callable

from route_trail.logger import get_logger
from route_trail.location.providers import LocationProvider
from route_trail.tracker import Sample

log = get_logger("thread.sampler")


def run_sampler_loop(
    provider: LocationProvider,
    deliver: Callable[[Sample], object],
    stop_event: threading.Event,
    *,
    interval_sec: float = 60.0,
) -> None:
    """Sampling loop; runs until *stop_event* is set.

    Parameters
    ----------
    provider : LocationProvider
        Source of fixes; ``get_fix()`` is called once per tick.
    deliver : callable
        Receives each non-None fix (normally ``controller.on_sample_available``).
    stop_event : threading.Event
        Set this to make the loop exit.  The wait between polls is
        interruptible, so the loop exits promptly even with long intervals.
    interval_sec : float
        Seconds between polls.
    """
    if interval_sec <= 0:
        raise ValueError(f"interval_sec must be > 0, got {interval_sec}")

    delivered = 0
    log.info("Sampler loop started (interval %.1f s).", interval_sec)

    while not stop_event.is_set():
        t0 = time.monotonic()

        try:
            sample = provider.get_fix()
        except Exception as e:
            log.warning("Location provider failed: %s", e)
            sample = None

        if sample is not None and not stop_event.is_set():
            deliver(sample)
            delivered += 1

        elapsed = time.monotonic() - t0
        stop_event.wait(max(0.0, interval_sec - elapsed))

    log.info("Sampler loop stopped after %d fixes.", delivered)
