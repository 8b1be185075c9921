"""
Location providers: pluggable sources of GPS fixes.

Implementations:
- ManualProvider: fixes pushed from outside (a phone posting to the web UI).
- ReplayProvider: replays a fixed list of coordinates, one per poll.

The sampling thread calls ``get_fix()`` once per interval; a provider
returns the newest fix it has, or None when there is nothing new.
"""

import threading
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from route_trail.tracker import RouteTrailError, Sample


class PermissionUnavailable(RouteTrailError):
    """Location updates cannot start because authorization was never granted."""

    def __init__(self, message: str = "Permission denied!"):
        super().__init__(message)


class LocationProvider:
    """
    Interface for a location source.  Coordinates in degrees (WGS84).
    """

    accepts_pushed_fixes = False

    def __init__(self, authorized: bool = True):
        self._authorized = bool(authorized)

    @property
    def authorized(self) -> bool:
        """True once the user has granted location access."""
        return self._authorized

    def set_authorized(self, granted: bool) -> None:
        self._authorized = bool(granted)

    def get_fix(self) -> Optional[Sample]:
        """Return the newest unconsumed fix, or None."""
        raise NotImplementedError

    def clear(self) -> None:
        """Discard any fix queued for the next poll.  Called when sampling begins."""
        pass

    def push_fix(self, latitude: float, longitude: float,
                 timestamp: Optional[datetime] = None) -> Sample:
        """Hand a fix to the provider.  Only for providers that accept pushes."""
        raise NotImplementedError


class ManualProvider(LocationProvider):
    """Holds the latest pushed fix until the sampler consumes it.

    Several pushes between two polls collapse to the newest one, the same
    way a fused-location request reports only the last location.
    """

    accepts_pushed_fixes = True

    def __init__(self, authorized: bool = True):
        super().__init__(authorized)
        self._lock = threading.Lock()
        self._pending: Optional[Sample] = None

    def push_fix(self, latitude: float, longitude: float,
                 timestamp: Optional[datetime] = None) -> Sample:
        sample = Sample.at(latitude, longitude, timestamp)
        with self._lock:
            self._pending = sample
        return sample

    def get_fix(self) -> Optional[Sample]:
        with self._lock:
            sample = self._pending
            self._pending = None
        return sample

    def clear(self) -> None:
        with self._lock:
            self._pending = None


class ReplayProvider(LocationProvider):
    """Yields each coordinate of a recorded path once, timestamped now.

    Returns None after the last coordinate unless *loop* is set.
    """

    def __init__(self, coords: Iterable[Sequence[float]], loop: bool = False,
                 authorized: bool = True):
        super().__init__(authorized)
        self._coords: List[Tuple[float, float]] = [(float(c[0]), float(c[1])) for c in coords]
        self._loop = loop
        self._index = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._coords)

    def get_fix(self) -> Optional[Sample]:
        with self._lock:
            if not self._coords:
                return None
            if self._index >= len(self._coords):
                if not self._loop:
                    return None
                self._index = 0
            lat, lon = self._coords[self._index]
            self._index += 1
        return Sample.at(lat, lon)
