"""
Logging setup for route-trail.

Configured once at import: the root logger gets a DEBUG file handler under
``~/logs_route_trail/`` (one file per process start) and an INFO console
handler on stdout.  Modules take a named child logger::

    from route_trail.logger import get_logger
    log = get_logger("tracker")

werkzeug's access log goes through the same handlers.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

LOG_DIR = Path.home() / "logs_route_trail"
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / f"{datetime.now():%Y-%m-%d_%H-%M-%S}.log"

_formatter = logging.Formatter(
    "%(asctime)s [%(levelname)-5s] %(name)-28s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(_formatter)
    return handler


_root = logging.getLogger()
_root.setLevel(logging.DEBUG)
# Leave an already-configured root alone (second import, test runner)
if not _root.handlers:
    _root.addHandler(_handler(logging.FileHandler(str(LOG_FILE), encoding="utf-8"), logging.DEBUG))
    _root.addHandler(_handler(logging.StreamHandler(sys.stdout), logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """Return the ``route_trail.<name>`` logger."""
    return logging.getLogger(f"route_trail.{name}")


log = get_logger("app")
log.debug("Logging started -> %s", LOG_FILE)
