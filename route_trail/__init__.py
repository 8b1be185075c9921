"""route_trail: GPS trail recorder (route tracker, sampling worker, web UI)."""

__version__ = "0.3.0"
