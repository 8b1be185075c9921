"""route_trail.config: sampling interval, notification and web settings."""

from route_trail.config.loader import TrackingConfig, CONFIG_FILE

__all__ = ["TrackingConfig", "CONFIG_FILE"]
