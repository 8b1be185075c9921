"""route_trail.web_ui: Flask control surface."""
