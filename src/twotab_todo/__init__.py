"""Two-tab todo: offline-first task tracker with optional multi-device sync."""

__version__ = "0.1.0"
