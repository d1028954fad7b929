"""Email open-tracking pixel server with per-email and per-campaign stats."""

__version__ = "0.1.0"
