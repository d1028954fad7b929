# ==============================================================================
# Domain Errors
# ==============================================================================
"""
Exception hierarchy shared by the ingestion and aggregation engines.

- StoreError: the event store failed (connectivity, timeout, driver error)
- TrackingLinkError: the caller supplied incomplete link-helper input
"""


class PixelTrackError(Exception):
    """Base class for all pixeltrack errors."""


class StoreError(PixelTrackError):
    """Raised by repositories when the underlying store fails."""


class TrackingLinkError(PixelTrackError, ValueError):
    """Raised when a tracking link cannot be built from the given input."""
