# ==============================================================================
# HTTP Layer
# ==============================================================================
"""Flask application factory for the pixel server."""

from pixeltrack.web.app import PIXEL_GIF, create_app

__all__ = ["PIXEL_GIF", "create_app"]
