# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for pixeltrack.

Commands are organized into separate modules for maintainability:
- shared.py: Common utilities, constants, and helpers
- serve.py: Foreground pixel server
- db.py: PostgreSQL schema management
- stats.py / records.py: Read-side queries
- link.py: Tracking link generation
- config.py / status.py: Configuration and health
"""

from pixeltrack.cli.shared import (
    # Constants
    BOX_WIDTH,
    # Classes
    Box,
    Colors,
    Icons,
    # Aliases
    B,
    C,
    I,
    # Store helpers
    fail,
    stats_service,
)

__all__ = [
    "BOX_WIDTH",
    "Box",
    "Colors",
    "Icons",
    "B",
    "C",
    "I",
    "fail",
    "stats_service",
]
