# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared utilities, constants, and helper functions used across CLI command modules.

This module provides:
- ANSI color codes and box-drawing characters
- Box drawing helpers for formatted output
- Store helpers (open the configured repository for one command)
"""

import json
import re
from collections.abc import Iterator
from contextlib import contextmanager

import typer

from pixeltrack.core.aggregation import StatsService
from pixeltrack.core.errors import StoreError
from pixeltrack.infrastructure.repositories import get_tracking_repository
from pixeltrack.utils.config import get_settings

# ==============================================================================
# Constants
# ==============================================================================

# Box drawing width (unified for all commands)
BOX_WIDTH = 68


# ==============================================================================
# ANSI Colors and Box Drawing
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Colors
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    # Bright colors
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"


class Box:
    """Unicode box-drawing characters."""

    H = "─"  # horizontal
    V = "│"  # vertical
    TL = "┌"  # top-left
    TR = "┐"  # top-right
    BL = "└"  # bottom-left
    BR = "┘"  # bottom-right
    LT = "├"  # left-tee
    RT = "┤"  # right-tee


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"


# Module-level aliases for convenience
C, B, I = Colors, Box, Icons


# ==============================================================================
# Box Drawing Helpers
# ==============================================================================

_ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def _visible_len(s: str) -> int:
    """Calculate visible length of string, ignoring ANSI escape codes."""
    return len(_ANSI_ESCAPE_PATTERN.sub("", s))


def _box_header(title: str, width: int = BOX_WIDTH) -> str:
    """Create a single-line box header."""
    inner_width = width - 2
    title_padded = f" {title} "
    left_bar = (inner_width - len(title_padded)) // 2
    right_bar = inner_width - left_bar - len(title_padded)
    return (
        f"{C.CYAN}{B.TL}{B.H * left_bar}{C.BOLD}{C.WHITE}{title_padded}"
        f"{C.RESET}{C.CYAN}{B.H * right_bar}{B.TR}{C.RESET}"
    )


def _section_header_plain(title: str, width: int = BOX_WIDTH) -> str:
    """Create a section header without icon."""
    inner_width = width - 2
    title_padded = f" {title} "
    bar_len = inner_width - len(title_padded) - 1  # -1 for the first H after LT
    return (
        f"{C.CYAN}{B.LT}{B.H}{C.BOLD}{title_padded}{C.RESET}{C.CYAN}{B.H * bar_len}{B.RT}{C.RESET}"
    )


def _box_line(content: str, width: int = BOX_WIDTH) -> str:
    """Create a line inside the box with proper padding to right border."""
    inner_width = width - 2
    padding = inner_width - _visible_len(content)
    return f"{C.CYAN}{B.V}{C.RESET}{content}{' ' * padding}{C.CYAN}{B.V}{C.RESET}"


def _empty_line(width: int = BOX_WIDTH) -> str:
    """Create an empty line inside the box."""
    return f"{C.CYAN}{B.V}{' ' * (width - 2)}{B.V}{C.RESET}"


def _box_bottom(width: int = BOX_WIDTH) -> str:
    """Create a plain box bottom border."""
    return f"{C.CYAN}{B.BL}{B.H * (width - 2)}{B.BR}{C.RESET}"


def _status_badge(status: str, is_ok: bool) -> tuple[str, int]:
    """Create a colored status badge. Returns (formatted_string, visible_length)."""
    if is_ok:
        return f"{C.BRIGHT_GREEN}{I.CHECK} {status}{C.RESET}", len(status) + 2
    return f"{C.BRIGHT_RED}{I.CROSS} {status}{C.RESET}", len(status) + 2


# ==============================================================================
# Store Helpers
# ==============================================================================


def fail(message: str, json_output: bool = False) -> None:
    """Print an error in the requested format and exit with status 1."""
    if json_output:
        print(json.dumps({"error": message}))
    else:
        print(f"\n{C.BRIGHT_RED}{I.CROSS} {message}{C.RESET}\n")
    raise typer.Exit(1)


@contextmanager
def stats_service(json_output: bool = False) -> Iterator[StatsService]:
    """
    Open the configured repository for the duration of one command.

    StoreError (on connect or on any query) is reported and turned into
    exit status 1.
    """
    repository = get_tracking_repository(get_settings())
    try:
        repository.connect()
        yield StatsService(repository)
    except StoreError as e:
        fail(f"Store error: {e}", json_output)
    finally:
        repository.close()


__all__ = [
    # Constants
    "BOX_WIDTH",
    # Classes
    "Box",
    "Colors",
    "Icons",
    # Aliases
    "B",
    "C",
    "I",
    # Store helpers
    "fail",
    "stats_service",
]
