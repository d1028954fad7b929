# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the contracts for the ports-and-adapters architecture.

- TrackingRepository: the event store consumed by both engines
- UserAgentParser, GeoLocator: enrichment collaborators
- BaseRunner: process lifecycle (signals, logging, cleanup)
"""

from pixeltrack.base.enrichment import GeoLocator, UserAgentParser
from pixeltrack.base.repositories import Filters, TrackingRepository
from pixeltrack.base.runner import BaseRunner

__all__ = [
    "BaseRunner",
    "Filters",
    "GeoLocator",
    "TrackingRepository",
    "UserAgentParser",
]
