# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Domain logic with no infrastructure dependencies.

This module contains:
- Domain models (TrackingRecord, OpenHit, EmailStats, CampaignStats, ...)
- The ingestion/dedup engine (OpenTracker)
- The aggregation engine (StatsService)
- The tracking link builder

Repositories and enrichment collaborators are injected, so everything here is
unit-testable with in-memory or fake stores.
"""

from pixeltrack.core.errors import PixelTrackError, StoreError, TrackingLinkError
from pixeltrack.core.models import (
    CampaignStats,
    DeviceInfo,
    EmailStats,
    Location,
    OpenHit,
    OpenOutcome,
    OpensGroup,
    RecipientOpens,
    RecordField,
    RecordOpenResult,
    TrackingLink,
    TrackingRecord,
)
from pixeltrack.core.aggregation import StatsService
from pixeltrack.core.ingestion import OpenTracker
from pixeltrack.core.links import build_tracking_link

__all__ = [
    # Errors
    "PixelTrackError",
    "StoreError",
    "TrackingLinkError",
    # Models
    "CampaignStats",
    "DeviceInfo",
    "EmailStats",
    "Location",
    "OpenHit",
    "OpenOutcome",
    "OpensGroup",
    "RecipientOpens",
    "RecordField",
    "RecordOpenResult",
    "TrackingLink",
    "TrackingRecord",
    # Engines
    "OpenTracker",
    "StatsService",
    "build_tracking_link",
]
