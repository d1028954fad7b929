# ==============================================================================
# Open Ingestion Engine
# ==============================================================================
"""
Turns beacon hits into TrackingRecords.

For every hit the tracker derives device/browser/OS and location, builds a
candidate record and hands it to the repository's atomic upsert. A new
identity key creates a record; a known key only bumps open_count and the
timestamp, so enrichment stays as it was captured on the first open.

record_open() never raises for enrichment or store failures: the beacon must
be served regardless, so failures come back as a RecordOpenResult.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pixeltrack.core.errors import StoreError
from pixeltrack.core.models import (
    DeviceInfo,
    Location,
    OpenHit,
    OpenOutcome,
    RecordOpenResult,
    TrackingRecord,
)

if TYPE_CHECKING:
    from pixeltrack.base.enrichment import GeoLocator, UserAgentParser
    from pixeltrack.base.repositories import TrackingRepository

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(UTC)


class OpenTracker:
    """
    Ingestion/dedup engine.

    Args:
        repository: Event store with an atomic upsert_open()
        ua_parser: User-agent parser collaborator
        geo_locator: IP geolocation collaborator
        clock: Returns the current time (injectable for tests)
    """

    def __init__(
        self,
        repository: "TrackingRepository",
        ua_parser: "UserAgentParser",
        geo_locator: "GeoLocator",
        clock: Callable[[], datetime] | None = None,
    ):
        self._repository = repository
        self._ua_parser = ua_parser
        self._geo_locator = geo_locator
        self._clock = clock or utc_now

    def record_open(self, hit: OpenHit) -> RecordOpenResult:
        """Record one beacon hit. Side effects only; failures are returned, not raised."""
        device_info = self._parse_user_agent(hit.user_agent)
        location = self._locate(hit.ip_address)

        record = TrackingRecord(
            email_id=hit.email_id,
            recipient_email=hit.recipient_email,
            campaign_id=hit.campaign_id,
            timestamp=self._clock(),
            ip_address=hit.ip_address,
            user_agent=hit.user_agent,
            device=device_info.device,
            browser=device_info.browser,
            os=device_info.os,
            location=location,
            open_count=1,
        )

        try:
            outcome = self._repository.upsert_open(record)
        except StoreError as e:
            logger.error("Failed to record open for %s: %s", hit.identity_key, e)
            return RecordOpenResult(outcome=OpenOutcome.FAILED, error=str(e))

        logger.debug("Open %s for %s", outcome.value, hit.identity_key)
        return RecordOpenResult(outcome=outcome)

    def _parse_user_agent(self, raw: str) -> DeviceInfo:
        if not raw:
            return DeviceInfo.unknown()
        try:
            return self._ua_parser.parse(raw)
        except Exception as e:
            logger.warning("User agent parse failed (%r): %s", raw[:120], e)
            return DeviceInfo.unknown()

    def _locate(self, ip: str) -> Location | None:
        if not ip:
            return None
        try:
            return self._geo_locator.lookup(ip)
        except Exception as e:
            logger.warning("Geolocation failed for %s: %s", ip, e)
            return None
