# ==============================================================================
# Stats Aggregation Engine
# ==============================================================================
"""
Read-side rollups over the tracking event store.

Each stat is one aggregate primitive of the repository (count, sum, group
count, distinct count, group sum/max) over an equality filter. Nothing here
mutates the store; results are a best-effort snapshot while opens keep
arriving.

StoreError is not caught here: callers report it as an explicit failure.
"""

import logging
from typing import TYPE_CHECKING

from pixeltrack.core.models import (
    CampaignStats,
    EmailStats,
    RecipientOpens,
    RecordField,
    TrackingRecord,
)

if TYPE_CHECKING:
    from pixeltrack.base.repositories import TrackingRepository

logger = logging.getLogger(__name__)


class StatsService:
    """Aggregation engine for per-email and per-campaign statistics."""

    def __init__(self, repository: "TrackingRepository"):
        self._repository = repository

    def email_stats(self, email_id: str) -> EmailStats:
        """
        Compute the rollup for one email.

        unique_opens counts identity keys, so one recipient opening from two
        addresses counts twice. Device, browser and location tables count
        records, not opens.
        """
        filters = {RecordField.EMAIL_ID: email_id}
        repo = self._repository

        return EmailStats(
            email_id=email_id,
            total_opens=repo.sum_opens(filters),
            unique_opens=repo.count(filters),
            device_stats=repo.count_by(filters, RecordField.DEVICE),
            browser_stats=repo.count_by(filters, RecordField.BROWSER),
            location_stats=repo.count_by(filters, RecordField.COUNTRY),
        )

    def campaign_stats(self, campaign_id: str) -> CampaignStats:
        """Compute the rollup for one campaign."""
        filters = {RecordField.CAMPAIGN_ID: campaign_id}
        repo = self._repository

        opens_by_email = [
            RecipientOpens(
                recipient_email=group.key,
                open_count=group.open_count,
                last_opened=group.last_opened,
            )
            for group in repo.opens_by(filters, RecordField.RECIPIENT_EMAIL)
        ]

        return CampaignStats(
            campaign_id=campaign_id,
            total_emails=repo.count_distinct(filters, RecordField.EMAIL_ID),
            total_recipients=repo.count_distinct(filters, RecordField.RECIPIENT_EMAIL),
            total_opens=repo.sum_opens(filters),
            opens_by_email=opens_by_email,
        )

    def list_records(
        self,
        email_id: str | None = None,
        recipient_email: str | None = None,
        campaign_id: str | None = None,
    ) -> list[TrackingRecord]:
        """Raw records matching every given filter (None filters are ignored)."""
        candidates = {
            RecordField.EMAIL_ID: email_id,
            RecordField.RECIPIENT_EMAIL: recipient_email,
            RecordField.CAMPAIGN_ID: campaign_id,
        }
        filters = {field: value for field, value in candidates.items() if value}
        logger.debug("Listing records with filters %s", filters)
        return self._repository.find(filters)

    def store_available(self) -> bool:
        return self._repository.ping()
