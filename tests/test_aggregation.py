# ==============================================================================
# Tests for StatsService (aggregation)
# ==============================================================================
"""
Unit tests for per-email and per-campaign rollups.

The canonical fixture is two records for email e1 from the same address:
r1 opened three times on mobile, r2 once on desktop. Records are written
through the real OpenTracker into the fakeredis-backed repository.
"""

from unittest.mock import MagicMock

import pytest

from pixeltrack.core.aggregation import StatsService
from pixeltrack.core.errors import StoreError
from pixeltrack.core.models import OpenHit, RecordField


@pytest.fixture()
def two_recipients(tracker, clock, mobile_ua, desktop_ua):
    """{(e1, r1, ip1, 3 opens, mobile), (e1, r2, ip1, 1 open, desktop)} in campaign c1."""
    for _ in range(3):
        tracker.record_open(
            OpenHit(
                email_id="e1",
                recipient_email="r1",
                campaign_id="c1",
                ip_address="8.8.8.8",
                user_agent=mobile_ua,
            )
        )
        clock.advance(minutes=1)
    tracker.record_open(
        OpenHit(
            email_id="e1",
            recipient_email="r2",
            campaign_id="c1",
            ip_address="8.8.8.8",
            user_agent=desktop_ua,
        )
    )
    return clock.now


# ==============================================================================
# email_stats
# ==============================================================================


class TestEmailStats:
    """Tests for StatsService.email_stats()."""

    def test_totals(self, stats, two_recipients):
        result = stats.email_stats("e1")

        assert result.total_opens == 4
        assert result.unique_opens == 2

    def test_device_and_browser_tables_count_records(self, stats, two_recipients):
        result = stats.email_stats("e1")

        assert result.device_stats == {"mobile": 1, "desktop": 1}
        assert result.browser_stats == {"Mobile Safari 17.0": 1, "Chrome 120.0.0": 1}
        assert result.location_stats == {"US": 2}

    def test_records_without_location_are_not_grouped(self, tracker, stats):
        tracker.record_open(OpenHit(email_id="e2", recipient_email="r1", ip_address="10.0.0.1"))
        tracker.record_open(OpenHit(email_id="e2", recipient_email="r2", ip_address="8.8.8.8"))

        result = stats.email_stats("e2")

        assert result.unique_opens == 2
        assert result.location_stats == {"US": 1}

    def test_unknown_email_is_all_zero(self, stats):
        result = stats.email_stats("missing")

        assert result.total_opens == 0
        assert result.unique_opens == 0
        assert result.device_stats == {}
        assert result.browser_stats == {}
        assert result.location_stats == {}

    def test_json_uses_camel_case(self, stats, two_recipients):
        payload = stats.email_stats("e1").to_json_dict()

        assert payload["emailId"] == "e1"
        assert payload["totalOpens"] == 4
        assert payload["uniqueOpens"] == 2
        assert set(payload) == {
            "emailId",
            "totalOpens",
            "uniqueOpens",
            "deviceStats",
            "browserStats",
            "locationStats",
        }


# ==============================================================================
# campaign_stats
# ==============================================================================


class TestCampaignStats:
    """Tests for StatsService.campaign_stats()."""

    def test_rollup(self, stats, two_recipients):
        result = stats.campaign_stats("c1")

        assert result.total_emails == 1
        assert result.total_recipients == 2
        assert result.total_opens == 4

    def test_opens_by_recipient(self, stats, two_recipients, clock):
        result = stats.campaign_stats("c1")

        by_recipient = {row.recipient_email: row for row in result.opens_by_email}
        assert by_recipient["r1"].open_count == 3
        assert by_recipient["r2"].open_count == 1
        assert by_recipient["r2"].last_opened == two_recipients

    def test_recipient_across_emails_is_summed(self, tracker, stats, clock):
        """One recipient opening two campaign emails is one group with both counts."""
        tracker.record_open(OpenHit(email_id="e1", recipient_email="r1", campaign_id="c9"))
        latest = clock.advance(hours=1)
        tracker.record_open(OpenHit(email_id="e2", recipient_email="r1", campaign_id="c9"))
        tracker.record_open(OpenHit(email_id="e2", recipient_email="r1", campaign_id="c9"))

        result = stats.campaign_stats("c9")

        assert result.total_emails == 2
        assert result.total_recipients == 1
        assert len(result.opens_by_email) == 1
        assert result.opens_by_email[0].open_count == 3
        assert result.opens_by_email[0].last_opened == latest

    def test_unknown_campaign_is_empty(self, stats):
        result = stats.campaign_stats("missing")

        assert result.total_emails == 0
        assert result.total_recipients == 0
        assert result.total_opens == 0
        assert result.opens_by_email == []


# ==============================================================================
# list_records
# ==============================================================================


class TestListRecords:
    """Tests for StatsService.list_records()."""

    def test_newest_first(self, stats, two_recipients):
        records = stats.list_records(email_id="e1")

        assert [r.recipient_email for r in records] == ["r2", "r1"]

    def test_filters_combine(self, stats, two_recipients):
        records = stats.list_records(email_id="e1", recipient_email="r1")

        assert len(records) == 1
        assert records[0].open_count == 3

    def test_empty_filters_are_ignored(self):
        repository = MagicMock()
        repository.find.return_value = []

        StatsService(repository).list_records(email_id="e1", recipient_email="", campaign_id=None)

        repository.find.assert_called_once_with({RecordField.EMAIL_ID: "e1"})

    def test_store_error_propagates(self):
        repository = MagicMock()
        repository.sum_opens.side_effect = StoreError("timeout")

        with pytest.raises(StoreError):
            StatsService(repository).email_stats("e1")
