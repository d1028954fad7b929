# ==============================================================================
# Tests for the Flask Application
# ==============================================================================
"""
HTTP-level tests using Flask's test client.

Tests cover:
- Beacon: GIF body and no-cache headers, side effect on the store, client IP
  resolution, and the pixel still being served when ingestion fails
- Query, stats and link endpoints (JSON shapes and error statuses)
- Health endpoint
"""

from unittest.mock import MagicMock

import pytest

from pixeltrack.core.aggregation import StatsService
from pixeltrack.core.errors import StoreError
from pixeltrack.core.ingestion import OpenTracker
from pixeltrack.web.app import PIXEL_GIF, create_app

# ==============================================================================
# Beacon
# ==============================================================================


class TestPixel:
    """Tests for GET /pixel/<email_id>."""

    def test_returns_gif_with_no_cache_headers(self, client):
        response = client.get("/pixel/e1?email=r1")

        assert response.status_code == 200
        assert response.data == PIXEL_GIF
        assert len(response.data) == 42
        assert response.headers["Content-Type"] == "image/gif"
        assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
        assert response.headers["Pragma"] == "no-cache"
        assert response.headers["Expires"] == "0"

    def test_records_open(self, client, repository, mobile_ua):
        client.get(
            "/pixel/e1?email=r1&campaign=c1",
            headers={"User-Agent": mobile_ua},
            environ_base={"REMOTE_ADDR": "9.9.9.9"},
        )
        client.get(
            "/pixel/e1?email=r1&campaign=c1",
            headers={"User-Agent": mobile_ua},
            environ_base={"REMOTE_ADDR": "9.9.9.9"},
        )

        records = repository.find({})
        assert len(records) == 1
        assert records[0].open_count == 2
        assert records[0].campaign_id == "c1"
        assert records[0].ip_address == "9.9.9.9"
        assert records[0].device == "mobile"

    def test_first_forwarded_hop_is_client_ip(self, client, repository):
        client.get(
            "/pixel/e1?email=r1",
            headers={"X-Forwarded-For": "8.8.8.8, 10.0.0.1"},
            environ_base={"REMOTE_ADDR": "10.0.0.2"},
        )

        record = repository.find({})[0]
        assert record.ip_address == "8.8.8.8"
        assert record.country == "US"

    def test_forwarded_for_ignored_when_untrusted(self, tracker, stats, settings, repository):
        settings.server.trust_forwarded_for = False
        client = create_app(tracker, stats, settings).test_client()

        client.get(
            "/pixel/e1",
            headers={"X-Forwarded-For": "8.8.8.8"},
            environ_base={"REMOTE_ADDR": "10.0.0.2"},
        )

        assert repository.find({})[0].ip_address == "10.0.0.2"

    def test_missing_email_param(self, client, repository):
        client.get("/pixel/e1")

        assert repository.find({})[0].recipient_email == ""

    def test_store_failure_still_serves_pixel(self, parser, locator, stats, settings):
        repository = MagicMock()
        repository.upsert_open.side_effect = StoreError("connection refused")
        client = create_app(OpenTracker(repository, parser, locator), stats, settings).test_client()

        response = client.get("/pixel/e1?email=r1")

        assert response.status_code == 200
        assert response.data == PIXEL_GIF
        assert response.headers["Content-Type"] == "image/gif"
        assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
        assert response.headers["Pragma"] == "no-cache"
        assert response.headers["Expires"] == "0"

    def test_unexpected_error_still_serves_pixel(self, stats, settings):
        tracker = MagicMock()
        tracker.record_open.side_effect = RuntimeError("boom")
        client = create_app(tracker, stats, settings).test_client()

        response = client.get("/pixel/e1")

        assert response.status_code == 200
        assert response.data == PIXEL_GIF


# ==============================================================================
# Query and stats API
# ==============================================================================


class TestApi:
    """Tests for the JSON endpoints."""

    @pytest.fixture(autouse=True)
    def _opens(self, client):
        client.get("/pixel/e1?email=r1&campaign=c1", environ_base={"REMOTE_ADDR": "8.8.8.8"})
        client.get("/pixel/e1?email=r1&campaign=c1", environ_base={"REMOTE_ADDR": "8.8.8.8"})
        client.get("/pixel/e1?email=r2&campaign=c1", environ_base={"REMOTE_ADDR": "8.8.8.8"})

    def test_tracking_records(self, client):
        response = client.get("/api/tracking?emailId=e1&email=r1")

        assert response.status_code == 200
        body = response.get_json()
        assert len(body) == 1
        assert body[0]["emailId"] == "e1"
        assert body[0]["recipientEmail"] == "r1"
        assert body[0]["openCount"] == 2
        assert body[0]["location"]["country"] == "US"

    def test_tracking_records_by_campaign(self, client):
        body = client.get("/api/tracking?campaign=c1").get_json()

        assert len(body) == 2

    def test_email_stats(self, client):
        body = client.get("/api/stats/email/e1").get_json()

        assert body["totalOpens"] == 3
        assert body["uniqueOpens"] == 2
        assert body["deviceStats"] == {"unknown": 2}
        assert body["locationStats"] == {"US": 2}

    def test_campaign_stats(self, client):
        body = client.get("/api/stats/campaign/c1").get_json()

        assert body["campaignId"] == "c1"
        assert body["totalEmails"] == 1
        assert body["totalRecipients"] == 2
        assert body["totalOpens"] == 3
        assert {row["recipientEmail"]: row["openCount"] for row in body["opensByEmail"]} == {
            "r1": 2,
            "r2": 1,
        }

    def test_unknown_email_is_zero(self, client):
        body = client.get("/api/stats/email/nope").get_json()

        assert body["totalOpens"] == 0
        assert body["deviceStats"] == {}


class TestApiErrors:
    """Store failures surface as HTTP 500 with an error body."""

    @pytest.fixture()
    def failing_client(self, tracker, settings):
        repository = MagicMock()
        repository.sum_opens.side_effect = StoreError("statement timeout")
        repository.find.side_effect = StoreError("statement timeout")
        repository.ping.return_value = False
        return create_app(tracker, StatsService(repository), settings).test_client()

    def test_stats_store_error(self, failing_client):
        response = failing_client.get("/api/stats/email/e1")

        assert response.status_code == 500
        assert response.get_json() == {"error": "statement timeout"}

    def test_records_store_error(self, failing_client):
        response = failing_client.get("/api/tracking")

        assert response.status_code == 500

    def test_health_degraded(self, failing_client):
        body = failing_client.get("/health").get_json()

        assert body["status"] == "degraded"
        assert body["store"] is False


# ==============================================================================
# Link helper and health
# ==============================================================================


class TestCreateTracking:
    """Tests for POST /api/create-tracking."""

    def test_creates_link(self, client, repository):
        response = client.post(
            "/api/create-tracking",
            json={
                "emailId": "welcome",
                "recipientEmail": "ann@example.com",
                "campaignId": "spring",
                "baseUrl": "https://t.example.com",
            },
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["trackingUrl"] == (
            "https://t.example.com/pixel/welcome?email=ann%40example.com&campaign=spring"
        )
        assert body["trackingHtml"].startswith('<img src="https://t.example.com/pixel/welcome')
        # Nothing is stored until the pixel is requested
        assert repository.find({}) == []

    def test_missing_parameters(self, client):
        response = client.post("/api/create-tracking", json={"emailId": "welcome"})

        assert response.status_code == 400
        assert response.get_json() == {"error": "Required parameters missing"}

    def test_non_json_body(self, client):
        response = client.post("/api/create-tracking", data="not json")

        assert response.status_code == 400


class TestHealth:
    def test_healthy(self, client):
        body = client.get("/health").get_json()

        assert body["status"] == "healthy"
        assert body["store"] is True
        assert "timestamp" in body
