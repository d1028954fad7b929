# ==============================================================================
# Tracking HTTP Application
# ==============================================================================
"""
Flask application exposing the beacon, the stats API and the link helper.

Routes:
    GET  /pixel/<email_id>              1x1 GIF; records the open as a side effect
    GET  /api/tracking                  raw records (emailId, email, campaign filters)
    GET  /api/stats/email/<email_id>    EmailStats
    GET  /api/stats/campaign/<id>       CampaignStats
    POST /api/create-tracking           tracking URL + <img> snippet
    GET  /health                        store connectivity

The tracker and stats service are injected; the app holds no store handle of
its own.
"""

import base64
import logging

from flask import Flask, Response, jsonify, request

from pixeltrack.core.aggregation import StatsService
from pixeltrack.core.errors import StoreError, TrackingLinkError
from pixeltrack.core.ingestion import OpenTracker, utc_now
from pixeltrack.core.links import build_tracking_link
from pixeltrack.core.models import OpenHit
from pixeltrack.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

# 1x1 transparent GIF (42 bytes)
PIXEL_GIF = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")

PIXEL_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def client_ip(trust_forwarded_for: bool) -> str:
    """First X-Forwarded-For hop when trusted, else the socket peer address."""
    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.remote_addr or ""


def pixel_response() -> Response:
    return Response(PIXEL_GIF, status=200, mimetype="image/gif", headers=PIXEL_HEADERS)


def create_app(
    tracker: OpenTracker,
    stats: StatsService,
    settings: Settings | None = None,
) -> Flask:
    """
    Build the Flask app around the given engines.

    Args:
        tracker: Ingestion engine used by the beacon route
        stats: Aggregation engine used by the query routes
        settings: Application settings (defaults to get_settings())
    """
    settings = settings or get_settings()
    trust_forwarded_for = settings.server.trust_forwarded_for

    app = Flask(__name__)
    app.config["DEBUG"] = settings.debug

    @app.errorhandler(StoreError)
    def handle_store_error(error: StoreError):
        logger.error("Store error on %s: %s", request.path, error)
        return jsonify({"error": str(error)}), 500

    @app.errorhandler(TrackingLinkError)
    def handle_link_error(error: TrackingLinkError):
        return jsonify({"error": str(error)}), 400

    @app.get("/pixel/<email_id>")
    def pixel(email_id: str):
        try:
            hit = OpenHit(
                email_id=email_id,
                recipient_email=request.args.get("email"),
                campaign_id=request.args.get("campaign"),
                ip_address=client_ip(trust_forwarded_for),
                user_agent=request.headers.get("User-Agent"),
            )
            result = tracker.record_open(hit)
            if not result.ok:
                logger.warning("Open not recorded for %s: %s", email_id, result.error)
        except Exception:
            logger.exception("Unexpected error while recording open for %s", email_id)
        return pixel_response()

    @app.get("/api/tracking")
    def tracking_records():
        records = stats.list_records(
            email_id=request.args.get("emailId"),
            recipient_email=request.args.get("email"),
            campaign_id=request.args.get("campaign"),
        )
        return jsonify([record.to_json_dict() for record in records])

    @app.get("/api/stats/email/<email_id>")
    def email_stats(email_id: str):
        return jsonify(stats.email_stats(email_id).to_json_dict())

    @app.get("/api/stats/campaign/<campaign_id>")
    def campaign_stats(campaign_id: str):
        return jsonify(stats.campaign_stats(campaign_id).to_json_dict())

    @app.post("/api/create-tracking")
    def create_tracking():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise TrackingLinkError("Required parameters missing")

        link = build_tracking_link(
            email_id=payload.get("emailId"),
            recipient_email=payload.get("recipientEmail"),
            campaign_id=payload.get("campaignId"),
            base_url=payload.get("baseUrl"),
        )
        return jsonify(link.to_json_dict())

    @app.get("/health")
    def health():
        store_ok = stats.store_available()
        return jsonify(
            {
                "status": "healthy" if store_ok else "degraded",
                "store": store_ok,
                "timestamp": utc_now().isoformat(),
            }
        )

    return app
