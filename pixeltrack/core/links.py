# ==============================================================================
# Tracking Link Builder
# ==============================================================================
"""
Builds the pixel URL and the <img> snippet to embed in an outgoing email.

Pure string work: nothing is persisted, and no record exists until the pixel
is actually requested.
"""

from urllib.parse import quote

from jinja2 import Environment

from pixeltrack.core.errors import TrackingLinkError
from pixeltrack.core.models import TrackingLink

# Characters encodeURIComponent leaves untouched besides alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"

_env = Environment(autoescape=True)
_PIXEL_TEMPLATE = _env.from_string(
    '<img src="{{ url }}" width="1" height="1" alt="" style="display:none;">'
)


def _encode(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def build_tracking_link(
    email_id: str | None,
    recipient_email: str | None,
    campaign_id: str | None,
    base_url: str | None,
) -> TrackingLink:
    """
    Build the tracking URL and HTML snippet for one (email, recipient) pair.

    Args:
        email_id: Tracked message identifier (required)
        recipient_email: Addressee (required)
        campaign_id: Optional campaign identifier
        base_url: Public base URL of the pixel server (required)

    Returns:
        TrackingLink with the URL and the <img> snippet

    Raises:
        TrackingLinkError: If a required value is missing or empty
    """
    if not email_id or not recipient_email or not base_url:
        raise TrackingLinkError("Required parameters missing")

    url = f"{base_url.rstrip('/')}/pixel/{_encode(email_id)}?email={_encode(recipient_email)}"
    if campaign_id:
        url += f"&campaign={_encode(campaign_id)}"

    return TrackingLink(tracking_url=url, tracking_html=_PIXEL_TEMPLATE.render(url=url))
