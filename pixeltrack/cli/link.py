# ==============================================================================
# Link Command
# ==============================================================================
"""
Generates the tracking pixel URL and <img> snippet for an outgoing email.
"""

import json
from typing import Annotated, Optional

import typer

from pixeltrack.cli.shared import C, fail
from pixeltrack.core.errors import TrackingLinkError
from pixeltrack.core.links import build_tracking_link


def create_link(
    email_id: Annotated[str, typer.Argument(help="Tracked email identifier")],
    recipient: Annotated[str, typer.Argument(help="Recipient email address")],
    base_url: Annotated[
        str, typer.Option("--base-url", "-u", help="Public base URL of the pixel server")
    ],
    campaign: Annotated[
        Optional[str], typer.Option("--campaign", "-c", help="Campaign identifier")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Build a tracking link (nothing is stored until the pixel is loaded).

    Examples:
        pixeltrack link welcome-2024 ann@example.com --base-url https://t.example.com
        pixeltrack link welcome-2024 ann@example.com -u https://t.example.com -c spring --json
    """
    try:
        link = build_tracking_link(email_id, recipient, campaign, base_url)
    except TrackingLinkError as e:
        fail(str(e), json_output)

    if json_output:
        print(json.dumps(link.to_json_dict(), indent=2))
        return

    print()
    print(f"{C.CYAN}Tracking URL{C.RESET}")
    print(f"  {C.WHITE}{link.tracking_url}{C.RESET}")
    print()
    print(f"{C.CYAN}HTML{C.RESET}")
    print(f"  {link.tracking_html}")
    print()
