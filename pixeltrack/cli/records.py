# ==============================================================================
# Records Command
# ==============================================================================
"""
Lists raw tracking records, newest first.
"""

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from pixeltrack.cli.shared import C, I, stats_service


def show_records(
    email_id: Annotated[
        Optional[str], typer.Option("--email-id", "-e", help="Filter by email id")
    ] = None,
    recipient: Annotated[
        Optional[str], typer.Option("--recipient", "-r", help="Filter by recipient email")
    ] = None,
    campaign: Annotated[
        Optional[str], typer.Option("--campaign", "-c", help="Filter by campaign id")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List tracking records matching all given filters.

    Examples:
        pixeltrack records
        pixeltrack records --email-id welcome-2024
        pixeltrack records -c spring-sale --json
    """
    with stats_service(json_output) as service:
        records = service.list_records(
            email_id=email_id,
            recipient_email=recipient,
            campaign_id=campaign,
        )

    if json_output:
        print(json.dumps([record.to_json_dict() for record in records], indent=2))
        return

    if not records:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No tracking records found{C.RESET}\n")
        return

    table = Table(title=f"Tracking records ({len(records)})", show_header=True, header_style="bold")
    table.add_column("Email")
    table.add_column("Recipient")
    table.add_column("Campaign")
    table.add_column("IP")
    table.add_column("Device")
    table.add_column("Browser")
    table.add_column("Country")
    table.add_column("Opens", justify="right")
    table.add_column("Last opened")

    for record in records:
        table.add_row(
            record.email_id,
            record.recipient_email,
            record.campaign_id or "",
            record.ip_address,
            record.device,
            record.browser,
            record.country or "",
            f"{record.open_count:,}",
            record.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        )

    print()
    Console().print(table)
    print()
