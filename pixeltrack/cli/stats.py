# ==============================================================================
# Stats Commands
# ==============================================================================
"""
Open statistics commands for the pixeltrack CLI.

Shows per-email and per-campaign rollups from the configured event store.
"""

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from pixeltrack.cli.shared import (
    BOX_WIDTH,
    C,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    stats_service,
)


# ==============================================================================
# Helper Functions
# ==============================================================================


def _count_table(title: str, counts: dict[str, int]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column(title.split()[0], justify="left")
    table.add_column("Records", justify="right")
    for key, count in sorted(counts.items(), key=lambda item: (-item[1], item[0])):
        table.add_row(key, f"{count:,}")
    return table


# ==============================================================================
# Commands
# ==============================================================================


def stats_email(
    email_id: Annotated[str, typer.Argument(help="Tracked email identifier")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show open statistics for one email.

    Total opens counts every pixel request; unique opens counts distinct
    (recipient, IP address) pairs. Device, browser and location tables
    count unique opens.

    Examples:
        pixeltrack stats email welcome-2024
        pixeltrack stats email welcome-2024 --json
    """
    with stats_service(json_output) as service:
        stats = service.email_stats(email_id)

    if json_output:
        print(json.dumps(stats.to_json_dict(), indent=2))
        return

    W = BOX_WIDTH
    print()
    print(_box_header(f"EMAIL {email_id}", W))
    print(_empty_line(W))
    print(_box_line(f"  {'Total opens':<20}{C.WHITE}{stats.total_opens:>12,}{C.RESET}", W))
    print(_box_line(f"  {'Unique opens':<20}{C.WHITE}{stats.unique_opens:>12,}{C.RESET}", W))
    print(_empty_line(W))
    print(_box_bottom(W))

    if stats.unique_opens == 0:
        print()
        return

    console = Console()
    print()
    console.print(_count_table("Device", stats.device_stats))
    console.print(_count_table("Browser", stats.browser_stats))
    if stats.location_stats:
        console.print(_count_table("Country", stats.location_stats))
    print()


def stats_campaign(
    campaign_id: Annotated[str, typer.Argument(help="Campaign identifier")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show open statistics for one campaign.

    Examples:
        pixeltrack stats campaign spring-sale
        pixeltrack stats campaign spring-sale --json
    """
    with stats_service(json_output) as service:
        stats = service.campaign_stats(campaign_id)

    if json_output:
        print(json.dumps(stats.to_json_dict(), indent=2))
        return

    W = BOX_WIDTH
    print()
    print(_box_header(f"CAMPAIGN {campaign_id}", W))
    print(_empty_line(W))
    print(_box_line(f"  {'Emails':<20}{C.WHITE}{stats.total_emails:>12,}{C.RESET}", W))
    print(_box_line(f"  {'Recipients':<20}{C.WHITE}{stats.total_recipients:>12,}{C.RESET}", W))
    print(_box_line(f"  {'Total opens':<20}{C.WHITE}{stats.total_opens:>12,}{C.RESET}", W))
    print(_empty_line(W))
    print(_box_bottom(W))

    if not stats.opens_by_email:
        print()
        return

    table = Table(title="Opens by recipient", show_header=True, header_style="bold")
    table.add_column("Recipient", justify="left")
    table.add_column("Opens", justify="right")
    table.add_column("Last opened", justify="left")
    for row in stats.opens_by_email:
        table.add_row(
            row.recipient_email or "(none)",
            f"{row.open_count:,}",
            row.last_opened.strftime("%Y-%m-%d %H:%M:%S %Z"),
        )

    print()
    Console().print(table)
    print()
