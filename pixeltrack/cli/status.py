# ==============================================================================
# Status Command
# ==============================================================================
"""
Status command for the pixeltrack CLI.

Displays store connectivity and enrichment configuration in either formatted
box output or JSON format for programmatic consumption.
"""

import json as json_module
from typing import Annotated, Any

import typer

from pixeltrack.cli.shared import (
    BOX_WIDTH,
    C,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header_plain,
    _status_badge,
)
from pixeltrack.infrastructure.repositories import (
    check_postgresql_connection,
    check_valkey_connection,
)
from pixeltrack.utils.config import get_settings


# ==============================================================================
# Data Collection
# ==============================================================================


def _collect_status() -> dict[str, Any]:
    settings = get_settings()
    backend = settings.store.backend

    if backend == "valkey":
        reachable = check_valkey_connection(settings)
        target = f"{settings.valkey.host}:{settings.valkey.port}/{settings.valkey.db}"
    else:
        reachable = check_postgresql_connection(settings)
        target = (
            f"{settings.postgres.host}:{settings.postgres.port}/"
            f"{settings.postgres.database}.{settings.postgres.schema_name}"
        )

    return {
        "store": {
            "backend": backend,
            "target": target,
            "reachable": reachable,
        },
        "geoip": {
            "configured": settings.geoip.is_configured,
            "database_path": (
                str(settings.geoip.database_path) if settings.geoip.database_path else None
            ),
        },
        "server": {
            "listen": f"{settings.server.host}:{settings.server.port}",
        },
    }


# ==============================================================================
# Commands
# ==============================================================================


def show_status(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show event store connectivity and enrichment configuration.

    Exits with status 1 when the configured store is unreachable.

    Examples:
        pixeltrack status
        pixeltrack status --json
    """
    status = _collect_status()
    store = status["store"]

    if json_output:
        print(json_module.dumps(status, indent=2))
        if not store["reachable"]:
            raise typer.Exit(1)
        return

    W = BOX_WIDTH
    print()
    print(_box_header("PIXELTRACK STATUS", W))
    print(_empty_line(W))

    print(_section_header_plain("Event store", W))
    badge, _ = _status_badge(
        "reachable" if store["reachable"] else "unreachable", store["reachable"]
    )
    print(_box_line(f"  {'Backend':<12}{C.WHITE}{store['backend']}{C.RESET}", W))
    print(_box_line(f"  {'Target':<12}{C.WHITE}{store['target']}{C.RESET}", W))
    print(_box_line(f"  {'Status':<12}{badge}", W))
    print(_empty_line(W))

    print(_section_header_plain("Enrichment", W))
    geoip = status["geoip"]
    if geoip["configured"]:
        print(_box_line(f"  {'GeoIP':<12}{C.WHITE}{geoip['database_path']}{C.RESET}", W))
    else:
        print(_box_line(f"  {'GeoIP':<12}{C.DIM}not configured{C.RESET}", W))
    print(_box_line(f"  {'Server':<12}{C.WHITE}{status['server']['listen']}{C.RESET}", W))
    print(_empty_line(W))
    print(_box_bottom(W))
    print()

    if not store["reachable"]:
        raise typer.Exit(1)
