# ==============================================================================
# Serve Command
# ==============================================================================
"""
Runs the pixel server in the foreground.
"""

from typing import Annotated, Optional

import typer

from pixeltrack.cli.shared import fail
from pixeltrack.core.errors import StoreError


def serve(
    host: Annotated[
        Optional[str], typer.Option("--host", help="Bind address (default: SERVER_HOST)")
    ] = None,
    port: Annotated[
        Optional[int], typer.Option("--port", "-p", help="Bind port (default: SERVER_PORT)")
    ] = None,
) -> None:
    """Serve the tracking pixel and stats API until interrupted.

    Examples:
        pixeltrack serve
        pixeltrack serve --port 8080
    """
    from pixeltrack.server_runner import ServerRunner

    try:
        ServerRunner(host=host, port=port).run()
    except StoreError as e:
        fail(f"Could not open event store: {e}")
