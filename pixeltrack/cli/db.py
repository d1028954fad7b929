# ==============================================================================
# Database Commands
# ==============================================================================
"""
Schema management commands for the PostgreSQL event store.

The Valkey backend keeps no schema; these commands only touch PostgreSQL.
"""

from typing import Annotated

import psycopg2
import typer

from pixeltrack.cli.shared import C, I, fail
from pixeltrack.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def db_init() -> None:
    """Create the tracking schema if it does not exist.

    Retries while PostgreSQL is starting (up to ~60 seconds).

    Examples:
        pixeltrack db init
    """
    from pixeltrack.utils.db import ensure_schema

    settings = get_settings()
    if settings.store.backend != "postgresql":
        print(
            f"\n  {C.BRIGHT_YELLOW}{I.WARN} Store backend is '{settings.store.backend}'; "
            f"PostgreSQL schema is not used{C.RESET}"
        )

    schema_name = settings.postgres.schema_name
    print()
    print(f"  Initializing schema '{schema_name}'...")
    try:
        created = ensure_schema(settings)
    except (RuntimeError, psycopg2.Error) as e:
        fail(f"Schema initialization failed: {e}")

    if created:
        print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema_name}' created{C.RESET}")
    else:
        print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema_name}' already exists{C.RESET}")
    print()


def db_reset(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Drop and recreate the tracking schema (deletes all tracking data).

    Examples:
        pixeltrack db reset       # With confirmation prompt
        pixeltrack db reset -y    # Skip confirmation
    """
    from pixeltrack.utils.db import reset_schema

    settings = get_settings()
    schema_name = settings.postgres.schema_name

    if not confirm:
        print()
        if not typer.confirm(f"  Drop schema '{schema_name}' and all tracking data?"):
            print(f"  {C.DIM}Aborted{C.RESET}")
            raise typer.Exit(0)

    print()
    print(f"  Resetting schema '{schema_name}'...")
    try:
        reset_schema(settings)
    except RuntimeError as e:
        fail(str(e))

    print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema_name}' recreated{C.RESET}")
    print()
