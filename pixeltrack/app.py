# ==============================================================================
# pixeltrack CLI
# ==============================================================================
"""
Command-line interface for the email open-tracking pixel server.

Usage:
    pixeltrack --help
    pixeltrack serve --port 5000
    pixeltrack status
    pixeltrack config show
    pixeltrack db init
    pixeltrack db reset -y
    pixeltrack stats email <email_id>
    pixeltrack stats campaign <campaign_id>
    pixeltrack records --campaign <campaign_id>
    pixeltrack link <email_id> <recipient> --base-url https://t.example.com
"""

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
import os

import typer

if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="pixeltrack",
    help="Email open-tracking pixel server CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Serve command is imported from pixeltrack.cli.serve
from pixeltrack.cli.serve import serve

app.command("serve")(serve)

db_app = typer.Typer(
    help="PostgreSQL schema management",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")

from pixeltrack.cli.db import db_init, db_reset

db_app.command("init")(db_init)
db_app.command("reset")(db_reset)

stats_app = typer.Typer(
    help="Open statistics",
    no_args_is_help=True,
)
app.add_typer(stats_app, name="stats")

from pixeltrack.cli.stats import stats_campaign, stats_email

stats_app.command("email")(stats_email)
stats_app.command("campaign")(stats_campaign)

from pixeltrack.cli.records import show_records

app.command("records")(show_records)

from pixeltrack.cli.link import create_link

app.command("link")(create_link)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from pixeltrack.cli.config import config_show

config_app.command("show")(config_show)

from pixeltrack.cli.status import show_status

app.command("status")(show_status)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
