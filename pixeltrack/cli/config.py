# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the pixeltrack CLI.
"""

import json
from typing import Annotated

import typer

from pixeltrack.cli.shared import C
from pixeltrack.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    if json_output:
        config = {
            "store": {
                "backend": settings.store.backend,
            },
            "postgresql": {
                "host": settings.postgres.host,
                "port": settings.postgres.port,
                "database": settings.postgres.database,
                "schema": settings.postgres.schema_name,
                "user": settings.postgres.user,
                "password": settings.postgres.password,
                "sslmode": settings.postgres.sslmode,
                "pool_min_size": settings.postgres.pool_min_size,
                "pool_max_size": settings.postgres.pool_max_size,
                "statement_timeout_ms": settings.postgres.statement_timeout_ms,
            },
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
                "key_prefix": settings.valkey.key_prefix,
            },
            "geoip": {
                "database_path": (
                    str(settings.geoip.database_path) if settings.geoip.database_path else None
                ),
            },
            "server": {
                "host": settings.server.host,
                "port": settings.server.port,
                "trust_forwarded_for": settings.server.trust_forwarded_for,
            },
            "debug": settings.debug,
            "log_level": settings.log_level,
        }
        print(json.dumps(config, indent=2))
        return

    # Human-readable output
    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Store{C.RESET}")
    print(f"  Backend:    {C.WHITE}{settings.store.backend}{C.RESET}")
    print()

    print(f"{C.CYAN}PostgreSQL{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.postgres.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.postgres.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{settings.postgres.database}{C.RESET}")
    print(f"  Schema:     {C.WHITE}{settings.postgres.schema_name}{C.RESET}")
    print(f"  User:       {C.WHITE}{settings.postgres.user}{C.RESET}")
    print(f"  SSL:        {C.WHITE}{settings.postgres.sslmode}{C.RESET}")
    pool = f"{settings.postgres.pool_min_size}..{settings.postgres.pool_max_size}"
    print(f"  Pool:       {C.WHITE}{pool}{C.RESET}")
    print()

    print(f"{C.CYAN}Valkey{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.valkey.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.valkey.port}{C.RESET}")
    valkey_ssl = "enabled" if settings.valkey.ssl else "disabled"
    print(f"  SSL:        {C.WHITE}{valkey_ssl}{C.RESET}")
    print(f"  Prefix:     {C.WHITE}{settings.valkey.key_prefix}{C.RESET}")
    print()

    print(f"{C.CYAN}GeoIP{C.RESET}")
    if settings.geoip.is_configured:
        print(f"  Database:   {C.WHITE}{settings.geoip.database_path}{C.RESET}")
    else:
        print(f"  Database:   {C.DIM}not configured{C.RESET}")
    print()

    print(f"{C.CYAN}Server{C.RESET}")
    print(f"  Listen:     {C.WHITE}{settings.server.host}:{settings.server.port}{C.RESET}")
    forwarded = "trusted" if settings.server.trust_forwarded_for else "ignored"
    print(f"  X-Fwd-For:  {C.WHITE}{forwarded}{C.RESET}")
    print(f"  Log level:  {C.WHITE}{settings.log_level}{C.RESET}")
    print()
