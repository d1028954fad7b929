# ==============================================================================
# pixeltrack Utilities
# ==============================================================================
"""
Shared utilities: configuration, schema bootstrap and retry helpers.
"""

from pixeltrack.utils.config import (
    GeoIPSettings,
    PostgresSettings,
    ServerSettings,
    Settings,
    StoreSettings,
    ValkeySettings,
    get_settings,
)
from pixeltrack.utils.db import (
    ensure_schema,
    render_schema_sql,
    reset_schema,
)

__all__ = [
    # Config
    "GeoIPSettings",
    "PostgresSettings",
    "ServerSettings",
    "Settings",
    "StoreSettings",
    "ValkeySettings",
    "get_settings",
    # Database
    "ensure_schema",
    "render_schema_sql",
    "reset_schema",
]
