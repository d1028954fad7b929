# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for external services (ports-and-adapters architecture).

- repositories/ - Event store adapters (PostgreSQL, Valkey)
- enrichment.py - User-agent parsing and GeoIP lookup
"""

from pixeltrack.infrastructure.enrichment import (
    GeoIP2Locator,
    NullGeoLocator,
    UserAgentsParser,
    get_geo_locator,
)
from pixeltrack.infrastructure.repositories import (
    PostgreSQLTrackingRepository,
    ValkeyTrackingRepository,
    check_postgresql_connection,
    check_valkey_connection,
    get_tracking_repository,
)

__all__ = [
    # Enrichment
    "GeoIP2Locator",
    "NullGeoLocator",
    "UserAgentsParser",
    "get_geo_locator",
    # Repositories
    "PostgreSQLTrackingRepository",
    "ValkeyTrackingRepository",
    "check_postgresql_connection",
    "check_valkey_connection",
    "get_tracking_repository",
]
