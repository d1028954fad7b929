# ==============================================================================
# Event Store Repository Adapters
# ==============================================================================
"""
Adapters implementing TrackingRepository from base/repositories.py.

Currently supported:
- PostgreSQL (postgresql.py)
- Valkey/Redis (valkey.py)
"""

from pixeltrack.infrastructure.repositories.factory import get_tracking_repository
from pixeltrack.infrastructure.repositories.postgresql import (
    PostgreSQLTrackingRepository,
    check_postgresql_connection,
)
from pixeltrack.infrastructure.repositories.valkey import (
    ValkeyTrackingRepository,
    check_valkey_connection,
)

__all__ = [
    "PostgreSQLTrackingRepository",
    "ValkeyTrackingRepository",
    "check_postgresql_connection",
    "check_valkey_connection",
    "get_tracking_repository",
]
