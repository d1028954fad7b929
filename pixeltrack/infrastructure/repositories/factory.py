# ==============================================================================
# Repository Factory
# ==============================================================================
"""
Factory function for creating the configured tracking repository.

Uses STORE_BACKEND environment variable (via config) to determine
which implementation to use.
"""

from pixeltrack.base.repositories import TrackingRepository
from pixeltrack.utils.config import Settings, get_settings


def get_tracking_repository(settings: Settings | None = None) -> TrackingRepository:
    """
    Get an (unconnected) repository instance based on configuration.

    The backend is determined by the STORE_BACKEND environment variable:
    - "postgresql" (default): one row per identity key, SQL upsert
    - "valkey": one hash per identity key, MULTI/EXEC upsert

    Returns:
        TrackingRepository for the configured backend; call connect() before use

    Raises:
        ValueError: If an unknown backend is configured
    """
    settings = settings or get_settings()
    backend = settings.store.backend

    match backend:
        case "postgresql":
            from pixeltrack.infrastructure.repositories.postgresql import (
                PostgreSQLTrackingRepository,
            )

            return PostgreSQLTrackingRepository(settings)
        case "valkey":
            from pixeltrack.infrastructure.repositories.valkey import ValkeyTrackingRepository

            return ValkeyTrackingRepository(settings=settings)
        case _:
            raise ValueError(
                f"Unknown store backend: '{backend}'.\n"
                "Valid options are: postgresql, valkey"
            )
