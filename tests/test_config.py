# ==============================================================================
# Tests for Configuration and Backend Selection
# ==============================================================================
"""
Tests for pydantic-settings environment loading and the repository factory.
"""

import pytest
from pydantic import ValidationError

from pixeltrack.infrastructure.repositories import (
    PostgreSQLTrackingRepository,
    ValkeyTrackingRepository,
    get_tracking_repository,
)
from pixeltrack.utils.config import Settings, get_settings

# ==============================================================================
# Settings
# ==============================================================================


class TestSettings:
    """Tests for environment variable loading."""

    def test_defaults(self, monkeypatch):
        for name in ("STORE_BACKEND", "SERVER_PORT", "SERVER_TRUST_FORWARDED_FOR"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.store.backend == "postgresql"
        assert settings.server.port == 5000
        assert settings.server.trust_forwarded_for is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "valkey")
        monkeypatch.setenv("SERVER_PORT", "8080")
        monkeypatch.setenv("PG_STATEMENT_TIMEOUT_MS", "250")
        monkeypatch.setenv("VALKEY_KEY_PREFIX", "tenant-a")
        monkeypatch.setenv("GEOIP_DATABASE_PATH", "/data/GeoLite2-City.mmdb")

        settings = Settings()

        assert settings.store.backend == "valkey"
        assert settings.server.port == 8080
        assert settings.postgres.statement_timeout_ms == 250
        assert settings.valkey.key_prefix == "tenant-a"
        assert settings.geoip.is_configured

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "mongodb")

        with pytest.raises(ValidationError):
            Settings()

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


# ==============================================================================
# Repository factory
# ==============================================================================


class TestRepositoryFactory:
    """Tests for get_tracking_repository()."""

    def test_postgresql(self, settings):
        settings.store.backend = "postgresql"

        assert isinstance(get_tracking_repository(settings), PostgreSQLTrackingRepository)

    def test_valkey(self, settings):
        settings.store.backend = "valkey"

        assert isinstance(get_tracking_repository(settings), ValkeyTrackingRepository)

    def test_unknown_backend(self, settings):
        settings.store.backend = "mongodb"

        with pytest.raises(ValueError, match="Unknown store backend"):
            get_tracking_repository(settings)
