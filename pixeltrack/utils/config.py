# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class PostgresSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="PG_")

    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", description="PostgreSQL username")
    password: str = Field(default="postgres", description="PostgreSQL password")
    database: str = Field(default="pixeltrack", description="Database name")
    schema_name: str = Field(default="pixeltrack", description="Schema name")
    sslmode: str = Field(default="prefer", description="SSL mode")

    # Pool and timeouts
    pool_min_size: int = Field(default=1, description="Minimum pooled connections")
    pool_max_size: int = Field(default=10, description="Maximum pooled connections")
    connect_timeout: int = Field(default=10, description="Connect timeout in seconds")
    statement_timeout_ms: int = Field(
        default=5000, description="Per-statement timeout in milliseconds"
    )

    @property
    def connection_string(self) -> str:
        """Build PostgreSQL connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}?sslmode={self.sslmode}"
        )


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for the Valkey event store."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")
    socket_timeout: int = Field(default=5, description="Socket timeout in seconds")
    key_prefix: str = Field(default="pixeltrack", description="Prefix for all keys")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class StoreSettings(BaseSettings):
    """Event store selection."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    backend: Literal["postgresql", "valkey"] = Field(
        default="postgresql",
        description="Event store backend (postgresql, valkey)",
    )


class GeoIPSettings(BaseSettings):
    """MaxMind GeoIP2/GeoLite2 database settings.

    When no database is configured, geolocation is disabled and every record
    is stored without a location.
    """

    model_config = SettingsConfigDict(env_prefix="GEOIP_")

    database_path: Optional[Path] = Field(
        default=None, description="Path to a GeoLite2-City.mmdb / GeoIP2-City.mmdb file"
    )

    @property
    def is_configured(self) -> bool:
        return self.database_path is not None


class ServerSettings(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=5000, description="Bind port")
    trust_forwarded_for: bool = Field(
        default=True,
        description="Use the first X-Forwarded-For hop as the client address",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    geoip: GeoIPSettings = Field(default_factory=GeoIPSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
