# ==============================================================================
# Enrichment Adapters
# ==============================================================================
"""
Concrete user-agent parsing and IP geolocation.

- UserAgentsParser: `user-agents` (ua-parser regexes) -> device class, browser, OS
- GeoIP2Locator: MaxMind City database via `geoip2`
- NullGeoLocator: used when no GeoIP database is configured
"""

import ipaddress
import logging

import geoip2.database
import geoip2.errors
from user_agents import parse as parse_user_agent

from pixeltrack.base.enrichment import GeoLocator, UserAgentParser
from pixeltrack.core.models import DeviceInfo, Location
from pixeltrack.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


def _family_version(family: str | None, version: str | None) -> str:
    return " ".join(part for part in (family, version) if part) or "unknown"


class UserAgentsParser(UserAgentParser):
    """
    User-agent parser backed by the `user-agents` library.

    Device class is one of: bot, tablet, mobile, desktop, other.
    Browser and OS are "<family> <version>", e.g. "Chrome 120.0.0" / "Mac OS X 10.15.7".
    """

    def parse(self, raw: str) -> DeviceInfo:
        if not raw:
            return DeviceInfo.unknown()

        agent = parse_user_agent(raw)

        if agent.is_bot:
            device = "bot"
        elif agent.is_tablet:
            device = "tablet"
        elif agent.is_mobile:
            device = "mobile"
        elif agent.is_pc:
            device = "desktop"
        else:
            device = "other"

        return DeviceInfo(
            device=device,
            browser=_family_version(agent.browser.family, agent.browser.version_string),
            os=_family_version(agent.os.family, agent.os.version_string),
        )


class NullGeoLocator(GeoLocator):
    """Geolocation disabled: every lookup misses."""

    def lookup(self, ip: str) -> Location | None:
        return None


class GeoIP2Locator(GeoLocator):
    """
    GeoLocator backed by a MaxMind GeoIP2/GeoLite2 City database.

    Private, loopback and otherwise non-global addresses never reach the
    database. The reader is opened once and must be closed at shutdown.
    """

    def __init__(self, database_path=None, reader: geoip2.database.Reader | None = None):
        """
        Args:
            database_path: Path to a City .mmdb file (ignored if reader is given)
            reader: Pre-built reader, mainly for tests
        """
        if reader is None:
            if database_path is None:
                raise ValueError("database_path or reader is required")
            reader = geoip2.database.Reader(str(database_path))
            logger.info("GeoIP2 database opened: %s", database_path)
        self._reader = reader

    def lookup(self, ip: str) -> Location | None:
        try:
            address = ipaddress.ip_address(ip)
        except ValueError:
            return None
        if not address.is_global:
            return None

        try:
            response = self._reader.city(str(address))
        except geoip2.errors.AddressNotFoundError:
            return None

        coordinates = None
        if response.location.latitude is not None and response.location.longitude is not None:
            coordinates = [response.location.latitude, response.location.longitude]

        return Location(
            country=response.country.iso_code,
            region=response.subdivisions.most_specific.iso_code,
            city=response.city.name,
            coordinates=coordinates,
        )

    def close(self) -> None:
        self._reader.close()


def get_geo_locator(settings: Settings | None = None) -> GeoLocator:
    """GeoIP2Locator when a database is configured, else NullGeoLocator."""
    settings = settings or get_settings()
    if settings.geoip.is_configured:
        return GeoIP2Locator(settings.geoip.database_path)
    logger.info("No GeoIP database configured; locations will not be recorded")
    return NullGeoLocator()
