# ==============================================================================
# Enrichment Abstract Base Classes
# ==============================================================================
"""
Interfaces for the collaborators that enrich a beacon hit.

Neither is a repository: both are pure lookups consumed as black boxes by the
ingestion engine. Implementations: UserAgentsParser, GeoIP2Locator,
NullGeoLocator (infrastructure/enrichment.py).
"""

from abc import ABC, abstractmethod

from pixeltrack.core.models import DeviceInfo, Location


class UserAgentParser(ABC):
    """Derives device, browser and OS from a raw User-Agent header."""

    @abstractmethod
    def parse(self, raw: str) -> DeviceInfo:
        """
        Parse a user-agent string.

        Must not raise for malformed input; returns DeviceInfo.unknown()
        when nothing useful can be derived.
        """
        ...


class GeoLocator(ABC):
    """Maps an IP address to a Location."""

    @abstractmethod
    def lookup(self, ip: str) -> Location | None:
        """
        Look up an IP address.

        Returns:
            Location, or None for private/unroutable/unknown addresses
        """
        ...

    def close(self) -> None:
        """Release any underlying resources. Optional override."""
        pass
