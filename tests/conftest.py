# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed ValkeyTrackingRepository (clean state per test)
- Stub user-agent parser and geo locator with canned answers
- A controllable clock, and tracker/stats/Flask client wired together
"""

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest

from pixeltrack.base.enrichment import GeoLocator, UserAgentParser
from pixeltrack.core.aggregation import StatsService
from pixeltrack.core.ingestion import OpenTracker
from pixeltrack.core.models import DeviceInfo, Location
from pixeltrack.infrastructure.repositories.valkey import ValkeyTrackingRepository
from pixeltrack.utils.config import Settings
from pixeltrack.web.app import create_app

MOBILE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0.0.0"


class StubParser(UserAgentParser):
    """Maps the two canned user agents to fixed DeviceInfo values."""

    def __init__(self):
        self.calls = []

    def parse(self, raw: str) -> DeviceInfo:
        self.calls.append(raw)
        if raw == MOBILE_UA:
            return DeviceInfo(device="mobile", browser="Mobile Safari 17.0", os="iOS 17.0")
        if raw == DESKTOP_UA:
            return DeviceInfo(device="desktop", browser="Chrome 120.0.0", os="Windows 10")
        return DeviceInfo.unknown()


class StubLocator(GeoLocator):
    """Looks addresses up in a dict; unknown addresses miss."""

    def __init__(self, locations: dict[str, Location] | None = None):
        self.locations = locations or {}
        self.closed = False

    def lookup(self, ip: str) -> Location | None:
        return self.locations.get(ip)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real repository client.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def settings():
    """Default settings with the Valkey backend selected."""
    settings = Settings()
    settings.store.backend = "valkey"
    return settings


@pytest.fixture()
def repository(fake_redis, settings):
    """A ValkeyTrackingRepository whose client is fakeredis."""
    return ValkeyTrackingRepository(client=fake_redis, settings=settings)


@pytest.fixture()
def clock():
    return FakeClock(datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture()
def parser():
    return StubParser()


@pytest.fixture()
def locator():
    return StubLocator(
        {
            "8.8.8.8": Location(
                country="US", region="CA", city="Mountain View", coordinates=[37.4, -122.1]
            ),
        }
    )


@pytest.fixture()
def tracker(repository, parser, locator, clock):
    return OpenTracker(repository, parser, locator, clock=clock)


@pytest.fixture()
def stats(repository):
    return StatsService(repository)


@pytest.fixture()
def client(tracker, stats, settings):
    """Flask test client around the real tracker and stats service."""
    app = create_app(tracker, stats, settings)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture()
def mobile_ua():
    return MOBILE_UA


@pytest.fixture()
def desktop_ua():
    return DESKTOP_UA
