# ==============================================================================
# Tests for ServerRunner
# ==============================================================================
"""
Lifecycle tests for the foreground pixel server runner.

The WSGI server, repository and geo locator are mocked; the tests check
wiring, shutdown and resource cleanup, not HTTP behavior (see test_web.py).
"""

from unittest.mock import MagicMock

import pytest

from pixeltrack.core.errors import StoreError
from pixeltrack.server_runner import ServerRunner, open_repository


@pytest.fixture()
def runner_parts(monkeypatch, locator):
    repository = MagicMock()
    server = MagicMock()
    make_server = MagicMock(return_value=server)
    monkeypatch.setattr("pixeltrack.server_runner.open_repository", lambda settings: repository)
    monkeypatch.setattr("pixeltrack.server_runner.get_geo_locator", lambda settings: locator)
    monkeypatch.setattr("pixeltrack.server_runner.make_server", make_server)
    return repository, server, make_server


def _runner(settings, monkeypatch, **kwargs) -> ServerRunner:
    runner = ServerRunner(settings=settings, **kwargs)
    # Keep pytest's own SIGINT handling intact
    monkeypatch.setattr(runner, "_setup_signal_handlers", lambda: None)
    return runner


class TestServerRunner:
    """Tests for ServerRunner.run()."""

    def test_serves_until_shutdown_then_cleans_up(
        self, settings, monkeypatch, runner_parts, locator
    ):
        repository, server, make_server = runner_parts
        runner = _runner(settings, monkeypatch, port=8081)
        # Shutdown already requested: _run starts the server and stops it right away
        runner._handle_signal(15, None)

        runner.run()

        host, port, app = make_server.call_args.args[:3]
        assert (host, port) == (settings.server.host, 8081)
        assert make_server.call_args.kwargs["threaded"] is True
        assert app.name == "pixeltrack.web.app"
        server.shutdown.assert_called_once()
        server.server_close.assert_called_once()
        repository.close.assert_called_once()
        assert locator.closed
        assert runner.shutdown_requested

    def test_defaults_from_settings(self, settings, monkeypatch):
        runner = _runner(settings, monkeypatch)

        assert runner._host == settings.server.host
        assert runner._port == settings.server.port

    def test_store_unavailable_propagates(self, settings, monkeypatch):
        def _fail(settings):
            raise StoreError("store is not responding")

        monkeypatch.setattr("pixeltrack.server_runner.open_repository", _fail)
        runner = _runner(settings, monkeypatch)

        with pytest.raises(StoreError):
            runner.run()


class TestOpenRepository:
    """Tests for the startup connection helper."""

    @pytest.fixture(autouse=True)
    def _no_backoff(self, monkeypatch):
        monkeypatch.setattr(open_repository.retry, "sleep", lambda seconds: None)

    def test_connects_and_pings(self, settings, monkeypatch):
        repository = MagicMock()
        repository.ping.return_value = True
        monkeypatch.setattr(
            "pixeltrack.server_runner.get_tracking_repository", lambda settings: repository
        )

        assert open_repository(settings) is repository
        repository.connect.assert_called_once()

    def test_retries_then_gives_up(self, settings, monkeypatch):
        repository = MagicMock()
        repository.ping.return_value = False
        monkeypatch.setattr(
            "pixeltrack.server_runner.get_tracking_repository", lambda settings: repository
        )

        with pytest.raises(StoreError):
            open_repository(settings)
        assert repository.connect.call_count == 3
        assert repository.close.call_count == 3
