# ==============================================================================
# Pixel Server Runner
# ==============================================================================
"""
Runs the tracking HTTP server in the foreground.

Started by 'pixeltrack serve'. Opens the event store (with a short retry while
it comes up), wires the ingestion and aggregation engines into the Flask app
and serves it with werkzeug's threaded server until SIGINT/SIGTERM.
"""

import logging
import threading

from werkzeug.serving import BaseWSGIServer, make_server

from pixeltrack.base.enrichment import GeoLocator
from pixeltrack.base.repositories import TrackingRepository
from pixeltrack.base.runner import BaseRunner
from pixeltrack.core.aggregation import StatsService
from pixeltrack.core.errors import StoreError
from pixeltrack.core.ingestion import OpenTracker
from pixeltrack.infrastructure.enrichment import UserAgentsParser, get_geo_locator
from pixeltrack.infrastructure.repositories import get_tracking_repository
from pixeltrack.utils.config import Settings, get_settings
from pixeltrack.utils.retry import retry_light
from pixeltrack.web.app import create_app

logger = logging.getLogger(__name__)


@retry_light((StoreError,), logger)
def open_repository(settings: Settings) -> TrackingRepository:
    """Connect the configured repository and verify it answers."""
    repository = get_tracking_repository(settings)
    repository.connect()
    if not repository.ping():
        repository.close()
        raise StoreError(f"{settings.store.backend} store is not responding")
    return repository


class ServerRunner(BaseRunner):
    """
    Foreground runner for the pixel server.

    The WSGI server runs on a worker thread; the main thread waits for a
    shutdown signal, then stops the server and releases the store.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or get_settings()
        super().__init__(log_level=self._settings.log_level)
        self._host = host or self._settings.server.host
        self._port = port or self._settings.server.port
        self._stop_event = threading.Event()
        self._server: BaseWSGIServer | None = None
        self._repository: TrackingRepository | None = None
        self._geo_locator: GeoLocator | None = None

    def _setup_logging(self) -> None:
        super()._setup_logging()
        # Per-request access lines only in debug
        if not self._settings.debug:
            logging.getLogger("werkzeug").setLevel(logging.WARNING)

    def _run(self) -> None:
        self._repository = open_repository(self._settings)
        self._geo_locator = get_geo_locator(self._settings)

        tracker = OpenTracker(self._repository, UserAgentsParser(), self._geo_locator)
        stats = StatsService(self._repository)
        app = create_app(tracker, stats, self._settings)

        self._server = make_server(self._host, self._port, app, threaded=True)
        worker = threading.Thread(
            target=self._server.serve_forever, name="pixeltrack-http", daemon=True
        )
        worker.start()
        logger.info(
            "Pixel server listening on http://%s:%d (store=%s)",
            self._host,
            self._port,
            self._settings.store.backend,
        )

        self._stop_event.wait()
        logger.info("Stopping pixel server...")
        self._server.shutdown()
        worker.join(timeout=10)

    def _on_shutdown_requested(self) -> None:
        self._stop_event.set()

    def _cleanup(self) -> None:
        if self._server is not None:
            self._server.server_close()
            self._server = None
        if self._repository is not None:
            self._repository.close()
            self._repository = None
        if self._geo_locator is not None:
            self._geo_locator.close()
            self._geo_locator = None
        logger.info("Pixel server shutdown complete")
