"""
HTTP server answering Prometheus scrapes.
"""
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple

from prometheus_client.exposition import CONTENT_TYPE_LATEST

from .aggregator import Aggregator
from .config import ExporterConfig
from .errors import FetchError
from .instrumentation import ExporterMetrics
from .logger import ExporterLogger
from .renderer import render

EXPORTER_METRICS_PATH = "/-/exporter"
ERROR_CONTENT_TYPE = "text/plain; charset=utf-8"
ERROR_BODY = b"Internal error"


class MetricsServer:
    """Serves the aggregated Mastodon metrics on every request."""

    def __init__(self, config: ExporterConfig, aggregator: Aggregator,
                 logger: Optional[ExporterLogger] = None,
                 metrics: Optional[ExporterMetrics] = None):
        self.config = config
        self.aggregator = aggregator
        self.logger = logger or ExporterLogger("server")
        self.metrics = metrics
        self.server = None
        self.server_thread = None

    def scrape(self) -> Tuple[int, str, bytes]:
        """Run one full scrape and return (status, content type, body)."""
        start_time = time.time()
        try:
            collected = self.aggregator.collect()
            body = render(self.config.prefix, collected)
        except FetchError as e:
            duration = time.time() - start_time
            self.logger.log_scrape_failed(e.endpoint, e.cause, duration)
            self._record_scrape(False, duration)
            return 503, ERROR_CONTENT_TYPE, ERROR_BODY
        except Exception:
            duration = time.time() - start_time
            self.logger.exception("Scrape failed unexpectedly",
                                  duration_seconds=round(duration, 3))
            self._record_scrape(False, duration)
            return 503, ERROR_CONTENT_TYPE, ERROR_BODY

        duration = time.time() - start_time
        self.logger.log_scrape_completed(len(collected), duration)
        self._record_scrape(True, duration)
        return 200, CONTENT_TYPE_LATEST, body.encode("utf-8")

    def _record_scrape(self, success: bool, duration: float):
        if self.metrics:
            self.metrics.record_scrape(success, duration)

    @property
    def port(self) -> int:
        """Port actually bound, which differs from the config when it is 0."""
        return self.server.server_address[1]

    def bind(self):
        """Bind the listening socket."""
        if self.server is None:
            handler = self._create_handler()
            self.server = ThreadingHTTPServer(('', self.config.port), handler)
            self.server.daemon_threads = True
            self.logger.log_server_started(self.port)

    def serve_forever(self):
        """Bind and serve in the calling thread until shutdown."""
        self.bind()
        self.server.serve_forever()

    def start_server(self):
        """Bind and serve from a background thread."""
        self.bind()
        if self.server_thread is None:
            self.server_thread = threading.Thread(target=self.server.serve_forever, daemon=True)
            self.server_thread.start()

    def stop_server(self):
        """Stop the server."""
        if self.server:
            if self.server_thread:
                self.server.shutdown()
                self.server_thread = None
            self.server.server_close()
            self.server = None

    def _create_handler(self):
        """Create HTTP request handler."""
        metrics_server = self

        class ScrapeHandler(BaseHTTPRequestHandler):
            def do_GET(self):
                if self.path == EXPORTER_METRICS_PATH and metrics_server.metrics:
                    status_code = 200
                    content_type = CONTENT_TYPE_LATEST
                    body = metrics_server.metrics.render()
                else:
                    status_code, content_type, body = metrics_server.scrape()

                self.send_response(status_code)
                self.send_header('Content-Type', content_type)
                self.send_header('Content-Length', str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format, *args):
                metrics_server.logger.debug("HTTP request",
                                            client=self.client_address[0],
                                            request=format % args)

        return ScrapeHandler
