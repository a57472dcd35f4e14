"""Shared fixtures: quiet structlog and a fake Mastodon upstream."""

import json
import logging
import threading
import time
from datetime import datetime
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

import pytest
import structlog

from mastodon_exporter.config import ExporterConfig

FIXED_NOW = datetime(2024, 1, 3, 0, 0, 0)

DIMENSIONS = [
    {
        "key": "space_usage",
        "unit": "bytes",
        "total": "127926272",
        "human_value": "122 MB",
        "data": [
            {"key": "postgresql", "human_key": "PostgreSQL", "value": "52428800",
             "unit": "bytes", "human_value": "50 MB"},
            {"key": "redis", "human_key": "Redis", "value": "2097152",
             "unit": "bytes", "human_value": "2 MB"},
            {"key": "media", "human_key": "Media storage", "value": "73400320",
             "unit": "bytes", "human_value": "70 MB"},
        ],
    }
]

INSTANCE = {
    "uri": "mastodon.example",
    "title": "Example",
    "stats": {"user_count": 1261, "status_count": 86101, "domain_count": 4242},
}

ACTIVITY = [
    {"week": "1704067200", "statuses": "412", "logins": "95", "registrations": "3"},
    {"week": "1703462400", "statuses": "380", "logins": "90", "registrations": "5"},
    {"week": "1702857600", "statuses": "350", "logins": "88", "registrations": "1"},
]


def _measure(key, total, values):
    return {
        "key": key,
        "unit": None,
        "total": str(total),
        "previous_total": "0",
        "data": [
            {"date": f"{date}T00:00:00.000+00:00", "value": str(value)}
            for date, value in values
        ],
    }


MEASURES = [
    _measure("active_users", 192, [("2024-01-01", 150), ("2024-01-02", 160)]),
    _measure("new_users", 12, [("2024-01-01", 1), ("2024-01-02", 2)]),
    _measure("interactions", 5120, [("2024-01-01", 170), ("2024-01-02", 181)]),
    _measure("opened_reports", 4, [("2024-01-01", 0), ("2024-01-02", 1)]),
    _measure("resolved_reports", 3, [("2024-01-01", 1), ("2024-01-02", 0)]),
]

NODEINFO = {
    "version": "2.0",
    "software": {"name": "mastodon", "version": "4.2.0"},
    "protocols": ["activitypub"],
    "usage": {
        "users": {"activeMonth": 192, "activeHalfyear": 192, "total": 1261},
        "localPosts": 86101,
    },
    "openRegistrations": False,
}

ROUTES = {
    "/api/v1/admin/dimensions": DIMENSIONS,
    "/api/v1/instance": INSTANCE,
    "/api/v1/instance/activity": ACTIVITY,
    "/api/v1/admin/measures": MEASURES,
    "/nodeinfo/2.0": NODEINFO,
}


def configure_structlog_for_tests():
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    configure_structlog_for_tests()


class _Server(ThreadingHTTPServer):
    request_queue_size = 64


class FakeMastodon:
    """Minimal Mastodon API stand-in serving canned JSON per path."""

    def __init__(self):
        self.routes = {}
        for path, payload in ROUTES.items():
            self.set(path, payload)
        self.requests = []
        self._lock = threading.Lock()
        self.stopped = threading.Event()
        self.server = _Server(("127.0.0.1", 0), self._create_handler())
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    @property
    def url(self):
        host, port = self.server.server_address[:2]
        return f"http://{host}:{port}"

    def set(self, path, payload=None, status=200, delay=0.0, raw=None):
        body = raw if raw is not None else json.dumps(payload).encode()
        self.routes[path] = {
            "status": status, "body": body, "delay": delay, "trickle": 0.0, "chunk": 1,
        }

    def trickle(self, path, interval, chunk=1):
        """Send the response body of `path` `chunk` bytes every `interval` seconds."""
        self.routes[path]["trickle"] = interval
        self.routes[path]["chunk"] = chunk

    def fail(self, path, status=500):
        self.set(path, {"error": "boom"}, status=status)

    def requests_for(self, path):
        return [request for request in self.requests if request["path"] == path]

    def _create_handler(self):
        fake = self

        class Handler(BaseHTTPRequestHandler):
            def _respond(self):
                length = int(self.headers.get("Content-Length") or 0)
                path = urlsplit(self.path).path
                with fake._lock:
                    fake.requests.append({
                        "method": self.command,
                        "path": path,
                        "headers": dict(self.headers),
                        "body": self.rfile.read(length).decode() if length else "",
                    })
                route = fake.routes.get(path)
                if route is None:
                    self.send_response(404)
                    self.end_headers()
                    return
                if route["delay"]:
                    time.sleep(route["delay"])
                self.send_response(route["status"])
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(route["body"])))
                self.end_headers()
                try:
                    if not route["trickle"]:
                        self.wfile.write(route["body"])
                        return
                    step = route["chunk"]
                    for i in range(0, len(route["body"]), step):
                        if fake.stopped.is_set():
                            return
                        self.wfile.write(route["body"][i:i + step])
                        self.wfile.flush()
                        time.sleep(route["trickle"])
                except (BrokenPipeError, ConnectionResetError):
                    return

            do_GET = _respond
            do_POST = _respond

            def log_message(self, format, *args):
                pass

        return Handler

    def start(self):
        self.thread.start()

    def stop(self):
        self.stopped.set()
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def upstream():
    fake = FakeMastodon()
    fake.start()
    yield fake
    fake.stop()


@pytest.fixture
def config(upstream):
    return ExporterConfig(
        instance_url=upstream.url,
        access_token="test-token",
        timeout=2.0,
        port=0,
        prefix="mastodon",
        log_level="INFO",
        log_format="json",
    )
