"""
Prometheus metrics about the exporter itself.
"""
import time
from typing import Optional
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from .config import ExporterConfig


class ExporterMetrics:
    """Gauges describing upstream fetches and scrapes."""

    def __init__(self, config: ExporterConfig, registry: Optional[CollectorRegistry] = None):
        self.config = config
        self.registry = registry or CollectorRegistry()
        self._setup_metrics()

    def _setup_metrics(self):
        """Setup Prometheus metrics."""
        namespace = f"{self.config.prefix}_exporter"

        # Upstream fetch metrics
        self.fetch_success = Gauge(
            f'{namespace}_fetch_success',
            'Whether the last fetch of an upstream endpoint succeeded',
            labelnames=['endpoint'],
            registry=self.registry
        )

        self.fetch_duration_seconds = Gauge(
            f'{namespace}_fetch_duration_seconds',
            'Upstream response time of the last successful fetch',
            labelnames=['endpoint'],
            registry=self.registry
        )

        # Scrape metrics
        self.last_scrape_success = Gauge(
            f'{namespace}_last_scrape_success',
            'Whether the last scrape succeeded',
            registry=self.registry
        )

        self.last_scrape_duration_seconds = Gauge(
            f'{namespace}_last_scrape_duration_seconds',
            'Duration of the last scrape',
            registry=self.registry
        )

        self.last_scrape_timestamp_seconds = Gauge(
            f'{namespace}_last_scrape_timestamp_seconds',
            'Unix time the last scrape finished',
            registry=self.registry
        )

    def record_fetch(self, endpoint: str, success: bool, duration: Optional[float] = None):
        """Record the outcome of one upstream fetch."""
        self.fetch_success.labels(endpoint=endpoint).set(1 if success else 0)
        if success and duration is not None:
            self.fetch_duration_seconds.labels(endpoint=endpoint).set(duration)

    def record_scrape(self, success: bool, duration: float):
        """Record the outcome of one scrape."""
        self.last_scrape_success.set(1 if success else 0)
        self.last_scrape_duration_seconds.set(duration)
        self.last_scrape_timestamp_seconds.set(time.time())

    def render(self) -> bytes:
        """Exposition text for the exporter's own metrics."""
        return generate_latest(self.registry)

    def get_registry(self) -> CollectorRegistry:
        """Get the metrics registry."""
        return self.registry
