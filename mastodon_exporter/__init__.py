"""
Prometheus exporter for Mastodon

Polls a Mastodon instance's admin and public APIs on every scrape and
exposes the results as Prometheus gauges:
- Concurrent fetching of the dimensions, instance, activity, measures
  and nodeinfo endpoints
- Catalog-ordered rendering in the text exposition format
- Structured logging and self-instrumentation of the exporter
"""

__version__ = "1.0.0"

from .config import ExporterConfig
from .errors import ConfigurationError, FetchError
from .logger import ExporterLogger, configure_logging, get_logger
from .catalog import METRIC_CATALOG, MetricSpec
from .fetchers import FETCHERS, Fetcher, PendingFetch
from .aggregator import Aggregator
from .renderer import render
from .instrumentation import ExporterMetrics
from .server import MetricsServer

__all__ = [
    "ExporterConfig",
    "ConfigurationError",
    "FetchError",
    "ExporterLogger",
    "configure_logging",
    "get_logger",
    "METRIC_CATALOG",
    "MetricSpec",
    "FETCHERS",
    "Fetcher",
    "PendingFetch",
    "Aggregator",
    "render",
    "ExporterMetrics",
    "MetricsServer",
]
