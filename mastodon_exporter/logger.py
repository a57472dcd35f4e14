"""
Structured logging with JSON formatting.
"""
import logging
import structlog
import sys
from typing import Optional
from pythonjsonlogger.json import JsonFormatter

from .config import ExporterConfig

LOGGER_NAME = "mastodon_exporter"


def configure_logging(config: ExporterConfig):
    """Setup structured logging to stderr, plus an optional JSON log file."""
    if config.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        force=True,
    )

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(JsonFormatter(
            '%(asctime)s %(name)s %(levelname)s %(message)s'
        ))
        logging.getLogger().addHandler(file_handler)


class ExporterLogger:
    """Structured logger carrying the exporter's domain events."""

    def __init__(self, component: Optional[str] = None, **context):
        self._logger = structlog.get_logger(LOGGER_NAME)
        if component:
            context["component"] = component
        if context:
            self._logger = self._logger.bind(**context)

    def info(self, message: str, **kwargs):
        self._logger.info(message, **kwargs)

    def debug(self, message: str, **kwargs):
        self._logger.debug(message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with traceback."""
        self._logger.exception(message, **kwargs)

    def log_server_started(self, port: int, **kwargs):
        self._logger.info("Metrics server started", port=port, **kwargs)

    def log_fetch_failed(self, endpoint: str, error: str, **kwargs):
        self._logger.warning(
            "Upstream fetch failed",
            endpoint=endpoint,
            error=error,
            **kwargs
        )

    def log_scrape_completed(self, metrics_count: int, duration: float, **kwargs):
        self._logger.info(
            "Scrape completed",
            status="success",
            metrics_count=metrics_count,
            duration_seconds=round(duration, 3),
            **kwargs
        )

    def log_scrape_failed(self, endpoint: str, error: str, duration: float, **kwargs):
        self._logger.error(
            "Scrape failed",
            status="failed",
            endpoint=endpoint,
            error=error,
            duration_seconds=round(duration, 3),
            **kwargs
        )


def get_logger(name: Optional[str] = None) -> ExporterLogger:
    """Get an ExporterLogger, optionally scoped to a component."""
    return ExporterLogger(name)
