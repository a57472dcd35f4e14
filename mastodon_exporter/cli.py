"""
Command line entry point.
"""
from __future__ import annotations

import argparse
import signal
from typing import Sequence

from . import __version__
from .aggregator import Aggregator
from .config import DEFAULT_PORT, DEFAULT_PREFIX, ExporterConfig
from .errors import ConfigurationError
from .instrumentation import ExporterMetrics
from .logger import configure_logging, get_logger
from .server import MetricsServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prometheus-mastodon-exporter",
        description="Expose Mastodon instance statistics as Prometheus metrics",
    )
    parser.add_argument("--instance", default=None,
                        help="Base URL of the Mastodon instance, e.g. https://mastodon.example "
                             "(default: $MASTODON_INSTANCE_URI)")
    parser.add_argument("--port", type=int, default=None,
                        help=f"Port to serve metrics on (default: {DEFAULT_PORT})")
    parser.add_argument("--prefix", default=None,
                        help=f"Metric name prefix (default: {DEFAULT_PREFIX})")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Timeout in seconds for each upstream call (default: 10)")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--log-format", default=None, choices=["json", "console"])
    parser.add_argument("--log-file", default=None, help="Also write JSON logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ExporterConfig(
            instance_url=args.instance,
            port=args.port,
            prefix=args.prefix,
            timeout=args.timeout,
            log_level=args.log_level,
            log_format=args.log_format,
            log_file=args.log_file,
        )
        config.validate()
    except ConfigurationError as e:
        parser.exit(1, f"{parser.prog}: error: {e}\n")

    configure_logging(config)
    logger = get_logger("main")
    logger.info("Exporter configured", **config.to_dict())

    metrics = ExporterMetrics(config)
    aggregator = Aggregator(config, metrics=metrics)
    server = MetricsServer(config, aggregator, metrics=metrics)

    signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.stop_server()
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    raise SystemExit(main())
