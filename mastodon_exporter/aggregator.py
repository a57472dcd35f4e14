"""
Concurrent fan-out over all fetchers and merge of their metrics.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, List, Optional

import requests

from .config import ExporterConfig
from .errors import FetchError
from .fetchers import FETCHERS, Fetcher, MetricMapping, PendingFetch
from .instrumentation import ExporterMetrics
from .logger import ExporterLogger


class Aggregator:
    """
    Runs every fetcher concurrently and merges their metrics.

    Each collection gets its own thread pool with one worker per fetcher, so
    all HTTP calls start at once and concurrent scrapes never queue behind
    each other. Results are forced in fetcher order; the first failure aborts
    the whole collection.
    """

    def __init__(self, config: ExporterConfig,
                 fetchers: Iterable[Fetcher] = FETCHERS,
                 http=None,
                 clock: Callable[[], datetime] = datetime.now,
                 logger: Optional[ExporterLogger] = None,
                 metrics: Optional[ExporterMetrics] = None):
        self.config = config
        self.fetchers = tuple(fetchers)
        self.http = http or requests
        self.clock = clock
        self.logger = logger or ExporterLogger("aggregator")
        self.metrics = metrics

    def collect(self) -> MetricMapping:
        """
        Fetch all endpoints and return the combined metric mapping.

        Raises:
            FetchError: if any endpoint fails
        """
        now = self.clock()
        executor = ThreadPoolExecutor(
            max_workers=max(1, len(self.fetchers)),
            thread_name_prefix="fetch",
        )
        try:
            pending = [
                fetcher.start(executor, self.http, self.config, now)
                for fetcher in self.fetchers
            ]

            combined = {}
            for handle in pending:
                try:
                    combined.update(handle.result())
                except FetchError as e:
                    self._abort(pending, handle, e.cause)
                    raise
                except Exception as e:
                    self._abort(pending, handle, f"{type(e).__name__}: {e}")
                    raise
                if self.metrics:
                    self.metrics.record_fetch(handle.name, True, handle.duration)
            return combined
        finally:
            # Calls still in flight finish on their own deadline.
            executor.shutdown(wait=False)

    def _abort(self, pending: List[PendingFetch], failed: PendingFetch, cause: str):
        self.logger.log_fetch_failed(failed.name, cause)
        if self.metrics:
            self.metrics.record_fetch(failed.name, False)
        for handle in pending:
            handle.cancel()
