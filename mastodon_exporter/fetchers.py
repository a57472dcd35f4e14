"""
Upstream endpoint fetchers.

Each fetcher describes one call to the Mastodon API and how to project its
JSON response into a flat mapping of metric key to integer value. Starting a
fetcher submits the HTTP call to an executor right away; the response body is
only parsed and projected when the returned handle is forced.
"""
import json
import time
from concurrent.futures import Executor, Future, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from .config import ExporterConfig
from .errors import FetchError

MetricMapping = Dict[str, int]

MEASURE_KEYS = (
    "active_users",
    "new_users",
    "interactions",
    "opened_reports",
    "resolved_reports",
)
MEASURE_WINDOW_DAYS = 30
ACTIVITY_FIELDS = ("statuses", "logins", "registrations")
BODY_CHUNK_SIZE = 1024

# Errors that mean the response did not have the documented shape.
SHAPE_ERRORS = (KeyError, IndexError, TypeError, ValueError, AttributeError)


def _date(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def _find_by_key(entries: List[Dict[str, Any]], key: str) -> Dict[str, Any]:
    for entry in entries:
        if entry["key"] == key:
            return entry
    raise KeyError(key)


def dimensions_params(now: datetime) -> List[Tuple[str, str]]:
    return [
        ("keys[]", "space_usage"),
        ("start_at", _date(now)),
        ("end_at", _date(now)),
    ]


def project_dimensions(payload, now: datetime) -> MetricMapping:
    space_usage = _find_by_key(payload, "space_usage")
    return {
        f"space_usage_{entry['key']}": int(entry["value"])
        for entry in space_usage["data"]
    }


def project_instance(payload, now: datetime) -> MetricMapping:
    stats = payload.get("stats") or {}
    return {
        key: int(stats.get(key, 0))
        for key in ("domain_count", "user_count", "status_count")
    }


def project_instance_activity(payload, now: datetime) -> MetricMapping:
    this_week, last_week = payload[0], payload[1]
    metrics = {}
    for field in ACTIVITY_FIELDS:
        metrics[f"{field}_this_week"] = int(this_week[field])
        metrics[f"{field}_last_week"] = int(last_week[field])
    return metrics


def measures_params(now: datetime) -> List[Tuple[str, str]]:
    params = [("keys[]", key) for key in MEASURE_KEYS]
    params.append(("start_at", _date(now - timedelta(days=MEASURE_WINDOW_DAYS))))
    params.append(("end_at", _date(now)))
    return params


def project_measures(payload, now: datetime) -> MetricMapping:
    # Dates are matched as plain "YYYY-MM-DD" strings against the local
    # calendar; the server's timezone offset is not taken into account.
    yesterday = _date(now - timedelta(days=1))
    metrics = {}
    for measure in payload:
        key = measure["key"]
        metrics[f"{key}_last_30_days"] = int(measure["total"])
        for point in measure["data"]:
            if point["date"][:10] == yesterday:
                metrics[f"{key}_yesterday"] = int(point["value"])
                break
    return metrics


def project_nodeinfo(payload, now: datetime) -> MetricMapping:
    usage = payload["usage"]
    users = usage["users"]
    return {
        "active_users_month": int(users["activeMonth"]),
        "active_users_half_year": int(users["activeHalfyear"]),
        "total_users": int(users["total"]),
        "local_posts": int(usage["localPosts"]),
    }


@dataclass(frozen=True)
class Fetcher:
    """One upstream endpoint and its projection into metrics."""

    name: str
    method: str
    path: str
    project: Callable[[Any, datetime], MetricMapping]
    authenticated: bool = False
    params: Optional[Callable[[datetime], List[Tuple[str, str]]]] = None

    def start(self, executor: Executor, http, config: ExporterConfig,
              now: datetime) -> 'PendingFetch':
        """Submit the HTTP call and return a handle to force later."""
        headers = {"Accept": "application/json"}
        if self.authenticated:
            headers["Authorization"] = f"Bearer {config.access_token}"
        form = self.params(now) if self.params else None
        deadline = time.monotonic() + config.timeout

        future = executor.submit(
            self._request, http, config.base_url + self.path,
            headers, form, config.timeout, deadline
        )
        return PendingFetch(self, future, now, config.timeout, deadline)

    def _request(self, http, url: str, headers: Dict[str, str],
                 form, timeout: float, deadline: float) -> Tuple[requests.Response, bytes]:
        # requests' timeout only bounds connecting and each socket read,
        # so the body is streamed and checked against the call's deadline.
        with http.request(self.method, url, headers=headers, data=form,
                          timeout=timeout, stream=True) as response:
            response.raise_for_status()
            chunks = []
            for chunk in response.iter_content(BODY_CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise requests.Timeout(f"response body not received within {timeout}s")
                chunks.append(chunk)
        return response, b"".join(chunks)


class PendingFetch:
    """Deferred result of a started fetcher."""

    def __init__(self, fetcher: Fetcher, future: Future, now: datetime,
                 timeout: float, deadline: float):
        self.fetcher = fetcher
        self.future = future
        self.now = now
        self.timeout = timeout
        self.deadline = deadline
        self.duration: Optional[float] = None

    @property
    def name(self) -> str:
        return self.fetcher.name

    def cancel(self) -> bool:
        """Cancel the HTTP call if it has not started yet."""
        return self.future.cancel()

    def result(self) -> MetricMapping:
        """
        Wait for the HTTP call and project its body into metrics.

        Waits no longer than the call's deadline.

        Raises:
            FetchError: on transport, HTTP status, timeout, JSON or shape errors
        """
        remaining = max(0.0, self.deadline - time.monotonic())
        try:
            response, body = self.future.result(timeout=remaining)
        except FutureTimeoutError:
            self.future.cancel()
            raise FetchError(
                self.name, f"Timeout: no complete response within {self.timeout}s"
            ) from None
        except requests.RequestException as e:
            raise FetchError(self.name, f"{type(e).__name__}: {e}") from e

        self.duration = response.elapsed.total_seconds()
        try:
            return self.fetcher.project(json.loads(body), self.now)
        except SHAPE_ERRORS as e:
            raise FetchError(
                self.name, f"unexpected response shape: {type(e).__name__}: {e}"
            ) from e


FETCHERS = (
    Fetcher("dimensions", "POST", "/api/v1/admin/dimensions",
            project_dimensions, authenticated=True, params=dimensions_params),
    Fetcher("instance", "GET", "/api/v1/instance", project_instance),
    Fetcher("instance-activity", "GET", "/api/v1/instance/activity",
            project_instance_activity),
    Fetcher("measures", "POST", "/api/v1/admin/measures",
            project_measures, authenticated=True, params=measures_params),
    Fetcher("nodeinfo", "GET", "/nodeinfo/2.0", project_nodeinfo),
)
