"""Overpass API client: one form POST per query, retried and paced."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from brand_locations.common.constants import USER_AGENT
from brand_locations.common.errors import StageError

# 429 means the client used up its Overpass slots, 504 that the server is
# overloaded. Both clear after a wait.
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

CONNECT_TIMEOUT_SECONDS = 20.0
DEFAULT_MIN_INTERVAL_SECONDS = 2.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 5
    multiplier: float = 1.0
    max_wait: float = 30.0


class HttpRequestError(StageError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class RequestPacer:
    """Spaces request starts at least ``interval`` seconds apart, across threads."""

    def __init__(self, interval: float) -> None:
        if interval < 0:
            raise ValueError("interval must not be negative")
        self.interval = interval
        self._next_start = 0.0
        self._lock = threading.Lock()

    def wait(self) -> float:
        with self._lock:
            now = time.monotonic()
            start = max(now, self._next_start)
            self._next_start = start + self.interval
        delay = start - now
        if delay > 0:
            time.sleep(delay)
        return delay


class OverpassClient:
    def __init__(
        self,
        endpoint: str,
        *,
        timeout_seconds: float = 180.0,
        min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
        retry: RetryConfig | None = None,
    ) -> None:
        self.endpoint = endpoint
        # The server-side query timeout plus headroom for the transfer itself.
        self.timeouts = (CONNECT_TIMEOUT_SECONDS, timeout_seconds + CONNECT_TIMEOUT_SECONDS)
        self.retry = retry or RetryConfig()
        self.pacer = RequestPacer(min_interval)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})

    @classmethod
    def from_config(cls, overpass_cfg: dict) -> "OverpassClient":
        return cls(
            overpass_cfg["endpoint"],
            timeout_seconds=float(overpass_cfg["timeout_seconds"]),
            min_interval=float(overpass_cfg.get("min_interval_seconds", DEFAULT_MIN_INTERVAL_SECONDS)),
        )

    def close(self) -> None:
        self.session.close()

    def _post(self, query: str) -> dict:
        self.pacer.wait()
        try:
            response = self.session.post(self.endpoint, data={"data": query}, timeout=self.timeouts)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise RetryableHttpError(f"Overpass request to {self.endpoint} failed: {exc}") from exc

        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Overpass busy: HTTP {status}")
        if status >= 400:
            raise HttpRequestError(f"Overpass rejected the query: HTTP {status}")
        try:
            return response.json()
        except ValueError as exc:
            raise HttpRequestError(f"Invalid JSON payload from {self.endpoint}") from exc

    def query(self, query: str) -> dict:
        """POST an Overpass QL query as the ``data`` form field and return the decoded payload."""
        attempt = retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier, max=self.retry.max_wait, jitter=self.retry.multiplier
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )(self._post)
        return attempt(query)
