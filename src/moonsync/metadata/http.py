# ABOUTME: HTTP client abstraction for metadata lookups and cover downloads.
# ABOUTME: Shares one throttled, retrying httpx client between the lookup worker threads.

import logging
import threading
import time
from typing import Any, Protocol, runtime_checkable

import httpx

from moonsync import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"moonsync/{__version__}"

# Statuses worth another attempt: throttling and transient server trouble.
_TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


class MetadataFetchError(Exception):
    """Raised when a metadata backend or cover host cannot be fetched from."""


@runtime_checkable
class HttpClient(Protocol):
    """What the metadata sources and the cover downloader need from HTTP."""

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]: ...

    def get_bytes(self, url: str) -> bytes: ...


class _Throttle:
    """Spaces out request starts across every thread using the client."""

    def __init__(self, min_interval: float) -> None:
        self._min_interval = min_interval
        self._lock = threading.Lock()
        self._last_start: float | None = None

    def wait(self) -> None:
        if self._min_interval <= 0:
            return
        with self._lock:
            if self._last_start is not None:
                remaining = self._min_interval - (time.monotonic() - self._last_start)
                if remaining > 0:
                    time.sleep(remaining)
            self._last_start = time.monotonic()


class MoonSyncHttpClient:
    """httpx-backed client for Open Library, Google Books and cover images.

    Requests are throttled to min_request_interval apart. 429 and 5xx
    answers are retried max_retries times with doubling delays; any other
    non-200 answer fails at once. The transport can be injected for tests.
    """

    def __init__(
        self,
        *,
        min_request_interval: float = 0.1,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        timeout: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        options: dict[str, Any] = {
            "headers": {"User-Agent": USER_AGENT},
            "timeout": timeout,
            "follow_redirects": True,
        }
        if transport is not None:
            options["transport"] = transport
        self._client = httpx.Client(**options)
        self._throttle = _Throttle(min_request_interval)
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """Fetch url and decode its JSON body.

        Raises:
            MetadataFetchError: If the request fails, retries run out, or the
                body is not JSON.
        """
        response = self._fetch(url, params)
        try:
            return response.json()
        except ValueError as exc:
            raise MetadataFetchError(f"Invalid JSON from {url}: {exc}") from exc

    def get_bytes(self, url: str) -> bytes:
        """Fetch url and return the raw body (cover images)."""
        return self._fetch(url).content

    def close(self) -> None:
        self._client.close()

    def _fetch(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        self._throttle.wait()
        delay = self._retry_delay
        retries_left = self._max_retries
        while True:
            try:
                response = self._client.get(url, params=params)
            except httpx.HTTPError as exc:
                raise MetadataFetchError(f"Request to {url} failed: {exc}") from exc

            status = response.status_code
            if status == 200:
                return response
            if status not in _TRANSIENT_STATUSES:
                raise MetadataFetchError(f"HTTP {status} from {url}")
            if retries_left == 0:
                raise MetadataFetchError(
                    f"HTTP {status} from {url}, gave up after {self._max_retries} retries"
                )

            logger.warning("HTTP %d from %s, retrying in %.1fs", status, url, delay)
            time.sleep(delay)
            retries_left -= 1
            delay *= 2
