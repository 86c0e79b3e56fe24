"""HTTP client for downloading RSS feeds."""

import asyncio
import logging
import random
from typing import Any, NoReturn, Optional
from urllib.parse import urlparse

import httpx

from .config_manager import (
    DEFAULT_MAX_FEED_BYTES,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BACKOFF_FACTOR,
    get_config_value,
)
from .exceptions import (
    FeedContentTooLargeError,
    FeedFetchError,
    FeedHTTPStatusError,
    FeedNetworkError,
    FeedTimeoutError,
    InvalidSourceUrlError,
)
from .feed_models import FeedFetchResponse
from .http_client import get_request_headers, get_shared_client

logger = logging.getLogger(__name__)

# Backoff calculation constants
MAX_BACKOFF_SECONDS = 30.0
JITTER_MIN_FACTOR = 0.1
JITTER_MAX_FACTOR = 0.3

EXPECTED_CONTENT_TYPES = ("xml", "rss", "rdf", "text/plain")


def _raise_client_not_initialized() -> NoReturn:
    raise FeedFetchError("HTTP client not initialized")


def validate_feed_url(url: Optional[str]) -> str:
    """Check that ``url`` is an absolute http(s) URL with a host.

    Returns:
        The URL, stripped of surrounding whitespace

    Raises:
        InvalidSourceUrlError: If the URL is missing, malformed or not http(s)
    """
    if not url or not url.strip():
        raise InvalidSourceUrlError("RSS URL is required")
    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidSourceUrlError(f"Invalid RSS URL format: {e}") from e

    if parsed.scheme not in ("http", "https"):
        logger.debug("Blocked non-HTTP(S) URL: %s", url)
        raise InvalidSourceUrlError(f"Invalid URL scheme: {parsed.scheme or '(none)'}")
    if not parsed.hostname:
        logger.debug("Blocked URL with missing hostname: %s", url)
        raise InvalidSourceUrlError("URL missing hostname")
    return url


class FeedFetcher:
    """Async HTTP client for downloading feeds."""

    def __init__(self, settings: Any, shared_client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize feed fetcher.

        Args:
            settings: Configuration dict or attribute object (request_timeout,
                max_retries, retry_backoff_factor, max_feed_bytes)
            shared_client: Optional shared HTTP client for connection reuse
        """
        self.settings = settings
        self.client: Optional[httpx.AsyncClient] = shared_client
        self._owns_client = False
        self.request_timeout = float(
            get_config_value(settings, "request_timeout", DEFAULT_REQUEST_TIMEOUT)
        )
        self.max_retries = int(get_config_value(settings, "max_retries", DEFAULT_MAX_RETRIES))
        self.backoff_factor = float(
            get_config_value(settings, "retry_backoff_factor", DEFAULT_RETRY_BACKOFF_FACTOR)
        )
        self.max_feed_bytes = int(
            get_config_value(settings, "max_feed_bytes", DEFAULT_MAX_FEED_BYTES)
        )

        logger.debug("Feed fetcher initialized (shared_client: %s)", shared_client is not None)

    async def __aenter__(self) -> "FeedFetcher":
        await self._ensure_client()
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self.client is not None and self._owns_client and not self.client.is_closed:
            await self.client.aclose()
            logger.debug("Closed individual HTTP client")
        if self._owns_client:
            self.client = None
            self._owns_client = False

    async def _ensure_client(self) -> None:
        if self.client is not None and not self.client.is_closed:
            return
        try:
            self.client = await get_shared_client("feed_fetcher")
            self._owns_client = False
            return
        except RuntimeError as e:
            logger.warning("Failed to get shared HTTP client, using individual client: %s", e)

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=10.0, read=self.request_timeout, write=10.0, pool=30.0),
            follow_redirects=True,
            verify=True,
        )
        self._owns_client = True

    async def fetch(self, url: str) -> FeedFetchResponse:
        """Download a feed body.

        Args:
            url: Feed URL (http or https)

        Returns:
            FeedFetchResponse with the raw body bytes

        Raises:
            InvalidSourceUrlError: URL is not an absolute http(s) URL
            FeedHTTPStatusError: Origin answered with a non-2xx status
            FeedTimeoutError: Origin did not answer in time after all retries
            FeedNetworkError: Connection failed after all retries
            FeedContentTooLargeError: Body exceeds ``max_feed_bytes``
        """
        url = validate_feed_url(url)
        await self._ensure_client()

        try:
            logger.debug("Fetching feed from %s", url)
            response = await self._make_request_with_retry(url)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("HTTP error fetching feed from %s: %d", url, status)
            raise FeedHTTPStatusError(
                f"Failed to fetch RSS feed: {status}", status_code=status
            ) from e
        except httpx.TimeoutException as e:
            logger.warning("Timeout fetching feed from %s", url)
            raise FeedTimeoutError(f"Request timeout after {self.request_timeout:g}s") from e
        except httpx.TransportError as e:
            logger.warning("Network error fetching feed from %s: %s", url, e)
            raise FeedNetworkError(f"Network error: {e}") from e

        return self._create_response(url, response)

    def _calculate_backoff(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at MAX_BACKOFF_SECONDS."""
        base_backoff = min(self.backoff_factor**attempt, MAX_BACKOFF_SECONDS)
        jitter = random.uniform(JITTER_MIN_FACTOR, JITTER_MAX_FACTOR) * base_backoff  # nosec B311 - jitter not cryptographic
        return base_backoff + jitter

    async def _make_request_with_retry(self, url: str) -> httpx.Response:
        """GET the URL, retrying timeouts and network errors.

        HTTP status errors are never retried.
        """
        attempt = 0
        while True:
            if self.client is None:
                _raise_client_not_initialized()
            try:
                response = await self.client.get(
                    url,
                    headers=get_request_headers(),
                    timeout=self.request_timeout,
                    follow_redirects=True,
                )
                response.raise_for_status()
                logger.debug(
                    "Fetched feed from %s (attempt %d) - %d bytes",
                    url,
                    attempt + 1,
                    len(response.content),
                )
                return response

            except httpx.HTTPStatusError:
                raise

            except (httpx.TimeoutException, httpx.TransportError) as e:
                if attempt >= self.max_retries:
                    logger.error("All %d fetch attempts failed for %s", attempt + 1, url)
                    raise
                backoff_time = self._calculate_backoff(attempt)
                logger.warning(
                    "Request failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1,
                    self.max_retries + 1,
                    backoff_time,
                    e,
                )
                await asyncio.sleep(backoff_time)
                attempt += 1

    def _create_response(self, url: str, http_response: httpx.Response) -> FeedFetchResponse:
        headers = dict(http_response.headers)
        content = http_response.content

        if len(content) > self.max_feed_bytes:
            logger.warning(
                "Feed from %s is %d bytes, limit is %d", url, len(content), self.max_feed_bytes
            )
            raise FeedContentTooLargeError(
                f"Feed is {len(content)} bytes, limit is {self.max_feed_bytes}"
            )

        content_type = http_response.headers.get("content-type", "").lower() or None
        if content_type and not any(ct in content_type for ct in EXPECTED_CONTENT_TYPES):
            logger.warning("Unexpected content type for feed %s: %s", url, content_type)

        return FeedFetchResponse(
            url=url,
            content=content,
            status_code=http_response.status_code,
            content_type=content_type,
            headers=headers,
        )
