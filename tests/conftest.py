"""Shared fixtures for rsscal tests."""

from collections.abc import AsyncIterator, Generator
from types import SimpleNamespace
from typing import Any

import pytest

from rsscal import feed_parser
from rsscal.http_client import close_all_clients
from tests.fixtures.feed_data import FIXED_NOW, SAMPLE_FEED

CONFIG_ENV_VARS = [
    "RSSCAL_WEB_HOST",
    "RSSCAL_SERVER_BIND",
    "RSSCAL_WEB_PORT",
    "RSSCAL_SERVER_PORT",
    "RSSCAL_REQUEST_TIMEOUT",
    "RSSCAL_MAX_RETRIES",
    "RSSCAL_RETRY_BACKOFF_FACTOR",
    "RSSCAL_MAX_FEED_BYTES",
    "RSSCAL_DEBUG",
    "RSSCAL_LOG_LEVEL",
    "RSSCAL_TEST_TIME",
]


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight fetcher settings used across tests.

    Fields:
      - request_timeout: HTTP read timeout in seconds
      - max_retries: retry attempts for HTTP fetches
      - retry_backoff_factor: multiplier for retry backoff delays
      - max_feed_bytes: largest accepted feed body
    """
    return SimpleNamespace(
        request_timeout=5,
        max_retries=2,
        retry_backoff_factor=1.5,
        max_feed_bytes=1024 * 1024,
    )


@pytest.fixture
def fixed_clock() -> Any:
    """Clock returning FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def sample_feed() -> bytes:
    return SAMPLE_FEED


@pytest.fixture
def failing_meetup_item(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make extraction of the sample feed's "Meetup" item (index 1) raise."""
    child_text = feed_parser._child_text

    def flaky_child_text(parent: Any, name: str) -> Any:
        if feed_parser._local_name(parent) == "item" and child_text(parent, "title") == "Meetup":
            raise RuntimeError("boom")
        return child_text(parent, name)

    monkeypatch.setattr(feed_parser, "_child_text", flaky_child_text)


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Clear rsscal environment variables so host settings never leak into tests."""
    for key in CONFIG_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
async def cleanup_shared_http_clients() -> AsyncIterator[None]:
    """Close shared httpx clients after every test to prevent resource leaks."""
    yield
    await close_all_clients()
