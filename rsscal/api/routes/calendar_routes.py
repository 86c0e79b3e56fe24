"""Calendar conversion API routes for rsscal."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any, Callable, Optional

from aiohttp import web

from rsscal.converter import FeedConverter
from rsscal.exceptions import (
    FeedFetchError,
    FeedTimeoutError,
    InvalidSourceUrlError,
    MalformedXmlError,
)
from rsscal.feed_models import FeedFetchResponse
from rsscal.timezone_utils import Clock

logger = logging.getLogger(__name__)

FetchFeed = Callable[[str], Awaitable[FeedFetchResponse]]

NO_CACHE_HEADERS = {
    "Content-Disposition": 'attachment; filename="calendar.ics"',
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

SAMPLE_CALENDAR_HEADERS = {
    "Cache-Control": "public, max-age=3600",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Fixed calendar for checking that a subscribing client accepts the format
SAMPLE_CALENDAR = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Test//Test//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        "UID:test-event-123@rss-to-ical.local",
        "DTSTAMP:20250820T120000Z",
        "DTSTART:20250821T140000Z",
        "DTEND:20250821T150000Z",
        "SUMMARY:Test Event",
        "DESCRIPTION:This is a test event to verify iCal format",
        "STATUS:CONFIRMED",
        "SEQUENCE:0",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
) + "\r\n"


def fetch_error_status(error: FeedFetchError) -> int:
    """HTTP status for a failed upstream fetch."""
    if isinstance(error, InvalidSourceUrlError):
        return 400
    if isinstance(error, FeedTimeoutError):
        return 504
    return 502


def _error_response(message: str, status: int, details: Optional[str] = None) -> web.Response:
    body: dict[str, Any] = {"error": message}
    if details:
        body["details"] = details
    return web.json_response(body, status=status)


def register_calendar_routes(
    app: web.Application,
    fetch_feed: FetchFeed,
    converter: FeedConverter,
    time_provider: Clock,
    serialize_iso: Callable[[Any], Optional[str]],
) -> None:
    """Register the conversion routes.

    Args:
        app: aiohttp web application
        fetch_feed: Coroutine function downloading a feed body by URL
        converter: Conversion service turning feed bodies into calendar text
        time_provider: Function to get current UTC time
        serialize_iso: Function to serialize datetime to ISO string
    """

    async def ical(request: web.Request) -> web.Response:
        """Fetch a feed and answer with its calendar rendition."""
        rss_url = request.query.get("url")
        if not rss_url:
            return _error_response("RSS URL is required", 400)

        try:
            fetched = await fetch_feed(rss_url)
        except InvalidSourceUrlError as e:
            logger.debug("Rejected feed URL %r: %s", rss_url, e)
            return _error_response("Invalid RSS URL format", 400)
        except FeedFetchError as e:
            logger.warning("Failed to fetch feed %s: %s", rss_url, e)
            return _error_response("Failed to fetch RSS feed", fetch_error_status(e), str(e))

        try:
            result = converter.convert(fetched.content, fetched.url)
        except MalformedXmlError as e:
            logger.warning("Feed %s is not valid XML: %s", rss_url, e)
            return _error_response("Invalid RSS XML format", 400, str(e))
        except Exception:
            logger.exception("Error converting RSS to iCal for %s", rss_url)
            return _error_response("Failed to convert RSS to iCal", 500)

        return web.Response(
            text=result.calendar_text,
            content_type="text/calendar",
            charset="utf-8",
            headers=NO_CACHE_HEADERS,
        )

    async def debug_rss(request: web.Request) -> web.Response:
        """Report how a feed parses, for troubleshooting subscriptions."""
        rss_url = request.query.get("url")
        if not rss_url:
            return _error_response("RSS URL is required", 400)

        try:
            fetched = await fetch_feed(rss_url)
        except InvalidSourceUrlError:
            return _error_response("Invalid RSS URL format", 400)
        except FeedFetchError as e:
            logger.warning("Failed to fetch feed %s: %s", rss_url, e)
            return _error_response("Failed to fetch RSS feed", fetch_error_status(e), str(e))

        try:
            summary = converter.describe(fetched.content, fetched.url)
        except MalformedXmlError as e:
            return _error_response("Failed to parse RSS XML", 400, str(e))
        except Exception as e:
            logger.exception("Error debugging RSS for %s", rss_url)
            return _error_response("Failed to debug RSS", 500, str(e))

        return web.json_response(summary)

    async def test_ical(_request: web.Request) -> web.Response:
        return web.Response(
            text=SAMPLE_CALENDAR,
            content_type="text/calendar",
            charset="utf-8",
            headers=SAMPLE_CALENDAR_HEADERS,
        )

    async def health_check(_request: web.Request) -> web.Response:
        return web.json_response(
            {"status": "ok", "server_time_iso": serialize_iso(time_provider())}
        )

    app.router.add_get("/api/ical", ical)
    app.router.add_get("/api/debug-rss", debug_rss)
    app.router.add_get("/api/test-ical", test_ical)
    app.router.add_get("/api/health", health_check)
