"""Publish-date interpretation for feed items.

RSS dates are nominally RFC 822 but feeds in the wild also use ISO 8601 and
assorted loose formats. Normalization is total: anything that cannot be read
becomes the fallback instant instead of an error.
"""

from __future__ import annotations

import datetime
import logging
from email.utils import parsedate_to_datetime
from typing import Optional

from dateutil import parser as date_parser

from .timezone_utils import ensure_utc

logger = logging.getLogger(__name__)

EVENT_DURATION = datetime.timedelta(hours=1)

# Offsets (seconds) for timezone abbreviations seen in feed dates
TZ_ABBREVIATIONS: dict[str, int] = {
    "UTC": 0,
    "UT": 0,
    "GMT": 0,
    "Z": 0,
    "WET": 0,
    "BST": 3600,
    "CET": 3600,
    "CEST": 7200,
    "EET": 7200,
    "EEST": 10800,
    "MSK": 10800,
    "IST": 19800,
    "SGT": 28800,
    "AWST": 28800,
    "JST": 32400,
    "KST": 32400,
    "AEST": 36000,
    "AEDT": 39600,
    "NZST": 43200,
    "NZDT": 46800,
    "EST": -18000,
    "EDT": -14400,
    "CST": -21600,
    "CDT": -18000,
    "MST": -25200,
    "MDT": -21600,
    "PST": -28800,
    "PDT": -25200,
    "AKST": -32400,
    "AKDT": -28800,
    "HST": -36000,
}

_LATEST_START = datetime.datetime.max.replace(tzinfo=datetime.timezone.utc) - EVENT_DURATION


def _parse_rfc822(value: str) -> Optional[datetime.datetime]:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


# Two defaults differing in year, month and day; a date string that leaves any
# of them unset parses differently against each
_FILL_DEFAULTS = (datetime.datetime(2000, 1, 1), datetime.datetime(2001, 2, 2))


def _parse_loose(value: str) -> Optional[datetime.datetime]:
    """Parse with dateutil, rejecting strings that lack a full calendar date.

    dateutil fills missing fields from its default, so "Monday" or "10:00"
    would otherwise become an invented instant.
    """
    try:
        first, second = (
            date_parser.parse(value, default=default, tzinfos=TZ_ABBREVIATIONS)
            for default in _FILL_DEFAULTS
        )
    except (ValueError, TypeError, OverflowError):
        return None
    if first != second:
        logger.debug("Date %r is missing its year, month or day", value)
        return None
    return first


def parse_publish_date(raw: Optional[str]) -> Optional[datetime.datetime]:
    """Parse a feed date string into an aware UTC datetime.

    Returns:
        The instant, or None when the text is absent or not a recognizable date.
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None

    parsed = _parse_rfc822(value) or _parse_loose(value)
    if parsed is None:
        return None

    try:
        result = ensure_utc(parsed)
    except (ValueError, OverflowError):
        return None

    # The event window must still fit in a datetime
    if result > _LATEST_START:
        return None
    return result


def normalize_publish_date(raw: Optional[str], fallback: datetime.datetime) -> datetime.datetime:
    """Resolve an item's start instant.

    Args:
        raw: Raw pubDate text, possibly absent
        fallback: Instant used when the date is absent or unreadable (the
            document generation time)

    Returns:
        Aware UTC datetime; never raises for bad input
    """
    parsed = parse_publish_date(raw)
    if parsed is not None:
        return parsed
    if raw is not None and raw.strip():
        logger.debug("Unparseable publish date %r, using generation time", raw)
    return ensure_utc(fallback)


def event_end(starts_at: datetime.datetime) -> datetime.datetime:
    """Every event lasts exactly one hour."""
    return starts_at + EVENT_DURATION
