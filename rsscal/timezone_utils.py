"""Clock and UTC helpers for rsscal."""

from __future__ import annotations

import datetime
import logging
import os
from typing import Callable

logger = logging.getLogger(__name__)

# Callable returning the current instant; injected into the conversion engine
Clock = Callable[[], datetime.datetime]


class TimeProvider:
    """Provides current time with test time override support."""

    def __init__(self, env_var: str = "RSSCAL_TEST_TIME"):
        self.env_var = env_var

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the RSSCAL_TEST_TIME environment variable.
        Format: ISO 8601 datetime string (e.g., "2024-10-02T10:00:00Z")

        Returns:
            Current time in UTC with timezone info
        """
        test_time = os.environ.get(self.env_var)
        if test_time:
            try:
                from dateutil import parser as date_parser

                return ensure_utc(date_parser.isoparse(test_time))
            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", self.env_var, test_time, e)
                # Fall through to real time

        return datetime.datetime.now(datetime.timezone.utc)


_time_provider = TimeProvider()


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function).

    Returns:
        Current time in UTC
    """
    return _time_provider.now_utc()


def ensure_utc(dt: datetime.datetime) -> datetime.datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def format_ics_utc(dt: datetime.datetime) -> str:
    """Format a datetime in the compact iCalendar UTC form.

    Examples:
        >>> format_ics_utc(datetime.datetime(2024, 10, 2, 10, 0, tzinfo=datetime.timezone.utc))
        '20241002T100000Z'
    """
    utc = ensure_utc(dt)
    # strftime does not zero-pad years below 1000 on every platform
    return (
        f"{utc.year:04d}{utc.month:02d}{utc.day:02d}"
        f"T{utc.hour:02d}{utc.minute:02d}{utc.second:02d}Z"
    )


def serialize_iso(dt: datetime.datetime | None) -> str | None:
    """Serialize datetime to ISO 8601 UTC string with Z suffix, or None."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")
