"""iCalendar document assembly.

Each component is built as a list of ``(name, value)`` property records and
serialized in one place, so escaping and folding happen once, in order, before
any line is written.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Sequence
from typing import Optional

from icalendar import Calendar

from .date_normalizer import event_end, normalize_publish_date
from .exceptions import EventBuildError
from .feed_models import (
    CalendarDocument,
    CalendarValidation,
    EventBuildResult,
    FeedItem,
    NormalizedEvent,
)
from .text_escaper import escape_and_fold
from .timezone_utils import Clock, ensure_utc, format_ics_utc, now_utc
from .uid_generator import generate_uid

logger = logging.getLogger(__name__)

CRLF = "\r\n"

PRODID = "-//RSS to iCal Converter//EN"
DEFAULT_CALENDAR_TITLE = "RSS Calendar"
DEFAULT_CALENDAR_DESCRIPTION = "Calendar converted from RSS feed"
DEFAULT_EVENT_TITLE = "Untitled Event"

PropertyRecord = tuple[str, str]


def _single_line(value: Optional[str]) -> str:
    """Values written verbatim (URL) must not break the line structure."""
    if not value:
        return ""
    return value.replace("\r", "").replace("\n", "")


class CalendarBuilder:
    """Builds calendar documents from feed items."""

    def __init__(self, clock: Clock = now_utc) -> None:
        """Initialize calendar builder.

        Args:
            clock: Source of the generation instant, sampled once per document
        """
        self.clock = clock

    def build_event(
        self,
        item: FeedItem,
        index: int,
        source_url: Optional[str],
        generated_at: datetime.datetime,
    ) -> NormalizedEvent:
        """Normalize a single feed item into an event.

        Raises:
            EventBuildError: If the item yields an invalid event
        """
        starts_at = normalize_publish_date(item.pub_date, generated_at)
        try:
            return NormalizedEvent(
                uid=generate_uid(item.guid, index, source_url, generated_at),
                created_at=generated_at,
                starts_at=starts_at,
                ends_at=event_end(starts_at),
                summary=escape_and_fold(item.title or DEFAULT_EVENT_TITLE),
                description=escape_and_fold(item.description or ""),
                url=_single_line(item.link),
            )
        except (ValueError, OverflowError) as e:
            raise EventBuildError(f"item {index}: {e}") from e

    def build_events(
        self,
        items: Sequence[FeedItem],
        source_url: Optional[str],
        generated_at: datetime.datetime,
    ) -> list[EventBuildResult]:
        """Build one result per item, in input order; failures become skip results."""
        results: list[EventBuildResult] = []
        for index, item in enumerate(items):
            try:
                event = self.build_event(item, index, source_url, generated_at)
            except Exception as e:
                logger.warning("Skipping event for item %d: %s", index, e, exc_info=True)
                results.append(EventBuildResult(index=index, skip_reason=str(e) or type(e).__name__))
                continue
            results.append(EventBuildResult(index=index, event=event))
        return results

    def build_document(
        self,
        items: Sequence[FeedItem],
        channel_title: Optional[str],
        channel_description: Optional[str],
        source_url: Optional[str],
    ) -> CalendarDocument:
        """Assemble a calendar document for one conversion request."""
        generated_at = ensure_utc(self.clock())
        results = self.build_events(items, source_url, generated_at)
        events = [r.event for r in results if r.event is not None]
        skipped = len(results) - len(events)
        if skipped:
            logger.warning("Dropped %d of %d events while building calendar", skipped, len(results))

        return CalendarDocument(
            title=channel_title or DEFAULT_CALENDAR_TITLE,
            description=channel_description or DEFAULT_CALENDAR_DESCRIPTION,
            events=events,
            generated_at=generated_at,
            skipped_events=skipped,
        )

    @staticmethod
    def calendar_properties(document: CalendarDocument) -> list[PropertyRecord]:
        return [
            ("VERSION", "2.0"),
            ("PRODID", PRODID),
            ("CALSCALE", "GREGORIAN"),
            ("X-WR-CALNAME", escape_and_fold(document.title)),
            ("X-WR-CALDESC", escape_and_fold(document.description)),
            ("X-WR-TIMEZONE", "UTC"),
            ("METHOD", "PUBLISH"),
        ]

    @staticmethod
    def event_properties(event: NormalizedEvent) -> list[PropertyRecord]:
        return [
            ("UID", event.uid),
            ("DTSTAMP", format_ics_utc(event.created_at)),
            ("DTSTART", format_ics_utc(event.starts_at)),
            ("DTEND", format_ics_utc(event.ends_at)),
            ("SUMMARY", event.summary),
            ("DESCRIPTION", event.description),
            ("URL", event.url),
            ("STATUS", "CONFIRMED"),
            ("SEQUENCE", "0"),
            ("TRANSP", "OPAQUE"),
        ]

    def serialize(self, document: CalendarDocument) -> str:
        """Render a document as iCalendar text with CRLF line endings."""
        lines = ["BEGIN:VCALENDAR"]
        lines.extend(f"{name}:{value}" for name, value in self.calendar_properties(document))
        for event in document.events:
            lines.append("BEGIN:VEVENT")
            lines.extend(f"{name}:{value}" for name, value in self.event_properties(event))
            lines.append("END:VEVENT")
        lines.append("END:VCALENDAR")
        return CRLF.join(lines) + CRLF


def convert_to_calendar(
    items: Sequence[FeedItem],
    channel_title: Optional[str],
    channel_description: Optional[str],
    source_url: Optional[str],
    clock: Clock = now_utc,
) -> str:
    """Convert parsed feed items into calendar text."""
    builder = CalendarBuilder(clock)
    document = builder.build_document(items, channel_title, channel_description, source_url)
    return builder.serialize(document)


def validate_calendar(text: str) -> CalendarValidation:
    """Re-read generated text with icalendar and count its events."""
    try:
        calendar = Calendar.from_ical(text)
    except (ValueError, KeyError, IndexError) as e:
        return CalendarValidation(valid=False, error=str(e))

    events = calendar.walk("VEVENT")
    return CalendarValidation(valid=True, event_count=len(events))
