"""Feed to calendar conversion service.

Wires the feed parser and calendar builder together for one fetched body:

    content (bytes) -> parse_feed -> CalendarBuilder -> calendar text

The service owns no state between calls; every conversion samples the clock
once and builds a fresh document.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from .calendar_builder import CalendarBuilder, validate_calendar
from .feed_models import ConversionResult
from .feed_parser import parse_feed
from .timezone_utils import Clock, now_utc

logger = logging.getLogger(__name__)

# Number of items echoed back by describe()
SAMPLE_ITEM_COUNT = 3


class FeedConverter:
    """Converts raw feed bodies into calendar documents."""

    def __init__(self, clock: Clock = now_utc, builder: Optional[CalendarBuilder] = None) -> None:
        """Initialize converter.

        Args:
            clock: Source of the generation instant
            builder: Optional calendar builder (defaults to one using ``clock``)
        """
        self.builder = builder or CalendarBuilder(clock)

    def convert(self, content: Union[bytes, str], source_url: Optional[str]) -> ConversionResult:
        """Convert one feed body.

        Raises:
            MalformedXmlError: If the body is not well-formed XML
        """
        parsed = parse_feed(content)
        document = self.builder.build_document(
            parsed.items, parsed.channel_title, parsed.channel_description, source_url
        )
        calendar_text = self.builder.serialize(document)

        logger.info(
            "Converted feed %s: %d events (%d items skipped, %d events skipped)",
            source_url,
            document.event_count,
            parsed.skipped_count,
            document.skipped_events,
        )

        return ConversionResult(
            calendar_text=calendar_text,
            channel_title=parsed.channel_title,
            event_count=document.event_count,
            skipped_items=parsed.skipped_count,
            skipped_events=document.skipped_events,
            warnings=list(parsed.warnings),
        )

    def describe(self, content: Union[bytes, str], source_url: Optional[str]) -> dict[str, Any]:
        """Summarize how a feed body parses and converts, for troubleshooting.

        Raises:
            MalformedXmlError: If the body is not well-formed XML
        """
        parsed = parse_feed(content)
        document = self.builder.build_document(
            parsed.items, parsed.channel_title, parsed.channel_description, source_url
        )
        validation = validate_calendar(self.builder.serialize(document))
        samples = [item.model_dump() for item in parsed.items[:SAMPLE_ITEM_COUNT]]

        return {
            "success": True,
            "channelTitle": parsed.channel_title,
            "itemCount": parsed.item_count,
            "firstItem": samples[0] if samples else None,
            "sampleItems": samples,
            "skippedCount": parsed.skipped_count,
            "icsValid": validation.valid,
            "eventCount": validation.event_count,
        }


def convert_feed(
    content: Union[bytes, str],
    source_url: Optional[str],
    clock: Clock = now_utc,
) -> ConversionResult:
    """Convert one feed body with a fresh converter."""
    return FeedConverter(clock).convert(content, source_url)
