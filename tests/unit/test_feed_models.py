"""Unit tests for rsscal.feed_models validation."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from rsscal.feed_models import (
    FeedFetchResponse,
    FeedItem,
    FeedParseResult,
    ItemExtraction,
    NormalizedEvent,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]

START = datetime(2024, 10, 2, 10, 0, tzinfo=timezone.utc)


def _event(**overrides: object) -> NormalizedEvent:
    values: dict = {
        "uid": "x-1-0@rss-to-ical.local",
        "created_at": START,
        "starts_at": START,
        "ends_at": START + timedelta(hours=1),
    }
    values.update(overrides)
    return NormalizedEvent(**values)


class TestNormalizedEvent:
    def test_normalized_event_when_end_after_start_then_valid(self) -> None:
        event = _event()
        assert event.summary == ""
        assert event.url == ""

    def test_normalized_event_when_end_not_after_start_then_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _event(ends_at=START)

    def test_normalized_event_when_dumped_then_iso_datetimes(self) -> None:
        data = _event().model_dump()
        assert data["starts_at"] == "2024-10-02T10:00:00+00:00"

    def test_normalized_event_when_mutated_then_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _event().uid = "other"  # type: ignore[misc]


class TestFeedModels:
    def test_feed_item_when_frozen_then_hashable_and_comparable(self) -> None:
        assert FeedItem(title="a") == FeedItem(title="a")
        assert len({FeedItem(title="a"), FeedItem(title="a")}) == 1

    def test_item_extraction_when_no_item_then_not_ok(self) -> None:
        assert not ItemExtraction(index=0, skip_reason="bad").ok
        assert ItemExtraction(index=0, item=FeedItem()).ok

    def test_feed_parse_result_when_items_then_count(self) -> None:
        assert FeedParseResult(items=[FeedItem(), FeedItem()]).item_count == 2

    def test_feed_fetch_response_when_created_then_length_and_fetch_time(self) -> None:
        response = FeedFetchResponse(url="https://e.com/rss", content=b"<rss/>", status_code=200)
        assert response.content_length == 6
        assert response.fetch_time.tzinfo is not None
