"""Data models for feed to calendar conversion."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from .timezone_utils import now_utc as _now_utc


class FeedItem(BaseModel):
    """One item of a syndication feed, as extracted from the XML tree.

    Every field is optional: an item with no children is still an item.
    """

    title: Optional[str] = Field(default=None, description="Item title")
    description: Optional[str] = Field(default=None, description="Item description/body")
    link: Optional[str] = Field(default=None, description="Item link")
    pub_date: Optional[str] = Field(default=None, description="Raw, unparsed publish date")
    guid: Optional[str] = Field(default=None, description="Item guid as plain text")

    model_config = ConfigDict(frozen=True)


class ItemExtraction(BaseModel):
    """Result of extracting a single feed item: the item or the reason it was skipped."""

    index: int
    item: Optional[FeedItem] = None
    skip_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.item is not None


class FeedParseResult(BaseModel):
    """Result of parsing a feed document."""

    items: list[FeedItem] = Field(default_factory=list, description="Items in document order")
    channel_title: Optional[str] = None
    channel_description: Optional[str] = None

    # Per-item failures that were skipped
    skipped_count: int = 0
    warnings: list[str] = Field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.items)


class NormalizedEvent(BaseModel):
    """Calendar-ready event derived from one feed item.

    Text fields hold already escaped and folded property values.
    """

    uid: str = Field(..., description="Identifier unique within the generated document")
    created_at: datetime = Field(..., description="Document generation instant (DTSTAMP)")
    starts_at: datetime = Field(..., description="Event start (UTC)")
    ends_at: datetime = Field(..., description="Event end (UTC)")
    summary: str = Field(default="", description="Escaped and folded SUMMARY value")
    description: str = Field(default="", description="Escaped and folded DESCRIPTION value")
    url: str = Field(default="", description="URL value")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_window(self) -> "NormalizedEvent":
        if self.ends_at <= self.starts_at:
            raise ValueError("event must end after it starts")
        return self

    @field_serializer("created_at", "starts_at", "ends_at")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class EventBuildResult(BaseModel):
    """Result of building a single event: the event or the reason it was skipped."""

    index: int
    event: Optional[NormalizedEvent] = None
    skip_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.event is not None


class CalendarDocument(BaseModel):
    """Calendar assembled for one conversion request."""

    title: str
    description: str
    events: list[NormalizedEvent] = Field(default_factory=list)
    generated_at: datetime
    skipped_events: int = 0

    @property
    def event_count(self) -> int:
        return len(self.events)


class ConversionResult(BaseModel):
    """Outcome of converting one fetched feed body."""

    calendar_text: str
    channel_title: Optional[str] = None
    event_count: int = 0
    skipped_items: int = 0
    skipped_events: int = 0
    warnings: list[str] = Field(default_factory=list)


class FeedFetchResponse(BaseModel):
    """Response from a feed fetch operation."""

    url: str
    content: bytes
    status_code: int
    content_type: Optional[str] = None
    headers: dict[str, str] = Field(default_factory=dict)
    fetch_time: datetime = Field(default_factory=_now_utc)

    @property
    def content_length(self) -> int:
        return len(self.content)


class CalendarValidation(BaseModel):
    """Result of re-reading a generated calendar with an iCalendar parser."""

    valid: bool
    event_count: int = 0
    error: Optional[str] = None
