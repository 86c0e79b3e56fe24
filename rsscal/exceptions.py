"""Custom exception hierarchy for feed conversion errors.

Conversion errors come from the engine (bad XML, a single event that could not
be built); fetch errors come from retrieving the remote feed. Route handlers map
each type to an HTTP status code.
"""

from typing import Optional


class RSSCalError(Exception):
    """Base exception for all rsscal errors."""


class ConversionError(RSSCalError):
    """Feed content could not be converted to a calendar."""


class MalformedXmlError(ConversionError):
    """Feed body is not well-formed XML.

    Raised when:
    - The body is empty
    - The body is plain text rather than markup
    - The XML is truncated or otherwise not well-formed

    Fatal to the whole conversion. Should result in HTTP 400 Bad Request.
    """


class EventBuildError(ConversionError):
    """A single calendar event could not be built.

    Never escapes the calendar builder: the event is dropped and the rest of
    the document is still produced.
    """


class FeedFetchError(RSSCalError):
    """Base exception for feed fetch errors."""


class InvalidSourceUrlError(FeedFetchError):
    """Feed URL is not an absolute http(s) URL with a host.

    Should result in HTTP 400 Bad Request.
    """


class FeedNetworkError(FeedFetchError):
    """Network error while fetching the feed (DNS, refused connection, TLS)."""


class FeedTimeoutError(FeedFetchError):
    """Feed origin did not answer within the configured timeout."""


class FeedHTTPStatusError(FeedFetchError):
    """Feed origin answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FeedContentTooLargeError(FeedFetchError):
    """Feed body exceeds the configured size limit."""
