"""RSS feed parser.

Turns raw feed bytes into an ordered list of :class:`FeedItem` values. The
lxml tree only lives inside :func:`parse_feed`; everything downstream works on
the extracted models.

Layouts accepted:
- ``<rss><channel><item/>...</channel></rss>`` (RSS 0.9x / 2.0)
- ``<channel><item/>...</channel>`` (bare channel root)
- ``<rdf:RDF><channel/><item/>...</rdf:RDF>`` (RSS 1.0, items beside the channel)
- any other root carrying ``item`` children directly
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from lxml import etree

from .exceptions import MalformedXmlError
from .feed_models import FeedItem, FeedParseResult, ItemExtraction

logger = logging.getLogger(__name__)

# Feed bodies are untrusted: no DTD entity expansion, no network access
_STRICT_XML_PARSER = etree.XMLParser(
    recover=False,
    resolve_entities=False,
    no_network=True,
    huge_tree=False,
    collect_ids=False,
    remove_comments=True,
    remove_pis=True,
)

# Child element name -> FeedItem field
ITEM_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "link": "link",
    "pubDate": "pub_date",
    "guid": "guid",
}


def _local_name(element: etree._Element) -> Optional[str]:
    tag = element.tag
    if not isinstance(tag, str):
        return None
    return etree.QName(tag).localname


def _children_named(parent: etree._Element, name: str) -> list[etree._Element]:
    return [child for child in parent if _local_name(child) == name]


def _first_child(parent: etree._Element, name: str) -> Optional[etree._Element]:
    for child in parent:
        if _local_name(child) == name:
            return child
    return None


def _element_text(element: Optional[etree._Element]) -> Optional[str]:
    """Full text content of an element, stripped; empty text counts as absent.

    Covers plain text, CDATA and structured nodes (e.g. a guid carrying
    attributes or nested markup), which all reduce to their character data.
    """
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None


def _child_text(parent: etree._Element, name: str) -> Optional[str]:
    return _element_text(_first_child(parent, name))


def _parse_xml_root(content: Union[bytes, str]) -> etree._Element:
    if isinstance(content, str):
        # lxml rejects str input that carries an encoding declaration
        content = content.encode("utf-8")

    if not content or not content.strip():
        raise MalformedXmlError("Failed to parse XML: received empty content")

    try:
        root = etree.fromstring(content, parser=_STRICT_XML_PARSER)
    except etree.XMLSyntaxError as e:
        raise MalformedXmlError(f"Failed to parse XML content: {e}") from e

    if root is None:
        preview = content[:200].decode("utf-8", errors="replace").strip()
        raise MalformedXmlError(
            f"Failed to parse XML: content could not be parsed as XML (first 200 chars: {preview})"
        )
    return root


def locate_channel(root: etree._Element) -> etree._Element:
    """Find the channel-like node: the root itself, or its ``channel`` child."""
    if _local_name(root) == "channel":
        return root
    channel = _first_child(root, "channel")
    return channel if channel is not None else root


def locate_items(root: etree._Element, channel: etree._Element) -> list[etree._Element]:
    """Find item nodes under the channel, or beside it for RSS 1.0 documents."""
    items = _children_named(channel, "item")
    if not items and channel is not root:
        items = _children_named(root, "item")
    return items


def extract_item(element: etree._Element, index: int) -> ItemExtraction:
    """Extract one item, reporting a skip instead of raising."""
    try:
        values = {field: _child_text(element, name) for name, field in ITEM_FIELDS.items()}
        return ItemExtraction(index=index, item=FeedItem(**values))
    except Exception as e:
        logger.warning("Skipping feed item %d: %s", index, e, exc_info=True)
        return ItemExtraction(index=index, skip_reason=f"item {index}: {e}")


def parse_feed(content: Union[bytes, str]) -> FeedParseResult:
    """Parse a feed document into items plus channel metadata.

    Args:
        content: Raw feed body as fetched

    Returns:
        FeedParseResult with items in document order

    Raises:
        MalformedXmlError: If the body is not well-formed XML
    """
    root = _parse_xml_root(content)
    channel = locate_channel(root)
    item_elements = locate_items(root, channel)

    result = FeedParseResult(
        channel_title=_child_text(channel, "title"),
        channel_description=_child_text(channel, "description"),
    )

    for index, element in enumerate(item_elements):
        extraction = extract_item(element, index)
        if extraction.item is not None:
            result.items.append(extraction.item)
        else:
            result.skipped_count += 1
            result.warnings.append(extraction.skip_reason or f"item {index}: skipped")

    if result.skipped_count:
        logger.warning(
            "Parsed feed with %d items, %d skipped", result.item_count, result.skipped_count
        )
    else:
        logger.debug("Parsed feed with %d items", result.item_count)

    return result
