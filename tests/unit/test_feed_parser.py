"""Unit tests for rsscal.feed_parser."""

import pytest
from lxml import etree

from rsscal.exceptions import ConversionError, MalformedXmlError
from rsscal.feed_models import FeedItem
from rsscal.feed_parser import extract_item, locate_channel, locate_items, parse_feed

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestParseFeed:
    """Tests for parse_feed on well-formed documents."""

    def test_parse_feed_when_rss2_then_items_in_document_order(self, sample_feed: bytes) -> None:
        result = parse_feed(sample_feed)

        assert result.channel_title == "My Events"
        assert result.channel_description == "Things happening"
        assert [item.title for item in result.items] == ["Sale, 50% off; don't miss!", "Meetup", "Undated"]
        assert result.skipped_count == 0

    def test_parse_feed_when_item_fields_present_then_extracted(self, sample_feed: bytes) -> None:
        first = parse_feed(sample_feed).items[0]

        assert first == FeedItem(
            title="Sale, 50% off; don't miss!",
            description="Big savings",
            link="https://example.com/sale",
            pub_date="Wed, 02 Oct 2024 10:00:00 GMT",
            guid="https://example.com/sale",
        )

    def test_parse_feed_when_guid_has_attributes_then_text_only(self, sample_feed: bytes) -> None:
        assert parse_feed(sample_feed).items[1].guid == "meetup-42"

    def test_parse_feed_when_item_has_no_children_then_all_fields_absent(self) -> None:
        result = parse_feed(b"<rss><channel><item/></channel></rss>")
        assert result.items == [FeedItem()]

    def test_parse_feed_when_bare_channel_root_then_items_found(self) -> None:
        result = parse_feed(b"<channel><title>Bare</title><item><title>A</title></item></channel>")
        assert result.channel_title == "Bare"
        assert [i.title for i in result.items] == ["A"]

    def test_parse_feed_when_rss1_rdf_then_items_beside_channel(self) -> None:
        content = b"""<?xml version="1.0"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#" xmlns="http://purl.org/rss/1.0/">
  <channel rdf:about="https://example.com/"><title>RDF Feed</title></channel>
  <item rdf:about="https://example.com/1"><title>One</title><link>https://example.com/1</link></item>
  <item rdf:about="https://example.com/2"><title>Two</title></item>
</rdf:RDF>"""
        result = parse_feed(content)
        assert result.channel_title == "RDF Feed"
        assert [i.title for i in result.items] == ["One", "Two"]

    def test_parse_feed_when_single_item_then_one_element_list(self) -> None:
        result = parse_feed(b"<rss><channel><item><title>Only</title></item></channel></rss>")
        assert result.item_count == 1

    def test_parse_feed_when_no_items_then_empty(self) -> None:
        result = parse_feed(b"<rss><channel><title>Empty</title></channel></rss>")
        assert result.items == []
        assert result.channel_title == "Empty"

    def test_parse_feed_when_cdata_description_then_markup_kept_as_text(self) -> None:
        content = b"<rss><channel><item><description><![CDATA[<p>Hi, there</p>]]></description></item></channel></rss>"
        assert parse_feed(content).items[0].description == "<p>Hi, there</p>"

    def test_parse_feed_when_whitespace_only_field_then_absent(self) -> None:
        content = b"<rss><channel><item><title>   </title><link>\n</link></item></channel></rss>"
        item = parse_feed(content).items[0]
        assert item.title is None
        assert item.link is None

    def test_parse_feed_when_str_with_encoding_declaration_then_parsed(self) -> None:
        content = '<?xml version="1.0" encoding="UTF-8"?><rss><channel><item><title>Café</title></item></channel></rss>'
        assert parse_feed(content).items[0].title == "Café"

    def test_parse_feed_when_comments_present_then_ignored(self) -> None:
        content = b"<rss><channel><!-- note --><item><title>A<!-- x -->B</title></item></channel></rss>"
        assert parse_feed(content).items[0].title == "AB"

    @pytest.mark.usefixtures("failing_meetup_item")
    def test_parse_feed_when_item_extraction_fails_then_skipped_and_rest_kept(
        self, sample_feed: bytes
    ) -> None:
        result = parse_feed(sample_feed)

        assert [item.title for item in result.items] == ["Sale, 50% off; don't miss!", "Undated"]
        assert result.skipped_count == 1
        assert result.warnings == ["item 1: boom"]


class TestParseFeedErrors:
    """Tests for parse_feed on malformed input."""

    @pytest.mark.parametrize(
        "content",
        [
            b"",
            b"   ",
            b"this is plain text, not XML",
            b"<rss><channel><item><title>Unclosed</channel></rss>",
            b"{\"json\": true}",
        ],
    )
    def test_parse_feed_when_not_xml_then_raises_malformed(self, content: bytes) -> None:
        with pytest.raises(MalformedXmlError):
            parse_feed(content)

    def test_parse_feed_when_malformed_then_is_conversion_error(self) -> None:
        with pytest.raises(ConversionError):
            parse_feed(b"<<not xml>>")

    def test_parse_feed_when_external_entity_then_not_expanded(self) -> None:
        content = b"""<?xml version="1.0"?>
<!DOCTYPE rss [<!ENTITY ext SYSTEM "file:///etc/passwd">]>
<rss><channel><item><title>&ext;</title></item></channel></rss>"""
        result = parse_feed(content)
        assert result.items[0].title is None or "root:" not in result.items[0].title


class TestTreeHelpers:
    def test_locate_channel_when_rss_root_then_channel_child(self) -> None:
        root = etree.fromstring(b"<rss><channel><title>T</title></channel></rss>")
        channel = locate_channel(root)
        assert channel.tag == "channel"
        assert locate_items(root, channel) == []

    def test_extract_item_when_element_then_ok_result(self) -> None:
        element = etree.fromstring(b"<item><title>X</title><pubDate>today</pubDate></item>")
        extraction = extract_item(element, 7)
        assert extraction.ok
        assert extraction.index == 7
        assert extraction.item is not None and extraction.item.pub_date == "today"
