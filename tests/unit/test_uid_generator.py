"""Unit tests for rsscal.uid_generator."""

from datetime import datetime, timezone

import pytest

from rsscal.uid_generator import MAX_SEED_LENGTH, UID_DOMAIN, clean_seed, generate_uid

pytestmark = [pytest.mark.unit, pytest.mark.fast]

NOW = datetime(2024, 10, 5, 12, 0, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)


class TestCleanSeed:
    def test_clean_seed_when_url_then_only_safe_characters(self) -> None:
        assert clean_seed("https://example.com/a_b?c=1") == "httpsexamplecomabc1"

    def test_clean_seed_when_none_then_empty(self) -> None:
        assert clean_seed(None) == ""

    def test_clean_seed_when_very_long_then_capped(self) -> None:
        assert len(clean_seed("a" * 500)) == MAX_SEED_LENGTH


class TestGenerateUid:
    """Tests for generate_uid."""

    def test_generate_uid_when_guid_then_seeded_by_guid(self) -> None:
        uid = generate_uid("meetup-42", 1, "https://example.com/rss", NOW)
        assert uid == f"meetup-42-{NOW_MS}-1@{UID_DOMAIN}"

    def test_generate_uid_when_no_guid_then_seeded_by_source_and_index(self) -> None:
        uid = generate_uid(None, 3, "https://example.com/rss", NOW)
        assert uid == f"httpsexamplecomrss3-{NOW_MS}-3@{UID_DOMAIN}"

    def test_generate_uid_when_no_guid_and_no_source_then_event_index_seed(self) -> None:
        assert generate_uid(None, 4, None, NOW) == f"event-4-{NOW_MS}-4@{UID_DOMAIN}"

    def test_generate_uid_when_guid_all_unsafe_then_falls_back(self) -> None:
        uid = generate_uid("!!!///", 0, None, NOW)
        assert uid.startswith("event-0-")

    def test_generate_uid_when_identical_guids_then_distinct(self) -> None:
        uids = {generate_uid("same", i, None, NOW) for i in range(5)}
        assert len(uids) == 5

    def test_generate_uid_when_missing_guids_then_distinct(self) -> None:
        uids = {generate_uid(None, i, "https://example.com/rss", NOW) for i in range(12)}
        assert len(uids) == 12

    def test_generate_uid_when_called_then_domain_suffix(self) -> None:
        assert generate_uid("x", 0, None, NOW).endswith("@rss-to-ical.local")

    def test_generate_uid_when_long_guid_then_uid_line_near_fold_width(self) -> None:
        guid = "https://example.com/" + "very-long-article-slug-" * 10
        uid = generate_uid(guid, 7, None, NOW)

        assert uid == f"httpsexamplecomvery-long-article-slug-ve-{NOW_MS}-7@{UID_DOMAIN}"
        assert len(f"UID:{uid}") <= 80
