"""UID generation for calendar events."""

from __future__ import annotations

import datetime
import re
from typing import Optional

UID_DOMAIN = "rss-to-ical.local"

# Seeds come from untrusted guids; UID lines are never folded, so keep them near 75 octets
MAX_SEED_LENGTH = 40

_UNSAFE_UID_CHARS = re.compile(r"[^A-Za-z0-9-]")


def clean_seed(value: Optional[str]) -> str:
    """Strip everything outside ``[A-Za-z0-9-]``."""
    if not value:
        return ""
    return _UNSAFE_UID_CHARS.sub("", value)[:MAX_SEED_LENGTH]


def generate_uid(
    guid: Optional[str],
    index: int,
    source_url: Optional[str],
    generated_at: datetime.datetime,
) -> str:
    """Build an event UID unique within one generated document.

    The seed is the cleaned guid, else the cleaned ``<source_url>#<index>``,
    else ``event-<index>``. The generation timestamp and the item index follow
    it, so two items sharing a guid (or lacking one) never collide.

    Args:
        guid: Raw guid text from the feed item
        index: Position of the item in the feed
        source_url: URL the feed was fetched from
        generated_at: Document generation instant

    Returns:
        UID of the form ``<seed>-<epoch ms>-<index>@rss-to-ical.local``
    """
    seed = clean_seed(guid)
    if not seed:
        seed = clean_seed(f"{source_url or ''}#{index}")
        # A bare index is not much of a seed
        if not seed or seed == str(index):
            seed = f"event-{index}"

    stamp = int(generated_at.timestamp() * 1000)
    return f"{seed}-{stamp}-{index}@{UID_DOMAIN}"
