"""RFC 5545 text escaping and line folding.

Values are escaped first and folded second; folding never looks at escape
sequences, so a fold point may fall between a backslash and the character it
escapes. Calendar readers unfold before unescaping, which keeps this safe.
"""

from __future__ import annotations

# Escaped values are cut to this many characters to bound output size
MAX_ESCAPED_LENGTH = 1000

# Data characters per physical line when folding a value
FOLD_WIDTH = 75

FOLD_SEPARATOR = "\r\n "

_UNESCAPE_MAP = {"\\": "\\", ",": ",", ";": ";", "n": "\n", "N": "\n"}


def escape_text(text: str | None, max_length: int = MAX_ESCAPED_LENGTH) -> str:
    """Escape a TEXT property value.

    Order matters: backslashes first, so later escapes are not doubled.

    Examples:
        >>> escape_text("Sale, 50% off; don't miss!")
        "Sale\\\\, 50% off\\\\; don't miss!"
    """
    if not text:
        return ""
    escaped = (
        text.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\n", "\\n")
        .replace("\r", "")
    )
    if len(escaped) <= max_length:
        return escaped

    truncated = escaped[:max_length]
    # An odd run of trailing backslashes means the cut split an escape pair
    trailing = len(truncated) - len(truncated.rstrip("\\"))
    if trailing % 2:
        truncated = truncated[:-1]
    return truncated


def fold_text(text: str, width: int = FOLD_WIDTH) -> str:
    """Split ``text`` into ``width`` character chunks joined by CRLF + space."""
    if len(text) <= width:
        return text
    return FOLD_SEPARATOR.join(text[i : i + width] for i in range(0, len(text), width))


def escape_and_fold(text: str | None) -> str:
    """Escape then fold a value destined for a TEXT property."""
    return fold_text(escape_text(text))


def unfold_text(text: str) -> str:
    """Remove fold markers (CRLF or LF followed by one space or tab)."""
    return text.replace("\r\n ", "").replace("\r\n\t", "").replace("\n ", "").replace("\n\t", "")


def unescape_text(text: str) -> str:
    """Decode the escape sequences produced by :func:`escape_text`.

    Unknown escapes keep the escaped character; a lone trailing backslash is kept.
    """
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            out.append(_UNESCAPE_MAP.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)
