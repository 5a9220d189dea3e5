"""Final cleanup pass removing tags that still point outside the artifact."""

from __future__ import annotations

import re
from typing import List

_FLAGS = re.IGNORECASE | re.DOTALL

# Attribute names only; data-src and data-href never match.
_SRC = r"(?<![\w-])src\s*=\s*"
_HREF = r"(?<![\w-])href\s*=\s*"
_DOUBLE = r'"(?!data:)[^"]*"'
_SINGLE = r"'(?!data:)[^']*'"
_CLOSE_SCRIPT = r"\s*</script\s*>"

# Paired forms must run before the open-tag forms, otherwise a bare
# </script> is left behind.
EXTERNAL_TAG_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"<script\b[^>]*{_SRC}{_DOUBLE}[^>]*>{_CLOSE_SCRIPT}", _FLAGS),
    re.compile(rf"<script\b[^>]*{_SRC}{_SINGLE}[^>]*>{_CLOSE_SCRIPT}", _FLAGS),
    re.compile(rf"<script\b[^>]*{_SRC}{_DOUBLE}[^>]*>", _FLAGS),
    re.compile(rf"<script\b[^>]*{_SRC}{_SINGLE}[^>]*>", _FLAGS),
    re.compile(rf"<link\b[^>]*{_HREF}{_DOUBLE}[^>]*>", _FLAGS),
    re.compile(rf"<link\b[^>]*{_HREF}{_SINGLE}[^>]*>", _FLAGS),
)

# Inline <script>/<style> bodies hold code, not markup; leave them alone.
RAW_TEXT_BLOCK_RE = re.compile(
    rf"<(script|style)\b(?![^>]*{_SRC})[^>]*>.*?</\1\s*>", _FLAGS
)


def _strip_markup(segment: str) -> str:
    for pattern in EXTERNAL_TAG_PATTERNS:
        segment = pattern.sub("", segment)
    return segment


def _single_pass(html: str) -> str:
    pieces: List[str] = []
    cursor = 0
    for block in RAW_TEXT_BLOCK_RE.finditer(html):
        pieces.append(_strip_markup(html[cursor:block.start()]))
        pieces.append(block.group(0))
        cursor = block.end()
    pieces.append(_strip_markup(html[cursor:]))
    return "".join(pieces)


def strip_external_references(html: str) -> str:
    """Remove external script and link tags until nothing changes.

    Running it again on its own output returns the same string.
    """

    current = html
    while True:
        cleaned = _single_pass(current)
        if cleaned == current:
            return cleaned
        current = cleaned


__all__ = ["EXTERNAL_TAG_PATTERNS", "strip_external_references"]
