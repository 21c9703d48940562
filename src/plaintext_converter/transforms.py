"""Character-level rewrites that must leave embedded markup untouched."""

from __future__ import annotations

import re
from collections.abc import Callable

from .entities import decode_entities, encode_entities


STRIKE_MARK = "\u0336"

_TAG_SPLIT_RE = re.compile(r"(<[^>]*>)")


def _map_text(text: str, transform: Callable[[str], str]) -> str:
    parts = _TAG_SPLIT_RE.split(text)
    # re.split with one capture group puts the tags at odd indices.
    return "".join(part if index % 2 or not part else transform(part) for index, part in enumerate(parts))


def upper_preserving_tags(text: str) -> str:
    """Uppercase the text between tags, leaving the tags themselves untouched."""

    return _map_text(text, lambda part: encode_entities(decode_entities(part).upper()))


def strike_preserving_tags(text: str) -> str:
    """Strike through the text between tags; entities count as one character."""

    return _map_text(text, lambda part: encode_entities(strikethrough(decode_entities(part))))


def strikethrough(text: str) -> str:
    return "".join(char + STRIKE_MARK for char in text)


__all__ = ["STRIKE_MARK", "strike_preserving_tags", "strikethrough", "upper_preserving_tags"]
