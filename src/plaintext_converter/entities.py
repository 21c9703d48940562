"""Entity decoding, markup stripping and whitespace cleanup primitives."""

from __future__ import annotations

import html
import re
import textwrap


# Characters stripped by ``trim``-style cleanup. Non-breaking spaces are content.
TRIM_CHARS = " \t\n\r\0\x0b"

AMP_PLACEHOLDER = "|+|amp|+|"

SPECIAL_ENTITIES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"&#153;"), "™"),
    (re.compile(r"&#151;"), "—"),
    (re.compile(r"&#39;"), "'"),
)

_ESCAPED_AMP_RE = re.compile(r"&(?:amp|#38);", re.IGNORECASE)
_BARE_AMP_RE = re.compile(r"&(?!#?[a-zA-Z0-9]+;)")
_SPACE_RUN_RE = re.compile(r" {2,}")
_ENTITY_RE = re.compile(r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[a-zA-Z][a-zA-Z0-9]*);")
_UNKNOWN_ENTITY_RE = re.compile(r"&(?:[a-zA-Z0-9]{2,6}|#[0-9]{2,4});")
_MARKUP_RE = re.compile(r"<!--.*?-->|<[a-zA-Z/!?][^>]*>", re.DOTALL)
# ASCII whitespace only: lines of non-breaking spaces are intentional.
_BLANK_LINE_RE = re.compile(r"\n[ \t\n\r\f\v]+\n")
_NEWLINE_RUN_RE = re.compile(r"\n{3,}")


def replace_special_entities(text: str) -> str:
    for pattern, replacement in SPECIAL_ENTITIES:
        text = pattern.sub(replacement, text)
    return text


def protect_ampersands(text: str) -> str:
    """Swap escaped and bare ampersands for a placeholder that survives entity stripping."""

    text = _ESCAPED_AMP_RE.sub(AMP_PLACEHOLDER, text)
    return _BARE_AMP_RE.sub(AMP_PLACEHOLDER, text)


def restore_ampersands(text: str) -> str:
    return text.replace(AMP_PLACEHOLDER, "&")


def decode_entities(text: str) -> str:
    """Decode named and numeric references that carry a terminating semicolon.

    Unknown names are left in place so :func:`strip_unknown_entities` can drop them.
    """

    return _ENTITY_RE.sub(lambda match: html.unescape(match.group(0)), text)


def encode_entities(text: str) -> str:
    return html.escape(text, quote=False).replace('"', "&quot;")


def strip_unknown_entities(text: str) -> str:
    return _UNKNOWN_ENTITY_RE.sub("", text)


def collapse_spaces(text: str) -> str:
    return _SPACE_RUN_RE.sub(" ", text)


def normalize_entities(text: str) -> str:
    """Run the entity passes in order and return plain characters."""

    text = replace_special_entities(text)
    text = protect_ampersands(text)
    text = collapse_spaces(text)
    text = decode_entities(text)
    text = strip_unknown_entities(text)
    return restore_ampersands(text)


def strip_tags(text: str) -> str:
    return _MARKUP_RE.sub("", text)


def collapse_whitespace(text: str) -> str:
    text = _BLANK_LINE_RE.sub("\n\n", text)
    text = _NEWLINE_RUN_RE.sub("\n\n", text)
    return text.lstrip("\n")


def wrap(text: str, width: int) -> str:
    """Greedy word wrap at ``width`` columns; existing line breaks are kept."""

    if width <= 0:
        return text
    return "\n".join(_wrap_line(line, width) for line in text.split("\n"))


def _wrap_line(line: str, width: int) -> str:
    if len(line) <= width:
        return line
    wrapped = textwrap.wrap(
        line,
        width=width,
        expand_tabs=False,
        replace_whitespace=False,
        break_long_words=False,
        break_on_hyphens=False,
    )
    return "\n".join(wrapped) if wrapped else line


__all__ = [
    "AMP_PLACEHOLDER",
    "TRIM_CHARS",
    "collapse_spaces",
    "collapse_whitespace",
    "decode_entities",
    "encode_entities",
    "normalize_entities",
    "protect_ampersands",
    "replace_special_entities",
    "restore_ampersands",
    "strip_tags",
    "strip_unknown_entities",
    "wrap",
]
