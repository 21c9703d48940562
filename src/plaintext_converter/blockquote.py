"""Quoted blocks are rendered recursively and fed back in as preformatted text."""

from __future__ import annotations

import re
from collections.abc import Callable

from .context import ConversionContext
from .entities import TRIM_CHARS, encode_entities
from .models import ConversionOptions


QUOTE_MARKER = "> "

RenderFragment = Callable[[str, ConversionOptions, ConversionContext], str]

_QUOTE_TAG_RE = re.compile(r"</*blockquote[^>]*>", re.IGNORECASE)
_LINE_START_RE = re.compile(r"((?:^|\n)>*)")


def convert_blockquotes(
    text: str,
    options: ConversionOptions,
    context: ConversionContext,
    render: RenderFragment,
) -> str:
    """Replace each outermost ``<blockquote>`` with a quoted ``<pre>`` block.

    Inner quotes are left to the recursive ``render`` call. Offsets come from the
    untouched input and the output is assembled from slices, so replacements of a
    different length never shift later matches.
    """

    pieces: list[str] = []
    cursor = 0
    depth = 0
    start = body_start = 0
    for tag in _QUOTE_TAG_RE.finditer(text):
        if not tag.group(0).startswith("</"):
            if depth == 0:
                start = tag.start()
                body_start = tag.end()
            depth += 1
            continue

        if depth == 0:
            # stray closing tag
            continue
        depth -= 1
        if depth > 0:
            continue

        context.ensure_deadline("blockquote")
        pieces.append(text[cursor:start])
        pieces.append(render_quote(text[body_start : tag.start()], options, context, render))
        cursor = tag.end()

    if not pieces:
        return text
    pieces.append(text[cursor:])
    return "".join(pieces)


def render_quote(
    body: str,
    options: ConversionOptions,
    context: ConversionContext,
    render: RenderFragment,
) -> str:
    with context.nested():
        converted = render(body.strip(TRIM_CHARS), options.narrowed(), context)
    quoted = _LINE_START_RE.sub(lambda match: match.group(1) + QUOTE_MARKER, converted.strip(TRIM_CHARS))
    return "<pre>" + encode_entities(quoted) + "</pre>"


__all__ = ["QUOTE_MARKER", "convert_blockquotes", "render_quote"]
