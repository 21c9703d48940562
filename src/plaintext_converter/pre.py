"""Preformatted blocks, rewritten so their whitespace survives the later passes."""

from __future__ import annotations

import re

from .context import ConversionContext
from .rules import TagRewriter, closing_bound


NBSP = "&nbsp;"
TAB_SPACES = 4

_PRE_BLOCK_RE = re.compile(r"<pre[^>]*>(.*?)</pre>", re.IGNORECASE | re.DOTALL)
_PRE_CLOSE_RE = re.compile(r"</pre", re.IGNORECASE)
_PRE_BREAK_RE = re.compile(r"<br\b[^>]*>", re.IGNORECASE)
_PRE_TAG_RE = re.compile(r"<pre[^>]*>|</pre>", re.IGNORECASE)


def convert_pre(text: str, rewriter: TagRewriter, context: ConversionContext) -> str:
    """Replace every ``<pre>`` block with markup whose whitespace survives later passes."""

    position = 0
    while True:
        end = closing_bound(text, _PRE_CLOSE_RE)
        match = _PRE_BLOCK_RE.search(text, position, end) if end >= 0 else None
        if match is None:
            return text
        context.ensure_deadline("preformatted block")
        rendered = render_pre(match.group(1), rewriter)
        # Spliced by slicing so the rendered block is never read as a substitution template.
        text = text[: match.start()] + rendered + text[match.end() :]
        # The rendered block holds no pre tags, so the next block starts after it.
        position = match.start() + len(rendered)


def render_pre(content: str, rewriter: TagRewriter) -> str:
    content = _PRE_BREAK_RE.sub("\n", content)
    content = rewriter.apply_callbacks(content)
    content = content.replace("\n", "<br>")
    content = content.replace("\t", NBSP * TAB_SPACES)
    content = content.replace(" ", NBSP)
    content = _PRE_TAG_RE.sub("", content)
    return f"<div><br>{content}<br></div>"


__all__ = ["convert_pre", "render_pre"]
