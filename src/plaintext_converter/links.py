"""Link rendering and the numbered link list printed after the text."""

from __future__ import annotations

import re
from collections.abc import Iterator

from .entities import decode_entities
from .models import LinkMode


LINK_OVERRIDE_TOKEN = "_html2text_link_"
FOOTNOTE_HEADER = "\n\nLinks:\n------\n"

_IGNORED_LINK_RE = re.compile(r"^(?:javascript:|mailto:|tel:|#)", re.IGNORECASE)
_LINK_OVERRIDE_RE = re.compile(re.escape(LINK_OVERRIDE_TOKEN) + r"(\w+)")


def parse_link_override(attributes: str) -> LinkMode | None:
    """Return the link mode requested by an ``_html2text_link_<mode>`` token, if any."""

    if not attributes:
        return None
    match = _LINK_OVERRIDE_RE.search(attributes)
    if match is None:
        return None
    try:
        return LinkMode.parse(match.group(1))
    except ValueError:
        return None


def is_ignored_link(url: str) -> bool:
    return bool(_IGNORED_LINK_RE.match(decode_entities(url)))


class LinkList:
    """Unique URLs in first-seen order; positions are the 1-based footnote indices."""

    def __init__(self) -> None:
        self._urls: list[str] = []

    def __len__(self) -> int:
        return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    @property
    def urls(self) -> list[str]:
        return list(self._urls)

    def index_of(self, url: str) -> int:
        try:
            return self._urls.index(url) + 1
        except ValueError:
            self._urls.append(url)
            return len(self._urls)

    def render(
        self,
        url: str,
        display: str,
        mode: LinkMode,
        *,
        override: LinkMode | None = None,
        newline: bool = False,
    ) -> str:
        method = override if override is not None else mode
        suffix = "\n" if newline else ""
        if method is LinkMode.OFF:
            return display + suffix

        url = url.replace(" ", "")
        if is_ignored_link(url):
            return display + suffix

        if method is LinkMode.TABLE:
            return f"{display} [{self.index_of(url)}]{suffix}"
        if method is LinkMode.BBCODE:
            return f"[url={url}]{display}[/url]{suffix}"
        if url == display:
            return display + suffix
        if method is LinkMode.NEXTLINE:
            return f"{display}\n[{url}]{suffix}"
        return f"{display} [{url}]{suffix}"

    def footnote(self) -> str:
        if not self._urls:
            return ""
        lines = [f"[{index}] {decode_entities(url)}\n" for index, url in enumerate(self._urls, start=1)]
        return FOOTNOTE_HEADER + "".join(lines)


__all__ = [
    "FOOTNOTE_HEADER",
    "LINK_OVERRIDE_TOKEN",
    "LinkList",
    "is_ignored_link",
    "parse_link_override",
]
