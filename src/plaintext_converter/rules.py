"""Tag rewriting: an ordered static rule table followed by tag-specific callbacks."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from .context import ConversionContext
from .entities import TRIM_CHARS
from .links import LinkList, parse_link_override
from .models import ConversionOptions
from .transforms import strike_preserving_tags, upper_preserving_tags


HIDDEN_CLASS = "plaintext:hidden"
UPPERCASE_CLASS = "plaintext:uppercase"
NAVBAR_LINK_END = "</mj-navbar-link>"

Replacement = str | Callable[[re.Match[str]], str]


def _closing(tag: str) -> re.Pattern[str]:
    return re.compile(re.escape(f"</{tag}"), re.IGNORECASE)


def closing_bound(text: str, closing: re.Pattern[str]) -> int:
    """Offset just past the last ``closing`` tag and any spaces after it, or -1 if none.

    A paired-tag pattern can only match before this offset; unclosed openers after it
    would otherwise each rescan the rest of the text.
    """

    last = None
    for last in closing.finditer(text):
        pass
    if last is None:
        return -1
    end = text.find(">", last.end())
    if end < 0:
        return len(text)
    end += 1
    while end < len(text) and text[end] == " ":
        end += 1
    return end


def substitute(
    pattern: re.Pattern[str],
    replacement: Replacement,
    text: str,
    closing: re.Pattern[str] | None = None,
) -> str:
    if closing is None:
        return pattern.sub(replacement, text)
    end = closing_bound(text, closing)
    if end < 0:
        return text
    return pattern.sub(replacement, text[:end]) + text[end:]


@dataclass(frozen=True, slots=True)
class StaticRule:
    pattern: re.Pattern[str]
    replacement: str
    closing: re.Pattern[str] | None = None

    def apply(self, text: str) -> str:
        return substitute(self.pattern, self.replacement, text, self.closing)


def _rule(pattern: str, replacement: str, closing: str | None = None) -> StaticRule:
    return StaticRule(
        re.compile(pattern, re.IGNORECASE),
        replacement,
        _closing(closing) if closing else None,
    )


def _hidden(tag: str, body: str = ".+?") -> StaticRule:
    return _rule(rf'<{tag}[^>]*?class="[^"]*?{HIDDEN_CLASS}[^>]*?>{body}</{tag}>', "", tag)


@lru_cache(maxsize=32)
def static_rules(ruler_width: int, image_alt_text: bool) -> tuple[StaticRule, ...]:
    """Build the static table; order matters, each rule sees the output of the previous one."""

    ruler = "\n\n" + "-" * ruler_width + "\n\n"
    return (
        _rule(r"\r", ""),
        _rule(r"[\n\t]+", " "),
        _rule(r"<head\b[^>]*>.*?</head>", "", "head"),
        _rule(r"<script\b[^>]*>.*?</script>", "", "script"),
        _rule(r"<style\b[^>]*>.*?</style>", "", "style"),
        _rule(rf'<mj-[^>]*?css-class="[^"]*?{HIDDEN_CLASS}[^>]*?>.+?</mj-[^>]*>', "", "mj-"),
        _hidden("p"),
        _hidden("span"),
        _hidden("div"),
        _hidden("table"),
        _hidden("tr"),
        _hidden("td", ".*?"),
        _rule(r"<i\b[^>]*>(.*?)</i>", r"_\g<1>_", "i"),
        _rule(r"<em\b[^>]*>(.*?)</em>", r"_\g<1>_", "em"),
        _rule(r"<ins\b[^>]*>(.*?)</ins>", r"_\g<1>_", "ins"),
        _rule(r"(<ul\b[^>]*>|</ul>)", "\n\n"),
        _rule(r"(<ol\b[^>]*>|</ol>)", "\n\n"),
        _rule(r"(<dl\b[^>]*>|</dl>)", "\n\n"),
        _rule(r"<li\b[^>]*>(.*?)</li>", "\t* \\g<1>\n", "li"),
        _rule(r"<dd\b[^>]*>(.*?)</dd>", " \\g<1>\n", "dd"),
        _rule(r"<dt\b[^>]*>(.*?)</dt>", "\t* \\g<1>", "dt"),
        _rule(r"<li\b[^>]*>", "\n\t* "),
        _rule(r"<hr\b[^>]*>", ruler),
        _rule(r"<div\b[^>]*>", "<div>\n"),
        _rule(r"(<table\b[^>]*>|</table>)", "\n\n"),
        _rule(r"(<tr\b[^>]*>|</tr>)", "\n"),
        _rule(r"<td\b[^>]*>(.*?)</td>", "\t\t\\g<1>\n", "td"),
        _rule(r'<(img)\b[^>]*alt="([^>"]+)"[^>]*>', r"[\g<2>]" if image_alt_text else ""),
        _rule(r"<outlook\b[^>]*>.*?</outlook>", "", "outlook"),
        _rule(r"(<mj-table\b[^>]*>|</mj-table>)", "\n\n"),
        _rule(r"<mj-divider\b[^>]*>", ruler),
        _rule(r"<mj-spacer\b[^>]*>", "&nbsp;\n\n&nbsp;"),
        _rule(r"<mj-social\b[^>]*>.*?</mj-social>", "", "mj-social"),
    )


class TagKind(str, Enum):
    HEADING = "heading"
    UPPERCASE_BLOCK = "uppercase-block"
    PARAGRAPH = "paragraph"
    LINE_BREAK = "line-break"
    BOLD = "bold"
    DELETED = "deleted"
    TABLE_HEADER = "table-header"
    ANCHOR = "anchor"
    BUTTON = "button"
    NAVBAR = "navbar"
    IMAGE = "image"


@dataclass(frozen=True, slots=True)
class CallbackRule:
    kind: TagKind
    pattern: re.Pattern[str]
    closing: re.Pattern[str] | None = None


def _callback(kind: TagKind, pattern: str, closing: str | None = None, flags: int = 0) -> CallbackRule:
    return CallbackRule(
        kind,
        re.compile(pattern, re.IGNORECASE | flags),
        _closing(closing) if closing else None,
    )


_LINK_ATTRS = r"""(?P<before>[^>]*)href=(?P<quote>["'])(?P<url>[^"']+)(?P=quote)(?P<after>[^>]*)>"""

CALLBACK_RULES: tuple[CallbackRule, ...] = (
    _callback(TagKind.HEADING, r"<h[1-6](?: [^>]*)?>(?P<body>.*?)</h[1-6]>", "h"),
    _callback(
        TagKind.UPPERCASE_BLOCK,
        rf'<mj-[^>]*?css-class="[^"]*?{UPPERCASE_CLASS}[^>]*?>(?P<body>.*?)</mj-[^>]*>',
        "mj-",
    ),
    _callback(TagKind.PARAGRAPH, r"[ ]*<p(?: [^>]*)?>(?P<body>.*?)</p>[ ]*", "p", re.DOTALL),
    _callback(TagKind.LINE_BREAK, r"<br[^>]*>[ ]*"),
    _callback(TagKind.BOLD, r"<b(?: [^>]*)?>(?P<body>.*?)</b>", "b"),
    _callback(TagKind.BOLD, r"<strong(?: [^>]*)?>(?P<body>.*?)</strong>", "strong"),
    _callback(TagKind.DELETED, r"<del(?: [^>]*)?>(?P<body>.*?)</del>", "del"),
    _callback(TagKind.TABLE_HEADER, r"<th(?: [^>]*)?>(?P<body>.*?)</th>", "th"),
    _callback(TagKind.ANCHOR, r"<a " + _LINK_ATTRS + r"(?P<body>.*?)</a>", "a"),
    _callback(TagKind.BUTTON, r"<mj-button " + _LINK_ATTRS + r"(?P<body>.*?)</mj-button>", "mj-button"),
    _callback(
        TagKind.NAVBAR,
        r"""<mj-navbar [^>]*base-url=["|'](?P<base>[^"']+)"[^>]*>(?P<body>.*?)</mj-navbar>""",
        "mj-navbar",
    ),
    _callback(TagKind.NAVBAR, r"<mj-navbar [^>]*>(?P<body>.*?)</mj-navbar>", "mj-navbar"),
    _callback(TagKind.IMAGE, r"<mj-image (?P<attrs>[^>]*)>"),
    _callback(TagKind.IMAGE, r"<mj-carousel-image (?P<attrs>[^>]*)>"),
)

_NAVBAR_LINK_RE = re.compile(
    r"""<mj-navbar-link[^>]*href=(["'])(?P<url>[^"']+)\1[^>]*>(?P<body>.*)""",
    re.IGNORECASE,
)
_ALT_RE = re.compile(r'alt="([^"]*)"')
_HREF_RE = re.compile(r'href="([^"]*)"')


class TagRewriter:
    """Rewrites tag constructs for one set of options, recording links in ``links``."""

    def __init__(
        self,
        options: ConversionOptions,
        links: LinkList,
        context: ConversionContext | None = None,
    ) -> None:
        self._options = options
        self._links = links
        self._context = context
        self._handlers: dict[TagKind, Callable[[re.Match[str]], str]] = {
            TagKind.HEADING: self._uppercase_block,
            TagKind.UPPERCASE_BLOCK: self._uppercase_block,
            TagKind.PARAGRAPH: self._paragraph,
            TagKind.LINE_BREAK: self._line_break,
            TagKind.BOLD: self._bold,
            TagKind.DELETED: self._deleted,
            TagKind.TABLE_HEADER: self._table_header,
            TagKind.ANCHOR: self._anchor,
            TagKind.BUTTON: self._button,
            TagKind.NAVBAR: self._navbar,
            TagKind.IMAGE: self._image,
        }

    def apply_static(self, text: str) -> str:
        for rule in static_rules(self._options.ruler_width, self._options.image_alt_text):
            text = rule.apply(text)
            self._checkpoint("static rules")
        return text

    def apply_callbacks(self, text: str) -> str:
        for rule in CALLBACK_RULES:
            text = substitute(
                rule.pattern,
                lambda match, kind=rule.kind: self.render(kind, match),
                text,
                rule.closing,
            )
            self._checkpoint(f"{rule.kind.value} callback")
        return text

    def _checkpoint(self, stage: str) -> None:
        if self._context is not None:
            self._context.ensure_deadline(stage)

    def render(self, kind: TagKind, match: re.Match[str]) -> str:
        handler = self._handlers.get(kind)
        if handler is None:
            return ""
        return handler(match)

    def _uppercase_block(self, match: re.Match[str]) -> str:
        return upper_preserving_tags("\n\n" + match.group("body") + "\n\n")

    def _paragraph(self, match: re.Match[str]) -> str:
        body = match.group("body").replace("\n", " ").strip(TRIM_CHARS)
        return "\n" + body + "\n"

    def _line_break(self, match: re.Match[str]) -> str:
        return "\n"

    def _bold(self, match: re.Match[str]) -> str:
        return upper_preserving_tags(match.group("body"))

    def _deleted(self, match: re.Match[str]) -> str:
        return strike_preserving_tags(match.group("body"))

    def _table_header(self, match: re.Match[str]) -> str:
        return upper_preserving_tags("\t\t" + match.group("body") + "\n")

    def _anchor(self, match: re.Match[str], newline: bool = False) -> str:
        override = parse_link_override(match.group("before") + match.group("after"))
        return self._links.render(
            match.group("url"),
            match.group("body"),
            self._options.links,
            override=override,
            newline=newline,
        )

    def _button(self, match: re.Match[str]) -> str:
        return self._anchor(match, newline=True)

    def _navbar(self, match: re.Match[str]) -> str:
        base_url = (match.groupdict().get("base") or "").strip(TRIM_CHARS)
        rendered: list[str] = []
        for item in match.group("body").split(NAVBAR_LINK_END):
            link = _NAVBAR_LINK_RE.search(item)
            if link is None:
                continue
            rendered.append(
                self._links.render(
                    base_url + link.group("url"),
                    link.group("body"),
                    self._options.links,
                    newline=True,
                )
            )
        if not rendered:
            return ""
        return "\n\n" + "".join(rendered) + "\n\n"

    def _image(self, match: re.Match[str]) -> str:
        attrs = match.group("attrs") or ""
        alt_match = _ALT_RE.search(attrs)
        href_match = _HREF_RE.search(attrs)
        alt = alt_match.group(1) if alt_match else ""
        href = href_match.group(1) if href_match else ""
        display = f"[{alt}]" if alt else href
        if href and (self._options.image_alt_text or self._options.show_links):
            return self._links.render(href, display, self._options.links, newline=True)
        if not alt or not self._options.image_alt_text:
            return ""
        return display


__all__ = [
    "CALLBACK_RULES",
    "CallbackRule",
    "StaticRule",
    "TagKind",
    "TagRewriter",
    "closing_bound",
    "static_rules",
    "substitute",
]
