import pytest

from plaintext_converter.links import LinkList, parse_link_override
from plaintext_converter.models import LinkMode


def test_table_mode_indices_are_stable_and_unique() -> None:
    links = LinkList()
    assert links.render("https://a.test/", "A", LinkMode.TABLE) == "A [1]"
    assert links.render("https://b.test/", "B", LinkMode.TABLE) == "B [2]"
    assert links.render("https://a.test/", "again", LinkMode.TABLE) == "again [1]"
    assert links.urls == ["https://a.test/", "https://b.test/"]


@pytest.mark.parametrize(
    "url",
    ["javascript:void(0)", "JavaScript:alert(1)", "mailto:a@b.test", "tel:+123", "#top", "&#35;top"],
)
def test_ignored_links_render_display_only(url: str) -> None:
    links = LinkList()
    assert links.render(url, "Text", LinkMode.TABLE, newline=True) == "Text\n"
    assert len(links) == 0
    assert links.footnote() == ""


def test_inline_mode() -> None:
    links = LinkList()
    assert links.render("https://x.test/", "Click", LinkMode.INLINE) == "Click [https://x.test/]"
    assert links.render("https://x.test/", "https://x.test/", LinkMode.INLINE) == "https://x.test/"
    assert links.render("https://x.test/", "Go", LinkMode.INLINE, newline=True) == "Go [https://x.test/]\n"


def test_nextline_mode() -> None:
    links = LinkList()
    assert links.render("https://x.test/", "Click", LinkMode.NEXTLINE) == "Click\n[https://x.test/]"
    assert links.render("https://x.test/", "https://x.test/", LinkMode.NEXTLINE) == "https://x.test/"


def test_bbcode_mode() -> None:
    links = LinkList()
    assert links.render("https://x.test/", "Click", LinkMode.BBCODE) == "[url=https://x.test/]Click[/url]"


def test_off_mode_keeps_display() -> None:
    links = LinkList()
    assert links.render("https://x.test/", "Click", LinkMode.OFF) == "Click"
    assert links.render("https://x.test/", "Click", LinkMode.OFF, newline=True) == "Click\n"
    assert len(links) == 0


def test_spaces_are_removed_from_urls() -> None:
    links = LinkList()
    assert links.render("https://x.test/a b", "A", LinkMode.INLINE) == "A [https://x.test/ab]"


def test_override_wins_over_mode() -> None:
    links = LinkList()
    assert links.render("https://x.test/", "A", LinkMode.INLINE, override=LinkMode.TABLE) == "A [1]"
    assert links.render("https://x.test/", "A", LinkMode.TABLE, override=LinkMode.OFF) == "A"


def test_parse_link_override() -> None:
    assert parse_link_override(' class="_html2text_link_table"') is LinkMode.TABLE
    assert parse_link_override(' class="button _html2text_link_nextline big"') is LinkMode.NEXTLINE
    assert parse_link_override(' class="_html2text_link_bogus"') is None
    assert parse_link_override(' class="plain"') is None
    assert parse_link_override("") is None


def test_footnote_lists_urls_in_order() -> None:
    links = LinkList()
    links.index_of("https://a.test/")
    links.index_of("https://b.test/?x=1&amp;y=2")
    assert links.footnote() == "\n\nLinks:\n------\n[1] https://a.test/\n[2] https://b.test/?x=1&y=2\n"
