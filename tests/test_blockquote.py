import pytest

from plaintext_converter.blockquote import convert_blockquotes
from plaintext_converter.context import ConversionContext, ConversionFailure
from plaintext_converter.core import render_fragment
from plaintext_converter.models import ConversionOptions


class RecordingRender:
    def __init__(self, output: str | None = None) -> None:
        self.calls: list[tuple[str, int, int]] = []
        self._output = output

    def __call__(self, body: str, options: ConversionOptions, context: ConversionContext) -> str:
        self.calls.append((body, options.width, context.depth))
        return body if self._output is None else self._output


def test_sibling_quotes_get_narrowed_width() -> None:
    render = RecordingRender()
    options = ConversionOptions(width=40)
    text = "a<blockquote> hi </blockquote>b<blockquote>x</blockquote>"
    result = convert_blockquotes(text, options, ConversionContext(), render)
    assert result == "a<pre>&gt; hi</pre>b<pre>&gt; x</pre>"
    assert render.calls == [("hi", 38, 1), ("x", 38, 1)]
    assert options.width == 40


def test_only_outermost_quote_is_rendered() -> None:
    render = RecordingRender()
    text = "<blockquote>o<blockquote>i</blockquote></blockquote>"
    result = convert_blockquotes(text, ConversionOptions(), ConversionContext(), render)
    assert render.calls == [("o<blockquote>i</blockquote>", 68, 1)]
    assert result == "<pre>&gt; o&lt;blockquote&gt;i&lt;/blockquote&gt;</pre>"


def test_malformed_markers() -> None:
    render = RecordingRender()
    text = "</blockquote>text<blockquote>q</blockquote>"
    result = convert_blockquotes(text, ConversionOptions(), ConversionContext(), render)
    assert result == "</blockquote>text<pre>&gt; q</pre>"
    assert render.calls == [("q", 68, 1)]

    unclosed = "<blockquote>never closed"
    assert convert_blockquotes(unclosed, ConversionOptions(), ConversionContext(), RecordingRender()) == unclosed


def test_every_line_gets_a_marker() -> None:
    render = RecordingRender("line1\nline2\n> nested")
    result = convert_blockquotes("<blockquote>x</blockquote>", ConversionOptions(), ConversionContext(), render)
    assert result == "<pre>&gt; line1\n&gt; line2\n&gt;&gt;  nested</pre>"


def test_zero_width_is_not_narrowed() -> None:
    render = RecordingRender()
    convert_blockquotes("<blockquote>x</blockquote>", ConversionOptions(width=0), ConversionContext(), render)
    assert render.calls == [("x", 0, 1)]


def test_nesting_beyond_limit_fails_closed() -> None:
    context = ConversionContext(max_depth=1)
    text = "<blockquote>a<blockquote>b</blockquote></blockquote>"
    with pytest.raises(ConversionFailure) as exc:
        render_fragment(text, ConversionOptions(), context)
    assert exc.value.code == "QUOTE_DEPTH"
    assert context.depth == 0
