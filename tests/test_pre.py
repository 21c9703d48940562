from plaintext_converter.context import ConversionContext
from plaintext_converter.links import LinkList
from plaintext_converter.models import ConversionOptions
from plaintext_converter.pre import convert_pre, render_pre
from plaintext_converter.rules import TagRewriter


def rewriter() -> TagRewriter:
    return TagRewriter(ConversionOptions(), LinkList())


def test_render_pre_protects_whitespace() -> None:
    assert render_pre("a   b\nc", rewriter()) == "<div><br>a&nbsp;&nbsp;&nbsp;b<br>c<br></div>"
    assert render_pre("\tx", rewriter()) == "<div><br>" + "&nbsp;" * 4 + "x<br></div>"


def test_render_pre_keeps_explicit_breaks() -> None:
    assert render_pre("x<br/>y", rewriter()) == "<div><br>x<br>y<br></div>"


def test_render_pre_runs_tag_callbacks() -> None:
    assert render_pre("<b>hi</b> there", rewriter()) == "<div><br>HI&nbsp;there<br></div>"


def test_convert_pre_replaces_each_block_in_place() -> None:
    text = "A<pre>x y</pre>B<PRE class='code'>z</PRE>C"
    expected = "A<div><br>x&nbsp;y<br></div>B<div><br>z<br></div>C"
    assert convert_pre(text, rewriter(), ConversionContext()) == expected


def test_convert_pre_inserts_content_literally() -> None:
    text = "<pre>\\1 $0 \\g<0></pre>"
    result = convert_pre(text, rewriter(), ConversionContext())
    assert result == "<div><br>\\1&nbsp;$0&nbsp;\\g<0><br></div>"


def test_convert_pre_leaves_unclosed_blocks() -> None:
    text = "<pre>a</pre><pre>b"
    assert convert_pre(text, rewriter(), ConversionContext()) == "<div><br>a<br></div><pre>b"
    assert convert_pre("<pre>x " * 1000, rewriter(), ConversionContext()) == "<pre>x " * 1000
