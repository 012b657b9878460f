"""Unit tests for core/render.py"""

from mdmedia.core.nodes import Directive, Html, Image, JsxAttribute, JsxElement, JsxExpression, Paragraph, Root, Text
from mdmedia.core.parse import parse_text
from mdmedia.core.render import render_html


def test_render_basic_markdown():
    html = render_html(parse_text("# Title\n\nSome *text* & `code`.\n"))
    assert html == "<h1>Title</h1>\n<p>Some <em>text</em> &amp; <code>code</code>.</p>\n"


def test_render_image_with_properties():
    """hProperties override defaults; empty extras render as bare attributes."""
    image = Image(url="/a.png", alt="A", data={"hProperties": {
        "alt": "A", "class": "wide", "width": 10, "height": 5, "decoding": "",
    }})
    assert render_html(Root(children=[image])) == (
        '<img src="/a.png" alt="A" class="wide" width="10" height="5" decoding>'
    )


def test_render_empty_alt_kept():
    assert render_html(Root(children=[Image(url="a.png")])) == '<img src="a.png" alt="">'


def test_render_html_verbatim():
    tree = Root(children=[Paragraph(children=[Html(value="<video controls></video>")])])
    assert render_html(tree) == "<p><video controls></video></p>\n"


def test_render_text_escaped():
    assert render_html(Root(children=[Text(value="<b>")])) == "&lt;b&gt;"


def test_render_jsx_element():
    element = JsxElement(name="Media", jsx_attributes=[
        JsxAttribute(name="src", value="/a.png"),
        JsxAttribute(name="autoPlay"),
        JsxAttribute(name="size", value=JsxExpression(value="{w: 1}")),
    ])
    assert render_html(Root(children=[element])) == '<Media src="/a.png" autoPlay size={{w: 1}} />'


def test_render_leftover_directive():
    tree = Root(children=[Directive(type="leafDirective", name="note", label="Hi")])
    assert render_html(tree) == '<div data-directive="note">Hi</div>'


def test_render_code_block():
    html = render_html(parse_text("```py\nx = 1 < 2\n```\n"))
    assert html == '<pre><code class="language-py">x = 1 &lt; 2\n</code></pre>\n'


def test_render_tight_list_hides_paragraphs():
    html = render_html(parse_text("- one\n- two\n"))
    assert html == "<ul><li>one</li>\n<li>two</li>\n</ul>\n"
