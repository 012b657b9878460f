"""Unit tests for core/utils/media.py"""

import pytest

from mdmedia.core.utils.media import derive_alt, is_video_url, media_kind, render_attrs, video_html, video_mime


@pytest.mark.parametrize("url,expected", [
    ("images/my-nice_photo.PNG", "my nice photo"),
    ("/assets/hash/cat.png?v=2#top", "cat"),
    ("caf%C3%A9--menu.jpg", "café menu"),
    ("noext", "noext"),
    ("", "Image"),
    (None, "Image"),
    ("dir/.png", "Image"),
])
def test_derive_alt(url, expected):
    """derive_alt strips the extension, decodes, and turns -/_ runs into spaces."""
    assert derive_alt(url) == expected


@pytest.mark.parametrize("src,mime", [
    ("clip.mp4", "video/mp4"),
    ("clip.webm", "video/webm"),
    ("clip.ogg", "video/ogg"),
    ("clip.MOV", "video/mp4"),
    ("/assets/hash/abc.WEBM?x=1", "video/webm"),
])
def test_video_mime(src, mime):
    """Only webm and ogg get their own MIME type; everything else is mp4."""
    assert video_mime(src) == mime


def test_media_kind():
    assert media_kind(".mp4") == "video"
    assert media_kind(".PNG") == "image"


def test_is_video_url():
    assert is_video_url("a/b.MP4")
    assert is_video_url("b.ogg?t=1")
    assert not is_video_url("b.png")


def test_render_attrs_boolean_attributes_are_bare():
    """True renders as a bare attribute, strings are quoted, False/None are dropped."""
    rendered = render_attrs({"controls": True, "poster": "p.png", "loop": False, "x": None})
    assert rendered == 'controls poster="p.png"'


def test_video_html_default_attrs():
    """Default boolean attributes appear bare, with no ="true" or ="" forms."""
    html = video_html("/v.mp4", attrs={"controls": True, "playsinline": True, "muted": True})
    assert html.startswith("<video controls playsinline muted>")
    assert '<source src="/v.mp4" type="video/mp4">' in html
    assert '="true"' not in html and '=""' not in html
    assert html.endswith("</video>")


def test_video_html_class_and_style_first():
    """class and style precede the chosen attributes."""
    html = video_html("/v.webm", class_str="hero wide", style="width:100%", attrs={"autoplay": True})
    assert html.splitlines()[0] == '<video class="hero wide" style="width:100%" autoplay>'
    assert 'type="video/webm"' in html
