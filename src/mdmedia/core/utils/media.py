"""Media kinds, alt-text derivation and `<video>` markup"""

import re
from html import escape
from pathlib import PurePosixPath
from urllib.parse import unquote


IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp", ".tiff", ".avif"}
VIDEO_EXTS = {".mp4", ".webm", ".ogg"}
MEDIA_EXTS = IMAGE_EXTS | VIDEO_EXTS

VIDEO_MIME = {".webm": "video/webm", ".ogg": "video/ogg"}

_VIDEO_URL_RE = re.compile(r'\.(mp4|webm|ogg)$', re.IGNORECASE)


def _strip_query(url: str) -> str:
    return url.split("?")[0].split("#")[0]


def url_ext(url: str) -> str:
    """Lowercased extension of a URL or path, ignoring query and fragment."""
    return PurePosixPath(_strip_query(url)).suffix.lower()


def media_kind(ext: str) -> str:
    return "video" if ext.lower() in VIDEO_EXTS else "image"


def is_video_url(url: str) -> bool:
    return bool(_VIDEO_URL_RE.search(_strip_query(url or "")))


def video_mime(src: str) -> str:
    """MIME type for a `<source>` tag; anything not webm/ogg is served as mp4."""
    return VIDEO_MIME.get(url_ext(src), "video/mp4")


def derive_alt(url: str | None) -> str:
    """Human-readable alt text from a file name: '.../my-nice_photo.PNG' -> 'my nice photo'."""
    if not url:
        return "Image"
    name = _strip_query(url).split("/")[-1]
    stem = re.sub(r'\.[a-z0-9]+$', '', name, flags=re.IGNORECASE)
    human = re.sub(r'[-_]+', ' ', unquote(stem)).strip()
    return human or "Image"


def render_attrs(attrs: dict[str, str | bool]) -> str:
    """Render attributes; True values become bare boolean attributes."""
    parts = []
    for key, value in attrs.items():
        if value is True:
            parts.append(key)
        elif value is not False and value is not None:
            parts.append(f'{key}="{escape(str(value))}"')
    return " ".join(parts)


def video_html(src: str, class_str: str = "", style: str = "", attrs: dict[str, str | bool] | None = None) -> str:
    """Build `<video>` markup with a single `<source>` child."""
    head = {}
    if class_str:
        head["class"] = class_str
    if style:
        head["style"] = style
    opening = " ".join(p for p in ("<video", render_attrs(head), render_attrs(attrs or {})) if p)
    return (
        f"{opening}>\n"
        f'  <source src="{escape(src)}" type="{video_mime(src)}">\n'
        "  Your browser does not support the video tag.\n"
        "</video>"
    )
