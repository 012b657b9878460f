"""Media expander: directive and legacy attribute syntax -> final image/video nodes"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from mdmedia.core.nodes import DIRECTIVE_TYPES, Directive, Html, Image, Node, Parent, Root, Text
from mdmedia.core.utils.attrs import (
    AttrBlock, KeyValueList, Plain, coerce_value, join_style,
    parse_attr_block, parse_loose_attrs, parse_title_attrs, style_string,
)
from mdmedia.core.utils.media import derive_alt, is_video_url, video_html
from mdmedia.core.visit import CONTINUE, Replace, visit


logger = logging.getLogger("mdmedia.expand")

DEFAULT_VIDEO_ATTRS = "controls playsinline muted"

# `{...}` or `\{...}` filling a whole text node
TRAILING_BLOCK_RE = re.compile(r'^\s*\\?(\{[^}]*\})\s*$')


def media_field(node: Node, name: str) -> Any:
    """Read a field of node.data['media'], which may be a MediaMeta or a plain dict."""
    meta = node.data.get("media")
    if meta is None:
        return None
    if isinstance(meta, dict):
        return meta.get(name)
    return getattr(meta, name, None)


def _alt_source(node: Node, url: str) -> str:
    return media_field(node, "source") or url


@dataclass
class DirectiveMedia:
    """Normalized attributes of an `img`/`video` directive."""
    url: str
    alt: Optional[str] = None
    class_str: str = ""
    style: str = ""
    extra: dict[str, str | bool] = field(default_factory=dict)


def normalize_directive(node: Directive) -> DirectiveMedia:
    """Split directive attributes into url, alt, merged class/style and free-form extras.

    Bare (empty-valued) free-form attributes become booleans.
    """
    attrs = {k: coerce_value(v) for k, v in node.attributes.items()}

    src = attrs.pop("src", None)
    url = src.value.strip() if isinstance(src, Plain) else ""

    alt_attr = attrs.pop("alt", None)
    label = (node.label or "").strip()
    alt = label or (alt_attr.value if isinstance(alt_attr, Plain) else None)

    classes: list[str] = []
    for key in ("className", "class"):
        value = attrs.pop(key, None)
        if isinstance(value, Plain):
            classes.extend(value.value.split())
        elif isinstance(value, KeyValueList):
            classes.extend(k for k, _ in value.items)

    style_value = attrs.pop("style", None)
    style = style_string(style_value) if style_value is not None else ""

    extra: dict[str, str | bool] = {}
    for key, value in attrs.items():
        text = style_string(value)
        extra[key] = text if text else True

    return DirectiveMedia(
        url=url,
        alt=alt,
        class_str=" ".join(dict.fromkeys(classes)),
        style=style,
        extra=extra,
    )


def _props(extra: dict[str, str | bool]) -> dict[str, str]:
    return {k: "" if v is True else v for k, v in extra.items()}


class MediaExpander:
    """Expands media syntax in a tree: directives first, then images with legacy attribute blocks."""

    def __init__(self, video_attrs: str = DEFAULT_VIDEO_ATTRS):
        self.video_attrs = video_attrs

    @classmethod
    def from_settings(cls, settings) -> "MediaExpander":
        return cls(video_attrs=settings.video_attrs)

    def __call__(self, tree: Root) -> Root:
        self.expand_directives(tree)
        self.expand_images(tree)
        return tree

    # --- directive path ---

    @staticmethod
    def _is_media_directive(node: Node) -> bool:
        return node.type in DIRECTIVE_TYPES and getattr(node, "name", None) in ("img", "video")

    def _expand_directive(self, node: Directive, parent: Parent) -> Replace:
        media = normalize_directive(node)

        if node.name == "video":
            chosen = media.extra or parse_loose_attrs(self.video_attrs)
            return Replace(Html(value=video_html(media.url, media.class_str, media.style, chosen)))

        alt = media.alt if media.alt and media.alt.strip() else derive_alt(_alt_source(node, media.url))
        props: dict[str, Any] = {"alt": alt}
        if media.class_str:
            props["class"] = media.class_str
        if media.style:
            props["style"] = media.style
        width, height = media_field(node, "width"), media_field(node, "height")
        if media_field(node, "kind") == "image" and width and height:
            props["width"], props["height"] = width, height
        props.update(_props(media.extra))

        image = Image(url=media.url, alt=alt, title=None, data={"hProperties": props})
        if "media" in node.data:
            image.data["media"] = node.data["media"]
        return Replace(image)

    def expand_directives(self, tree: Root) -> None:
        """Replace `img` directives with image nodes and `video` directives with markup."""
        visit(tree, self._is_media_directive, self._expand_directive)

    # --- legacy path ---

    def _finish_image(self, node: Image, block: AttrBlock) -> Node:
        alt = node.alt if node.alt and node.alt.strip() else derive_alt(_alt_source(node, node.url))
        node.alt = alt

        props = dict(node.data.get("hProperties") or {})
        existing = props.pop("className", None) or props.get("class") or ""
        if isinstance(existing, (list, tuple)):
            existing = " ".join(existing)
        classes = str(existing).split() + block.classes
        class_str = " ".join(dict.fromkeys(c for c in classes if c))
        style = join_style(str(props.get("style") or ""), block.style)

        if media_field(node, "kind") == "video" or is_video_url(node.url):
            chosen = parse_loose_attrs(block.freeform or self.video_attrs)
            return Html(value=video_html(node.url, class_str, style, chosen))

        props["alt"] = alt
        if class_str:
            props["class"] = class_str
        if style:
            props["style"] = style
        width, height = media_field(node, "width"), media_field(node, "height")
        if width and height:
            props["width"], props["height"] = width, height
        props.update(_props(parse_loose_attrs(block.freeform)))
        node.data["hProperties"] = props
        return node

    def _expand_children(self, parent: Parent) -> None:
        kids = parent.children
        out: list[Node] = []
        i = 0
        while i < len(kids):
            node = kids[i]
            i += 1
            if not isinstance(node, Image):
                out.append(node)
                continue

            block = AttrBlock()
            title_block = parse_title_attrs(node.title)
            if title_block:
                block.merge(title_block)
                node.title = None
            if i < len(kids) and type(kids[i]) is Text:
                m = TRAILING_BLOCK_RE.match(kids[i].value)
                if m:
                    block.merge(parse_attr_block(m.group(1)))
                    i += 1
            if block:
                logger.debug("Attribute block on %s: %s", node.url, block)
            out.append(self._finish_image(node, block))
        parent.children = out

    def _expand_parent(self, node: Parent, parent: Parent):
        self._expand_children(node)
        return CONTINUE

    def expand_images(self, tree: Root) -> None:
        """Decorate every image from title-slot and trailing `{...}` blocks; videos become markup.

        Applies to images in paragraphs and any other container (links,
        headings, table cells, the root itself).
        """
        self._expand_children(tree)
        visit(tree, lambda n: isinstance(n, Parent) and any(isinstance(c, Image) for c in n.children),
              self._expand_parent)
