"""Document tree node types produced by parse and rewritten by the media visitors"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(kw_only=True)
class Node:
    """Base tree node. `data` carries rendering hints (hProperties) and media metadata."""
    type: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class Parent(Node):
    """Generic container rendered as `<tag attrs>children</tag>`."""
    tag: str = ""
    attrs: dict[str, str] = field(default_factory=dict)
    hidden: bool = False            # tight-list paragraphs render without their tag
    children: list[Node] = field(default_factory=list)


@dataclass(kw_only=True)
class Root(Parent):
    type: str = "root"


@dataclass(kw_only=True)
class Paragraph(Parent):
    type: str = "paragraph"
    tag: str = "p"


@dataclass(kw_only=True)
class Literal(Node):
    """Leaf holding a string value (code, inline code, breaks)."""
    value: str = ""
    tag: str = ""
    lang: Optional[str] = None


@dataclass(kw_only=True)
class Text(Literal):
    type: str = "text"


@dataclass(kw_only=True)
class Html(Literal):
    """Raw markup emitted as-is; the terminal form for expanded videos."""
    type: str = "html"


@dataclass(kw_only=True)
class Image(Node):
    type: str = "image"
    url: str = ""
    alt: str = ""
    title: Optional[str] = None


@dataclass(kw_only=True)
class Directive(Node):
    """`:name[label]{attrs}` (textDirective) or `::name[label]{attrs}` (leafDirective)."""
    type: str = "textDirective"
    name: str = ""
    label: Optional[str] = None
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class JsxExpression:
    """Attribute value written as `{...}`; `value` is the raw expression source."""
    value: str


@dataclass(kw_only=True)
class JsxAttribute:
    name: str
    value: str | JsxExpression | None = None


@dataclass(kw_only=True)
class JsxElement(Parent):
    """MDX component such as `<Media src="clip.mp4" />` (flow or inline)."""
    type: str = "mdxJsxFlowElement"
    name: str = ""
    jsx_attributes: list[JsxAttribute] = field(default_factory=list)

    def get_attribute(self, name: str) -> JsxAttribute | None:
        return next((a for a in self.jsx_attributes if a.name == name), None)


DIRECTIVE_TYPES = ("textDirective", "leafDirective")
JSX_TYPES = ("mdxJsxFlowElement", "mdxJsxTextElement")
