"""Plain HTML serialization of a processed tree"""

from html import escape

from mdmedia.core.nodes import Directive, Html, Image, JsxElement, JsxExpression, Literal, Node, Parent, Root, Text
from mdmedia.core.utils.media import render_attrs


BLOCK_TAGS = {
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li",
    "blockquote", "table", "thead", "tbody", "tr", "th", "td",
}


def _open(tag: str, attrs: dict) -> str:
    rendered = render_attrs(attrs)
    return f"<{tag} {rendered}>" if rendered else f"<{tag}>"


def _image(node: Image) -> str:
    attrs: dict = {"src": node.url, "alt": node.alt}
    if node.title:
        attrs["title"] = node.title
    for key, value in (node.data.get("hProperties") or {}).items():
        attrs[key] = True if value == "" and key != "alt" else value
    return _open("img", attrs)


def _jsx(node: JsxElement) -> str:
    parts = [node.name]
    for attr in node.jsx_attributes:
        if attr.value is None:
            parts.append(attr.name)
        elif isinstance(attr.value, JsxExpression):
            parts.append(f"{attr.name}={{{attr.value.value}}}")
        else:
            parts.append(f'{attr.name}="{escape(attr.value)}"')
    head = " ".join(parts)
    if not node.children:
        return f"<{head} />"
    return f"<{head}>{_children(node)}</{node.name}>"


def _literal(node: Literal) -> str:
    if node.type == "code":
        cls = f' class="language-{escape(node.lang)}"' if node.lang else ""
        return f"<pre><code{cls}>{escape(node.value, quote=False)}</code></pre>\n"
    if node.type == "inlineCode":
        return f"<code>{escape(node.value, quote=False)}</code>"
    if node.tag:
        return f"<{node.tag}>\n"
    return escape(node.value, quote=False)


def _directive(node: Directive) -> str:
    tag = "div" if node.type == "leafDirective" else "span"
    return f'<{tag} data-directive="{escape(node.name)}">{escape(node.label or "", quote=False)}</{tag}>'


def _children(node: Parent) -> str:
    return "".join(render_node(c) for c in node.children)


def render_node(node: Node) -> str:
    if isinstance(node, Html):
        return node.value
    if isinstance(node, Text):
        return escape(node.value, quote=False)
    if isinstance(node, Image):
        return _image(node)
    if isinstance(node, Directive):
        return _directive(node)
    if isinstance(node, JsxElement):
        return _jsx(node)
    if isinstance(node, Literal):
        return _literal(node)
    if isinstance(node, Parent):
        inner = _children(node)
        if node.hidden or not node.tag:
            return inner
        html = f"{_open(node.tag, node.attrs)}{inner}</{node.tag}>"
        return html + "\n" if node.tag in BLOCK_TAGS else html
    return ""


def render_html(tree: Root) -> str:
    """Serialize a tree to an HTML fragment."""
    return _children(tree)
