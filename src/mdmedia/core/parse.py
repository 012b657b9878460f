"""File discovery, frontmatter extraction, and markdown-it token -> tree conversion"""

import re
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt
from markdown_it.token import Token

from mdmedia.core.directives import directive_plugin
from mdmedia.core.models import ParsedDoc
from mdmedia.core.nodes import (
    Directive, Html, Image, JsxAttribute, JsxElement, JsxExpression,
    Literal, Node, Paragraph, Parent, Root, Text,
)
from mdmedia.core.preprocess import preprocess_source
from mdmedia.core.utils.slug import slugify


FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---\s*\n', re.DOTALL)
MD_EXTENSIONS = {'.md', '.mdx', '.markdown'}

# markdown-it token base names -> tree node type names
NODE_TYPES = {
    'heading': 'heading',
    'bullet_list': 'list',
    'ordered_list': 'list',
    'list_item': 'listItem',
    'blockquote': 'blockquote',
    'em': 'emphasis',
    'strong': 'strong',
    's': 'delete',
    'link': 'link',
    'table': 'table',
    'thead': 'tableHead',
    'tbody': 'tableBody',
    'tr': 'tableRow',
    'th': 'tableCell',
    'td': 'tableCell',
}

VOID_TAGS = {'img', 'source', 'br', 'hr', 'input', 'track', 'embed', 'wbr'}

JSX_ELEMENT_RE = re.compile(
    r'''^<(?P<name>[A-Za-z][\w.:-]*)'''
    r'''(?P<attrs>(?:\s+[^\s=/>{}]+(?:\s*=\s*(?:"[^"]*"|'[^']*'|\{(?:[^{}]|\{[^{}]*\})*\}))?)*)'''
    r'''\s*(?P<slash>/?)>'''
    r'''(?:(?P<inner>.*?)(?P<close></(?P=name)\s*>))?\s*$''',
    re.DOTALL,
)
JSX_ATTR_RE = re.compile(
    r'''(?P<name>[^\s=/>{}]+)'''
    r'''(?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|\{(?P<expr>(?:[^{}]|\{[^{}]*\})*)\}))?'''
)


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name, with directive support."""
    return MarkdownIt(preset, options_update={"linkify": False}).use(directive_plugin)


def _strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with YAML header removed."""
    m = FRONTMATTER_RE.match(text)
    if m:
        try:
            fm = yaml.safe_load(m.group(1)) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML frontmatter: {e}") from e
        if not isinstance(fm, dict):
            raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
        return fm, text[m.end():]
    return {}, text


# --- JSX (MDX) elements ---

def _jsx_attributes(raw: str) -> list[JsxAttribute]:
    attrs = []
    for m in JSX_ATTR_RE.finditer(raw):
        if m.group("expr") is not None:
            value = JsxExpression(value=m.group("expr"))
        elif m.group("dq") is not None:
            value = m.group("dq")
        else:
            value = m.group("sq")
        attrs.append(JsxAttribute(name=m.group("name"), value=value))
    return attrs


def _jsx_element(markup: str, flow: bool) -> JsxElement | None:
    """Parse one `<Name ... />` or `<Name ...>inner</Name>` element; None if not that shape."""
    m = JSX_ELEMENT_RE.match(markup.strip())
    if not m:
        return None
    closed = bool(m.group("slash")) or m.group("close") is not None
    if not closed and m.group("name").lower() not in VOID_TAGS:
        return None
    inner = (m.group("inner") or "").strip()
    return JsxElement(
        type="mdxJsxFlowElement" if flow else "mdxJsxTextElement",
        name=m.group("name"),
        jsx_attributes=_jsx_attributes(m.group("attrs")),
        children=[Text(value=inner)] if inner else [],
    )


def _jsx_nodes(markup: str, flow: bool) -> list[Node] | None:
    """Convert raw HTML into JSX elements: the whole block, or one element per line."""
    element = _jsx_element(markup, flow)
    if element:
        return [element]
    lines = [ln for ln in markup.splitlines() if ln.strip()]
    if len(lines) < 2:
        return None
    elements = [_jsx_element(ln, flow) for ln in lines]
    return elements if all(elements) else None


# --- token stream -> tree ---

def _attrs(token: Token) -> dict[str, str]:
    return {k: str(v) for k, v in (token.attrs or {}).items()}


def _open_node(token: Token) -> Parent:
    base = token.type[:-len("_open")]
    if base == "paragraph":
        return Paragraph(hidden=token.hidden)
    return Parent(type=NODE_TYPES.get(base, base), tag=token.tag, attrs=_attrs(token))


def _append(parent: Parent, node: Node) -> None:
    """Append node, merging adjacent text."""
    last = parent.children[-1] if parent.children else None
    if isinstance(node, Text) and type(last) is Text:
        last.value += node.value
    else:
        parent.children.append(node)


def _directive(token: Token, kind: str) -> Directive:
    return Directive(
        type=kind,
        name=token.meta["name"],
        label=token.meta["label"],
        attributes=dict(token.meta["attributes"]),
    )


def _inline_nodes(tokens: list[Token], mdx: bool) -> list[Node]:
    holder = Parent(type="inline")
    stack: list[Parent] = [holder]
    for tok in tokens:
        if tok.nesting == 1:
            node = _open_node(tok)
            _append(stack[-1], node)
            stack.append(node)
        elif tok.nesting == -1:
            if len(stack) > 1:
                stack.pop()
        elif tok.type in ("text", "text_special"):
            _append(stack[-1], Text(value=tok.content))
        elif tok.type == "softbreak":
            _append(stack[-1], Text(value="\n"))
        elif tok.type == "hardbreak":
            _append(stack[-1], Literal(type="break", tag="br"))
        elif tok.type == "code_inline":
            _append(stack[-1], Literal(type="inlineCode", tag="code", value=tok.content))
        elif tok.type == "image":
            _append(stack[-1], Image(
                url=str(tok.attrGet("src") or ""),
                alt=tok.content,
                title=tok.attrGet("title") or None,
            ))
        elif tok.type == "text_directive":
            _append(stack[-1], _directive(tok, "textDirective"))
        elif tok.type == "html_inline":
            nodes = _jsx_nodes(tok.content, flow=False) if mdx else None
            for node in nodes or [Html(value=tok.content)]:
                _append(stack[-1], node)
        else:
            _append(stack[-1], Text(value=tok.content))
    return holder.children


def _block_node(token: Token, mdx: bool) -> list[Node]:
    if token.type in ("fence", "code_block"):
        return [Literal(type="code", tag="pre", value=token.content, lang=token.info.strip() or None)]
    if token.type == "hr":
        return [Literal(type="thematicBreak", tag="hr")]
    if token.type == "html_block":
        nodes = _jsx_nodes(token.content, flow=True) if mdx else None
        return nodes or [Html(value=token.content)]
    if token.type == "leaf_directive":
        return [_directive(token, "leafDirective")]
    return []


def tokens_to_tree(tokens: list[Token], mdx: bool = False) -> Root:
    """Fold a flat markdown-it token stream into a Root tree."""
    root = Root()
    stack: list[Parent] = [root]
    for tok in tokens:
        if tok.nesting == 1:
            node = _open_node(tok)
            stack[-1].children.append(node)
            stack.append(node)
        elif tok.nesting == -1:
            stack.pop()
        elif tok.type == "inline":
            # components with {expression} props are not valid HTML and arrive as paragraphs
            flow = _jsx_nodes(tok.content, flow=True) if mdx and isinstance(stack[-1], Paragraph) else None
            if flow:
                stack[-2].children[-1:] = flow
                continue
            for node in _inline_nodes(tok.children or [], mdx):
                _append(stack[-1], node)
        else:
            stack[-1].children.extend(_block_node(tok, mdx))
    return root


def parse_text(text: str, parser_config: str = 'gfm-like', mdx: bool = False) -> Root:
    """Parse a markdown body (no frontmatter) into a tree."""
    return tokens_to_tree(_make_parser(parser_config).parse(text), mdx=mdx)


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md/.mdx/.markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix.lower() in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix.lower() in MD_EXTENSIONS)


def parse_source(
    raw: str,
    path: Path,
    parser_config: str = "gfm-like",
    preprocess_suffix: str = ".mdx",
    ) -> ParsedDoc:
    """Preprocess and parse document source text; `path` decides MDX mode and the slug."""
    path = Path(path)
    source = preprocess_source(raw, path, preprocess_suffix)
    frontmatter, body = _strip_frontmatter(source)
    tree = parse_text(body, parser_config, mdx=path.suffix.lower() == '.mdx')
    slug = frontmatter.get('slug') or slugify(path.stem, fallback='doc')
    return ParsedDoc(
        path=path,
        slug=str(slug),
        source=source,
        frontmatter=frontmatter,
        tree=tree,
    )


def parse_file(path: Path, parser_config: str = 'gfm-like', preprocess_suffix: str = '.mdx') -> ParsedDoc:
    """Read, preprocess and parse a single markdown file into a ParsedDoc."""
    return parse_source(path.read_text(encoding='utf-8'), path, parser_config, preprocess_suffix)
