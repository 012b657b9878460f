"""markdown-it plugin for `:name[label]{attrs}` and `::name[label]{attrs}` directives"""

import re

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.rules_inline import StateInline

from mdmedia.core.utils.attrs import parse_directive_attrs


_BODY = (
    r'(?P<name>[A-Za-z][\w-]*)'
    r'(?:\[(?P<label>[^\]\n]*)\])?'
    r'''(?:\{(?P<attrs>(?:[^}"'\n]|"[^"\n]*"|'[^'\n]*')*)\})?'''
)
TEXT_DIRECTIVE_RE = re.compile(r':' + _BODY)
LEAF_DIRECTIVE_RE = re.compile(r'::' + _BODY + r'[ \t]*')


def _meta(m: re.Match) -> dict:
    return {
        "name": m.group("name"),
        "label": m.group("label"),
        "attributes": parse_directive_attrs(m.group("attrs")),
    }


def _text_directive(state: StateInline, silent: bool) -> bool:
    if state.src[state.pos] != ":":
        return False
    prev = state.src[state.pos - 1] if state.pos > 0 else ""
    if prev.isalnum() or prev == ":":
        return False

    m = TEXT_DIRECTIVE_RE.match(state.src, state.pos)
    # a bare `:name` is ordinary text
    if not m or (m.group("label") is None and m.group("attrs") is None):
        return False

    if not silent:
        token = state.push("text_directive", "", 0)
        token.content = m.group(0)
        token.meta = _meta(m)
    state.pos = m.end()
    return True


def _leaf_directive(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False

    pos = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]
    m = LEAF_DIRECTIVE_RE.fullmatch(state.src[pos:maximum])
    if not m:
        return False
    if silent:
        return True

    token = state.push("leaf_directive", "", 0)
    token.map = [startLine, startLine + 1]
    token.content = m.group(0).strip()
    token.meta = _meta(m)
    state.line = startLine + 1
    return True


def directive_plugin(md: MarkdownIt) -> None:
    """Register text and leaf directive rules on a MarkdownIt instance."""
    md.inline.ruler.before("emphasis", "text_directive", _text_directive)
    md.block.ruler.before(
        "paragraph", "leaf_directive", _leaf_directive, {"alt": ["paragraph", "reference", "blockquote"]}
    )
