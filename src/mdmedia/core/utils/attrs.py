"""Attribute-string tokenizing shared by directive, trailing-block and title-slot syntaxes"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


_CURLY_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})
_TOKEN_RE = re.compile(r'''(?:[^\s"']+|"(?:\\.|[^"])*"|'(?:\\.|[^'])*')+''')
_PAIR_RE = re.compile(r'''^([^\s="']+)=(?:"([^"]*)"|'([^']*)'|([^\s"']*))$''')
_TITLE_HINT_RE = re.compile(r'''\bclass=|\bstyle=|\battrs=|\s\.[^\s"']|^\.[^\s"']''')


def normalize_quotes(s: str) -> str:
    """Replace typographic quotes with their ASCII equivalents."""
    return s.translate(_CURLY_QUOTES)


def split_tokens(s: str) -> list[str]:
    """Split on whitespace, keeping quoted substrings (and `k="a b"` pairs) whole."""
    return _TOKEN_RE.findall(normalize_quotes(s or ""))


def split_pair(token: str) -> tuple[str, str | None]:
    """Return (key, value) for `k=v`, `k="v"` or `k='v'`; (token, None) for a bare token."""
    m = _PAIR_RE.match(token)
    if not m:
        return token, None
    value = next((g for g in m.groups()[1:] if g is not None), "")
    return m.group(1), value


# --- attribute values ---

@dataclass(frozen=True)
class Plain:
    value: str


@dataclass(frozen=True)
class KeyValueList:
    items: tuple[tuple[str, str], ...]


AttrValue = Plain | KeyValueList


def coerce_value(raw: Any) -> AttrValue:
    """Normalize a raw attribute value (string, mapping, pair list, class list)."""
    if isinstance(raw, (Plain, KeyValueList)):
        return raw
    if isinstance(raw, Mapping):
        return KeyValueList(tuple((str(k), str(v)) for k, v in raw.items()))
    if isinstance(raw, (list, tuple)):
        if raw and all(isinstance(p, (list, tuple)) and len(p) == 2 for p in raw):
            return KeyValueList(tuple((str(k), str(v)) for k, v in raw))
        return Plain(" ".join(str(p) for p in raw))
    if raw is None or raw is True:
        return Plain("")
    return Plain(str(raw))


def style_string(value: AttrValue) -> str:
    """Render a style value as one `k:v; k:v` string."""
    if isinstance(value, KeyValueList):
        return "; ".join(f"{k}:{v}" for k, v in value.items)
    return value.value.strip()


def join_style(current: str, extra: str) -> str:
    current, extra = current.strip(), extra.strip()
    if current and extra:
        return f"{current}; {extra}"
    return current or extra


# --- `{class="..." style="..." attrs="..."}` blocks ---

@dataclass
class AttrBlock:
    """Parsed attribute block: classes append, style joins, attrs is replaced."""
    classes: list[str] = field(default_factory=list)
    style: str = ""
    freeform: str = ""

    def __bool__(self) -> bool:
        return bool(self.classes or self.style or self.freeform)

    @property
    def class_str(self) -> str:
        return " ".join(dict.fromkeys(c for c in self.classes if c))

    def merge(self, other: "AttrBlock") -> None:
        """Fold a later-parsed block into this one."""
        self.classes.extend(other.classes)
        self.style = join_style(self.style, other.style)
        if other.freeform:
            self.freeform = other.freeform


def parse_attr_block(raw: str) -> AttrBlock:
    """Parse `{class="a b" style="..." attrs="..." .c d}` (braces optional).

    Unrecognized bare tokens become classes; other `key=value` pairs and
    `#id` are carried as free-form attributes after any `attrs=` string.
    """
    s = normalize_quotes(raw).strip()
    s = re.sub(r'^\\?\{', '', s)
    s = re.sub(r'\}$', '', s)

    block = AttrBlock()
    extras: list[str] = []
    for token in split_tokens(s):
        key, value = split_pair(token)
        if value is None:
            if token.startswith("#") and len(token) > 1:
                extras.append(f'id="{token[1:]}"')
            else:
                block.classes.append(token[1:] if token.startswith(".") else token)
        elif key in ("class", "className"):
            block.classes.extend(value.split())
        elif key == "style":
            block.style = join_style(block.style, value)
        elif key == "attrs":
            block.freeform = value.strip()
        else:
            extras.append(f'{key}="{value}"')

    block.classes = [c for c in block.classes if c]
    if extras:
        block.freeform = " ".join([block.freeform, *extras]).strip()
    return block


def parse_title_attrs(title: str | None) -> AttrBlock:
    """Parse attributes smuggled through an image title slot; empty block if none."""
    if not title:
        return AttrBlock()
    t = title.strip()
    if t.startswith("{") and t.endswith("}"):
        return parse_attr_block(t)
    if _TITLE_HINT_RE.search(t):
        return parse_attr_block(t)
    return AttrBlock()


# --- loose HTML attribute strings ---

def parse_loose_attrs(s: str | None) -> dict[str, str | bool]:
    """'controls playsinline data-x="1"' -> {'controls': True, 'playsinline': True, 'data-x': '1'}"""
    out: dict[str, str | bool] = {}
    for token in split_tokens(s or ""):
        key, value = split_pair(token)
        out[key] = True if value is None else value
    return out


def parse_directive_attrs(s: str | None) -> dict[str, str]:
    """Parse a directive `{...}` body: `.cls`, `#id`, `key=value`, quoted values, bare keys.

    Repeated classes accumulate; any other repeated key keeps the last value.
    Bare keys map to an empty string.
    """
    out: dict[str, str] = {}
    classes: list[str] = []
    for token in split_tokens(s or ""):
        key, value = split_pair(token)
        if value is None and token.startswith(".") and len(token) > 1:
            classes.append(token[1:])
        elif value is None and token.startswith("#") and len(token) > 1:
            out["id"] = token[1:]
        elif key == "class":
            classes.extend((value or "").split())
        else:
            out[key] = value or ""
    if classes:
        out["class"] = " ".join(classes)
    return out
