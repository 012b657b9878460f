"""Raw-source rewrite of `![alt](url){attrs}` into `:img[alt]{src="url" attrs}` before parsing"""

import re
from pathlib import Path


IMAGE_ATTRS_RE = re.compile(r'!\[([^\]]*)\]\(([^)\s]+)\)\s*\{([^}]*)\}')


def rewrite_image_attrs(text: str) -> str:
    """Turn attribute-carrying Markdown images into `img` text directives."""
    return IMAGE_ATTRS_RE.sub(lambda m: f':img[{m.group(1)}]{{src="{m.group(2)}" {m.group(3)}}}', text)


def preprocess_source(text: str, path: Path | str, suffix: str = '.mdx') -> str:
    """Apply rewrite_image_attrs only to files ending with suffix; others pass through."""
    if not suffix or not str(path).lower().endswith(suffix.lower()):
        return text
    return rewrite_image_attrs(text)
