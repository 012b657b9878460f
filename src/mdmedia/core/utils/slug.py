"""Slug generation for output file names"""

import re
import unicodedata


def slugify(text: str, fallback: str = "") -> str:
    """Lowercase, ASCII-folded, hyphen-separated slug; `fallback` when nothing survives.

    'Café Menu_2024' -> 'cafe-menu-2024'
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    words = re.findall(r'[a-z0-9]+', folded.lower())
    return "-".join(words) or fallback
