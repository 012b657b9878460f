"""Intermediate data models for the media pipeline"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from mdmedia.core.nodes import Root


@dataclass
class MediaMeta:
    """Localizer output attached to a node as data['media']."""
    kind:   str                     # "image" | "video"
    ext:    str                     # lowercased, with leading dot
    width:  Optional[int] = None
    height: Optional[int] = None
    source: Optional[str] = None    # reference as authored, before rewriting


@dataclass
class LocalizedAsset:
    """Result of materializing one local reference into the public directory."""
    public_path: str                # URL path, e.g. /assets/hash/<sha1>.png
    target:      Path               # file written under public_dir
    hash:        str
    meta:        MediaMeta


@dataclass
class ParsedDoc:
    """A document after parsing; mutated in place by the localizer and expander."""
    path:        Path
    slug:        str
    source:      str                        # text handed to the parser (after preprocessing)
    frontmatter: dict[str, Any]
    tree:        Root
    assets:      list[LocalizedAsset] = field(default_factory=list)
