"""Export: rendered HTML + sidecar JSON per document"""

import json
from pathlib import Path

from mdmedia.core.models import ParsedDoc
from mdmedia.core.render import render_html


def build_sidecar(doc: ParsedDoc) -> dict:
    """Sidecar dict: slug, source path, frontmatter (image already rewritten), localized media."""
    return {
        "slug": doc.slug,
        "path": str(doc.path),
        "frontmatter": doc.frontmatter,
        "media": [
            {
                "path": a.public_path,
                "hash": a.hash,
                "kind": a.meta.kind,
                "width": a.meta.width,
                "height": a.meta.height,
            }
            for a in doc.assets
        ],
    }


def _relative_dir(path: Path, base: Path) -> Path:
    base = base if base.is_dir() else base.parent
    try:
        return path.parent.resolve().relative_to(base.resolve())
    except ValueError:
        return Path()


def write_doc(doc: ParsedDoc, output_dir: Path, base: Path) -> tuple[Path, Path]:
    """Write <slug>.html and <slug>.json for one document.

    Output mirrors the source layout below `base`:
      output_dir / <dir relative to base> / doc.slug.{html|json}

    Returns (html_path, json_path).
    """
    dest_dir = output_dir / _relative_dir(doc.path, base)
    dest_dir.mkdir(parents=True, exist_ok=True)

    html_path = dest_dir / f"{doc.slug}.html"
    json_path = dest_dir / f"{doc.slug}.json"
    html_path.write_text(render_html(doc.tree), encoding='utf-8')
    json_path.write_text(json.dumps(build_sidecar(doc), indent=2, default=str), encoding='utf-8')
    return html_path, json_path
