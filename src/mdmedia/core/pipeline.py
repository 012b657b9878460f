"""Pipeline orchestration: preprocess -> parse -> localize -> expand -> export"""

import asyncio
import logging
from pathlib import Path

from mdmedia.config import Settings
from mdmedia.core.expand import MediaExpander
from mdmedia.core.export import write_doc
from mdmedia.core.localize import AssetLocalizer
from mdmedia.core.models import ParsedDoc
from mdmedia.core.parse import discover_files, parse_source
from mdmedia.ledger.database import SqlLedgerStore, make_engine
from mdmedia.ledger.store import JsonLedgerStore, LedgerStore


logger = logging.getLogger("mdmedia.pipeline")


def make_store(settings: Settings) -> LedgerStore:
    """Ledger store for the configured backend."""
    if settings.ledger_backend == "sql":
        return SqlLedgerStore(make_engine(settings.db_url))
    return JsonLedgerStore(settings.usage_log_path)


async def process_source(
    raw: str,
    path: Path,
    localizer: AssetLocalizer,
    expander: MediaExpander,
    parser_config: str = "gfm-like",
    preprocess_suffix: str = ".mdx",
    ) -> ParsedDoc:
    """Run one document's source text through every stage; the tree is left ready to render."""
    doc = parse_source(raw, path, parser_config, preprocess_suffix)
    doc.assets = await localizer(doc.tree, doc.path, doc.frontmatter)
    expander(doc.tree)
    logger.debug("Processed %s (%d local asset(s))", path, len(doc.assets))
    return doc


async def process_file(
    path: Path,
    localizer: AssetLocalizer,
    expander: MediaExpander,
    parser_config: str = "gfm-like",
    preprocess_suffix: str = ".mdx",
    ) -> ParsedDoc:
    raw = path.read_text(encoding="utf-8")
    return await process_source(raw, path, localizer, expander, parser_config, preprocess_suffix)


async def build_docs(files: list[Path], settings: Settings, store: LedgerStore) -> list[ParsedDoc]:
    """Process files concurrently with one shared localizer (and so one ledger writer)."""
    localizer = AssetLocalizer.from_settings(settings, store)
    expander = MediaExpander.from_settings(settings)

    async def _one(p: Path) -> ParsedDoc:
        try:
            return await process_file(p, localizer, expander, settings.parser_config, settings.preprocess_suffix)
        except Exception as e:
            raise RuntimeError(f"Failed to build {p}: {e}") from e

    return list(await asyncio.gather(*(_one(p) for p in files)))


def run_build(path: str, settings: Settings, store: LedgerStore = None) -> list[tuple[Path, Path]]:
    """Build every document under path and write HTML + JSON. Returns (source_path, html_path) pairs."""
    root = Path(path)
    files = discover_files(root)
    if not files:
        return []
    docs = asyncio.run(build_docs(files, settings, store or make_store(settings)))

    output_dir = Path(settings.output_dir)
    results = []
    for doc in docs:
        html_path, _ = write_doc(doc, output_dir, root)
        results.append((doc.path, html_path))
    return results
