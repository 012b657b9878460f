"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import SQLModel

from mdmedia.config import Settings, load_config
from mdmedia.core.pipeline import make_store, run_build
from mdmedia.core.preprocess import preprocess_source
from mdmedia.ledger.database import init_db, make_engine


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def build_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to process")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    public_dir: Annotated[Optional[str], typer.Option("--public-dir", help="Static root for copied assets")] = None,
    public_base: Annotated[Optional[str], typer.Option("--public-base", help="URL segment for copied assets")] = None,
    dedupe: Annotated[Optional[str], typer.Option("--dedupe-mode", help="global or perPost")] = None,
    usage_log: Annotated[Optional[str], typer.Option("--usage-log", help="Usage ledger JSON path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    ):
    """Run the full pipeline: preprocess -> parse -> localize -> expand -> render."""
    _configure_logging(verbose)
    settings = _settings(overrides={
        "output_dir": out, "public_dir": public_dir, "public_base": public_base,
        "dedupe_mode": dedupe, "usage_log_path": usage_log,
    })
    if not Path(path).exists():
        _fail(f"Path not found: {path}")

    try:
        results = run_build(path, settings)
    except RuntimeError as e:
        _fail(str(e))
    for src, html_path in results:
        typer.echo(f"  {src} -> {html_path}")
    typer.echo(f"Built {len(results)} document(s) to {settings.output_dir}/")


def preprocess_cmd(
    file: Annotated[Path, typer.Argument(exists=True, dir_okay=False, readable=True, help="Source file")],
    ):
    """Print a source file after the image-attribute rewrite."""
    settings = _settings()
    text = file.read_text(encoding="utf-8")
    typer.echo(preprocess_source(text, file, settings.preprocess_suffix), nl=False)


def ledger_cmd():
    """List usage ledger entries (hash, public path, last used)."""
    settings = _settings()
    entries = make_store(settings).load()
    if not entries:
        typer.echo("Usage ledger is empty.")
        raise typer.Exit(1)
    for digest, entry in sorted(entries.items(), key=lambda kv: kv[1].path):
        typer.echo(f"{digest}  {entry.path}  {entry.last_used}")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate the ledger table")] = False,
    ):
    """Initialize the SQL ledger schema. Use --reset to clear existing entries."""
    settings = _settings()
    if settings.ledger_backend != "sql":
        typer.echo(f"Ledger backend is '{settings.ledger_backend}'; nothing to initialize "
                   f"(the ledger lives in {settings.usage_log_path}).")
        return
    engine = make_engine(settings.db_url)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing ledger cleared.")
    init_db(engine)
    typer.echo(f"Ledger database initialized at: {settings.db_url}")
