"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdmedia.cli.commands import build_cmd, init_cmd, ledger_cmd, preprocess_cmd


app = typer.Typer(name="mdmedia", no_args_is_help=True, help="Markdown/MDX media localization pipeline")

app.command(name="build")(build_cmd)
app.command(name="preprocess")(preprocess_cmd)
app.command(name="ledger")(ledger_cmd)
app.command(name="init")(init_cmd)
