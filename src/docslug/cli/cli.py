"""CLI entrypoint: Typer app definition and command registration"""

import typer

from docslug.cli.commands import history_cmd, init_cmd, slugify_cmd


app = typer.Typer(name="docslug", no_args_is_help=True, help="Slug maintenance for stored documents")

app.command(name="init")(init_cmd)
app.command(name="slugify")(slugify_cmd)
app.command(name="history")(history_cmd)
