"""CLI entrypoint: Typer app definition and command registration"""

import typer

from otl.cli.commands import otl_cmd


app = typer.Typer(name="otl", add_completion=False, help="Decode, validate and diff legacy DOS .OTL outline files")

app.command(name="otl", no_args_is_help=True)(otl_cmd)
