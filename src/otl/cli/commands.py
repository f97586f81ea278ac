"""CLI command implementation"""

from typing import Annotated, Optional

import typer

from otl.config import Settings, load_config
from otl.core.models import Finding
from otl.core.pipeline import run_diff, run_render
from otl.logging import configure_logging


def _fail(msg: str) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(1)


def _settings(overrides: Optional[dict] = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _echo_findings(findings: list[Finding], source: Optional[str] = None) -> None:
    """Print validator findings to stderr; never affects the exit code."""
    prefix = f"{source}: " if source else ""
    for f in findings:
        typer.echo(f"{prefix}{f}", err=True)
    typer.echo(f"{prefix}validate: {len(findings)} finding(s)", err=True)


def otl_cmd(
    files: Annotated[list[str], typer.Argument(help="OTL file ('-' for stdin); PREV CURR with --diff")],
    canon: Annotated[bool, typer.Option("--canon", help="Canonical text dump (default)")] = False,
    json_out: Annotated[bool, typer.Option("--json", help="Structured JSON tree")] = False,
    text: Annotated[bool, typer.Option("--text", help="Plain indented text, no markers")] = False,
    dump: Annotated[bool, typer.Option("--dump", help="Per-record table of raw fields")] = False,
    diff: Annotated[bool, typer.Option("--diff", help="Diff canonical dumps of PREV and CURR")] = False,
    show_cursor: Annotated[bool, typer.Option("--show-cursor", help="With --diff, report CURR's cursor position")] = False,
    structure_only: Annotated[bool, typer.Option("--structure-only", help="With --diff, elide note bodies")] = False,
    validate: Annotated[bool, typer.Option("--validate", help="Print validator findings to stderr")] = False,
    indent: Annotated[Optional[int], typer.Option("--indent", help="Spaces per outline level")] = None,
    enc: Annotated[Optional[str], typer.Option("--enc", help="Read stored bytes as latin1, utf8 or ascii")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING, ...")] = None,
    ):
    """Decode a legacy .OTL outline and print it, or diff two of them."""
    chosen = [name for name, on in (
        ("--canon", canon), ("--json", json_out), ("--text", text), ("--dump", dump), ("--diff", diff),
    ) if on]
    if len(chosen) > 1:
        raise typer.BadParameter(f"choose one output mode, got {' '.join(chosen)}")
    if (show_cursor or structure_only) and not diff:
        raise typer.BadParameter("--show-cursor and --structure-only require --diff")

    settings = _settings(overrides={
        "indent": indent,
        "log_level": log_level and log_level.upper(),
        "encoding": enc and enc.lower(),
    })
    configure_logging(settings.log_level)

    if diff:
        if len(files) != 2:
            raise typer.BadParameter("--diff takes exactly two files: PREV CURR")
        prev, curr = files
        try:
            output, pairs = run_diff(
                prev, curr,
                show_cursor=show_cursor,
                structure_only=structure_only,
                with_validation=validate,
                indent=settings.indent,
                context=settings.diff_context,
                encoding=settings.encoding,
            )
        except RuntimeError as e:
            _fail(str(e))
        typer.echo(output, nl=False)
        if validate:
            for path in (prev, curr):
                _echo_findings([f for src, f in pairs if src == path], path)
        return

    if len(files) != 1:
        raise typer.BadParameter("expected exactly one file (use --diff to compare two)")
    mode = {"--json": "json", "--text": "text", "--dump": "dump"}.get(chosen[0] if chosen else "", "canon")
    try:
        output, findings = run_render(
            files[0], mode,
            with_validation=validate,
            indent=settings.indent,
            json_indent=settings.json_indent,
            encoding=settings.encoding,
        )
    except RuntimeError as e:
        _fail(str(e))
    typer.echo(output, nl=False)
    if validate:
        _echo_findings(findings)
