"""Pipeline step functions: load -> decode -> render/diff, plus optional validation"""

import json
import logging
import sys
from pathlib import Path

from otl.core.decode import decode
from otl.core.diff import diff, format_report
from otl.core.errors import DecodeError
from otl.core.emit import render_canonical, render_dump, render_plain, render_structured
from otl.core.models import Finding, OutlineDocument
from otl.core.reader import DEFAULT_ENCODING
from otl.core.validate import validate


logger = logging.getLogger(__name__)

RENDERERS = ("canon", "json", "text", "dump")


def load_bytes(path: str) -> bytes:
    """Read a whole file into memory; '-' reads standard input."""
    if path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def load_document(path: str, encoding: str = DEFAULT_ENCODING) -> OutlineDocument:
    """Read and decode one file. Raises RuntimeError naming the path; the cause is the DecodeError or OSError."""
    try:
        data = load_bytes(path)
        logger.debug("read %d byte(s) from %s", len(data), path)
        return decode(data, encoding)
    except (DecodeError, OSError) as e:
        raise RuntimeError(f"Failed to decode {path}: {e}") from e


def render(doc: OutlineDocument, mode: str, indent: int = 4, json_indent: int = 2) -> str:
    """Render doc in one of RENDERERS."""
    if mode == "canon":
        return render_canonical(doc, indent=indent)
    if mode == "json":
        return json.dumps(render_structured(doc), indent=json_indent or None, ensure_ascii=False) + "\n"
    if mode == "text":
        return render_plain(doc)
    if mode == "dump":
        return render_dump(doc)
    raise ValueError(f"Unknown output mode: {mode!r} (expected one of {', '.join(RENDERERS)})")


def run_render(
    path: str,
    mode: str,
    with_validation: bool = False,
    indent: int = 4,
    json_indent: int = 2,
    encoding: str = DEFAULT_ENCODING,
    ) -> tuple[str, list[Finding]]:
    """Decode path and render it. Returns (output, findings); findings empty unless requested."""
    doc = load_document(path, encoding)
    output = render(doc, mode, indent, json_indent)
    return output, validate(doc) if with_validation else []


def run_diff(
    prev: str,
    curr: str,
    show_cursor: bool = False,
    structure_only: bool = False,
    with_validation: bool = False,
    indent: int = 4,
    context: int = 0,
    encoding: str = DEFAULT_ENCODING,
    ) -> tuple[str, list[tuple[str, Finding]]]:
    """Decode both files independently and diff them.

    Returns (report_text, findings) where findings pairs each Finding with the
    path it was raised for.
    """
    a = load_document(prev, encoding)
    b = load_document(curr, encoding)
    report = diff(a, b, structure_only=structure_only, show_cursor=show_cursor, indent=indent)
    logger.info("diff %s -> %s: %s", prev, curr, report.summary())

    findings: list[tuple[str, Finding]] = []
    if with_validation:
        findings.extend((prev, f) for f in validate(a))
        findings.extend((curr, f) for f in validate(b))
    return format_report(report, context), findings
