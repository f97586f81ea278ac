"""Line-level diff of canonical renderings, with optional cursor overlay"""

import difflib
from typing import Literal, Optional

from pydantic import BaseModel

from otl.core.emit import canonical_lines, render_canonical
from otl.core.models import OutlineDocument
from otl.core.utils.text import split_lines


OPCODE_KIND = {"insert": "insert", "delete": "delete", "replace": "change"}


class DiffHunk(BaseModel):
    """One non-equal region; ranges are 0-based, end-exclusive line indices."""
    kind: Literal["insert", "delete", "change"]
    a_start: int
    a_end: int
    b_start: int
    b_end: int
    a_lines: list[str] = []
    b_lines: list[str] = []


class CursorPosition(BaseModel):
    """Cursor of the second document resolved against its canonical text."""
    headline: int
    offset: int
    line: int                       # 1-based line in the canonical text
    text: str


class DiffReport(BaseModel):
    hunks: list[DiffHunk] = []
    a_text: str = ""
    b_text: str = ""
    structure_only: bool = False
    cursor_requested: bool = False
    cursor: Optional[CursorPosition] = None

    @property
    def is_empty(self) -> bool:
        """True when the texts match; the cursor overlay never counts as a difference."""
        return not self.hunks

    def summary(self) -> dict[str, int]:
        """Added/deleted/changed line counts, changed counted on the new side."""
        counts = {"inserted": 0, "deleted": 0, "changed": 0}
        for h in self.hunks:
            if h.kind == "insert":
                counts["inserted"] += h.b_end - h.b_start
            elif h.kind == "delete":
                counts["deleted"] += h.a_end - h.a_start
            else:
                counts["changed"] += max(h.a_end - h.a_start, h.b_end - h.b_start)
        return counts


def _hunks(a_lines: list[str], b_lines: list[str]) -> list[DiffHunk]:
    matcher = difflib.SequenceMatcher(None, a_lines, b_lines, autojunk=False)
    return [
        DiffHunk(
            kind=OPCODE_KIND[tag],
            a_start=i1, a_end=i2, b_start=j1, b_end=j2,
            a_lines=a_lines[i1:i2], b_lines=b_lines[j1:j2],
        )
        for tag, i1, i2, j1, j2 in matcher.get_opcodes()
        if tag != "equal"
    ]


def diff_text(a_text: str, b_text: str) -> DiffReport:
    """Compare two canonical texts directly."""
    return DiffReport(
        hunks=_hunks(split_lines(a_text), split_lines(b_text)),
        a_text=a_text,
        b_text=b_text,
    )


def resolve_cursor(doc: OutlineDocument, indent: int = 4, elide_notes: bool = False) -> Optional[CursorPosition]:
    """Locate the document's cursor in its canonical text; None when absent or out of range."""
    c = doc.cursor
    if c is None or c.headline >= len(doc.headlines):
        return None
    text = doc.headlines[c.headline].text
    if c.offset > len(text):
        return None
    for lineno, (index, _) in enumerate(canonical_lines(doc, indent, elide_notes), start=1):
        if index == c.headline:
            return CursorPosition(headline=c.headline, offset=c.offset, line=lineno, text=text)
    return None


def diff(
    a: OutlineDocument,
    b: OutlineDocument,
    *,
    structure_only: bool = False,
    show_cursor: bool = False,
    indent: int = 4,
    ) -> DiffReport:
    """Diff two decoded documents via their canonical text.

    structure_only elides note bodies to a placeholder so only structural edits
    show. show_cursor resolves b's cursor without changing the hunks.
    """
    a_text = render_canonical(a, indent=indent, elide_notes=structure_only)
    b_text = render_canonical(b, indent=indent, elide_notes=structure_only)
    report = diff_text(a_text, b_text)
    report.structure_only = structure_only
    if show_cursor:
        report.cursor_requested = True
        report.cursor = resolve_cursor(b, indent, structure_only)
    return report


def format_report(report: DiffReport, context: int = 0) -> str:
    """Unified diff text (zero context by default), then the cursor line if requested."""
    lines = list(difflib.unified_diff(
        split_lines(report.a_text, keepends=True),
        split_lines(report.b_text, keepends=True),
        fromfile="prev(canon)",
        tofile="curr(canon)",
        n=context,
    ))
    if report.cursor_requested:
        c = report.cursor
        if c is None:
            lines.append("cursor: (unresolved)\n")
        else:
            lines.append(f"cursor: headline {c.headline} offset {c.offset} line {c.line}\n")
    return "".join(lines)
