"""Renderers: canonical text, structured dict, and the legacy plain/dump views"""

import re
from typing import Any, Optional, Protocol, runtime_checkable

from otl.core.models import Headline, OutlineDocument
from otl.core.utils.text import escape_controls


NOTE_OPEN = "note"
NOTE_CLOSE = "/note"
NOTE_ELIDED = "..."

# body lines that would read as a block delimiter, with any escapes already in front
_DELIMITER_LIKE = re.compile(r"\\*(?:note|/note|\.\.\.)")


@runtime_checkable
class TextRenderable(Protocol):
    def to_canonical(self, **kwargs: Any) -> str: ...


@runtime_checkable
class StructuredRenderable(Protocol):
    def to_structured(self) -> dict[str, Any]: ...


def headline_line(h: Headline, indent: int = 4) -> str:
    """Single canonical line for a headline, without the trailing newline."""
    fold = "[-]" if h.open else "[+]"
    mark = "*" if h.marked else " "
    return f"{' ' * (indent * h.level)}{fold}{mark} {escape_controls(h.text)}"


def note_line(line: str) -> str:
    """Note body line as written inside a block; delimiter look-alikes gain a leading backslash."""
    return f"\\{line}" if _DELIMITER_LIKE.fullmatch(line) else line


def canonical_lines(doc: OutlineDocument, indent: int = 4, elide_notes: bool = False) -> list[tuple[Optional[int], str]]:
    """(headline index or None for note lines, text) pairs in canonical order."""
    out: list[tuple[Optional[int], str]] = []
    for i, h in enumerate(doc.headlines):
        out.append((i, headline_line(h, indent)))
        if h.note is None:
            continue
        pad = " " * (indent * (h.level + 1))
        out.append((None, f"{pad}{NOTE_OPEN}"))
        if elide_notes:
            out.append((None, f"{pad}{NOTE_ELIDED}"))
        else:
            out.extend((None, f"{pad}{note_line(line)}") for line in h.note.lines())
        out.append((None, f"{pad}{NOTE_CLOSE}"))
    return out


def render_canonical(doc: OutlineDocument, *, indent: int = 4, elide_notes: bool = False) -> str:
    """Deterministic, diffable text: every headline on its own line, notes as delimited blocks.

    Closed headlines still list their descendants so edits beneath them show up
    in diffs. The cursor is deliberately absent.
    """
    return "".join(f"{line}\n" for _, line in canonical_lines(doc, indent, elide_notes))


def _node(h: Headline, index: int, parent: Optional[int], children: list[int]) -> dict[str, Any]:
    return {
        "index": index,
        "level": h.level,
        "parent": parent,
        "children": children,
        "text": h.text,
        "open": h.open,
        "marked": h.marked,
        "has_note": h.has_note,
        "note": h.note.text if h.note is not None else None,
        "flags": {"attr": h.attr, "delta": h.delta, "has_next_sibling": h.has_next_sibling},
    }


def render_structured(doc: OutlineDocument) -> dict[str, Any]:
    """JSON-serializable view of the document with all raw fields.

    The tree is expressed as index links: "roots" lists top-level headlines and
    each entry in "headlines" (document order) names its parent and children,
    so output depth stays constant however deep the outline nests.
    """
    parents = doc.parents()
    kids: dict[Optional[int], list[int]] = {}
    for i, parent in enumerate(parents):
        kids.setdefault(parent, []).append(i)

    return {
        "declared": {"headlines": doc.declared_headlines, "characters": doc.declared_characters},
        "decoded": {"headlines": len(doc.headlines), "characters": doc.character_volume},
        "cursor": doc.cursor.model_dump() if doc.cursor else None,
        "marks": list(doc.marks.indices) if doc.marks else None,
        "diagnostics": [f.model_dump(mode="json") for f in doc.diagnostics],
        "roots": kids.get(None, []),
        "headlines": [
            _node(h, i, parents[i], kids.get(i, [])) for i, h in enumerate(doc.headlines)
        ],
    }


def render_plain(doc: OutlineDocument, indent: int = 2) -> str:
    """Bare outline text: all headlines regardless of fold state, notes one step deeper."""
    parts = []
    for h in doc.headlines:
        parts.append(f"{' ' * (indent * h.level)}{escape_controls(h.text)}\n")
        if h.note is not None:
            pad = " " * (indent * (h.level + 1))
            parts.extend(f"{pad}{line}\n" for line in h.note.lines())
    return "".join(parts)


def render_dump(doc: OutlineDocument) -> str:
    """Per-record table of raw structural fields, for reverse-engineering sessions."""
    rows = []
    for i, h in enumerate(doc.headlines):
        fold = "E" if h.open else "C"
        sel = "S" if h.marked else " "
        nxt = "N" if h.has_next_sibling else " "
        nlen = len(h.note.text) if h.note is not None else 0
        rows.append(
            f"{i:>4}  L={h.level:>2}  d={h.delta:>2}  attr=0x{h.attr:02x}  {fold} {sel} {nxt}"
            f"  note={nlen}  {escape_controls(h.text)}\n"
        )
    return "".join(rows)
