"""Immutable outline data model: a flat, level-tagged headline sequence"""

import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


MAX_HEADLINES = 2200
MAX_CHARACTERS = 400_000

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Severity(str, Enum):
    """Finding severity: informational observations vs. evidence of corruption"""
    info = "info"
    corruption = "corruption"


class Finding(Frozen):
    """A single non-fatal observation about a decoded document."""
    severity: Severity
    code: str
    message: str
    index: Optional[int] = None     # headline index, when the finding is about one

    def __str__(self) -> str:
        loc = f" headline {self.index}" if self.index is not None else ""
        return f"{self.severity.value.upper()}: [{self.code}]{loc} - {self.message}"


class Note(Frozen):
    """Free-text body attached to exactly one headline."""
    text: str = ""

    def lines(self) -> list[str]:
        """Body split on any line terminator; an empty body has no lines."""
        if not self.text:
            return []
        lines = _LINE_BREAK.split(self.text)
        if lines[-1] == "":
            lines.pop()
        return lines


class Headline(Frozen):
    level: int = Field(ge=0)
    delta: int = 0                  # level change as stored, before clamping
    text: str
    open: bool = True
    has_note: bool = False
    note: Optional[Note] = None
    marked: bool = False
    attr: int = 0                   # raw attribute byte as stored
    has_next_sibling: bool = False

    @property
    def character_count(self) -> int:
        return len(self.text) + (len(self.note.text) if self.note else 0)


class CursorLocator(Frozen):
    headline: int = Field(ge=0)
    offset: int = Field(ge=0)


class BlockMarkRange(Frozen):
    indices: tuple[int, ...] = ()


class OutlineDocument(Frozen):
    """Decoded outline; hierarchy is derived from levels, never stored."""
    headlines: tuple[Headline, ...] = ()
    declared_headlines: Optional[int] = None     # only when the source states counts
    declared_characters: Optional[int] = None
    cursor: Optional[CursorLocator] = None
    marks: Optional[BlockMarkRange] = None
    diagnostics: tuple[Finding, ...] = ()     # tolerated oddities seen while decoding

    @property
    def character_volume(self) -> int:
        return sum(h.character_count for h in self.headlines)

    def parents(self) -> list[Optional[int]]:
        """Parent index per headline: nearest preceding headline with a smaller level."""
        parents: list[Optional[int]] = []
        stack: list[int] = []
        for i, h in enumerate(self.headlines):
            while stack and self.headlines[stack[-1]].level >= h.level:
                stack.pop()
            parents.append(stack[-1] if stack else None)
            stack.append(i)
        return parents

    def children(self, index: int) -> list[int]:
        return [i for i, p in enumerate(self.parents()) if p == index]

    def roots(self) -> list[int]:
        return [i for i, p in enumerate(self.parents()) if p is None]

    def to_canonical(self, **kwargs: Any) -> str:
        from otl.core.emit import render_canonical
        return render_canonical(self, **kwargs)

    def to_structured(self) -> dict[str, Any]:
        from otl.core.emit import render_structured
        return render_structured(self)
