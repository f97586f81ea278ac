"""Binary decoder: raw .OTL bytes -> OutlineDocument"""

import logging
from typing import Optional

from otl.core import reader as layout
from otl.core.errors import BadMagic, DeclaredLimitExceeded, MalformedRecord, TruncatedInput
from otl.core.models import (
    MAX_CHARACTERS,
    MAX_HEADLINES,
    BlockMarkRange,
    CursorLocator,
    Finding,
    Headline,
    Note,
    OutlineDocument,
    Severity,
)
from otl.core.reader import ByteReader, decode_chars, is_text_byte


logger = logging.getLogger(__name__)


def _info(code: str, message: str, index: Optional[int] = None) -> Finding:
    return Finding(severity=Severity.info, code=code, message=message, index=index)


def _read_preamble(r: ByteReader, diagnostics: list[Finding]) -> Optional[CursorLocator]:
    """Read the preamble that follows the magic and return the cursor it names, if any."""
    if r.peek(len(layout.PREAMBLE_TAG)) != layout.PREAMBLE_TAG:
        if not r.at_end():
            diagnostics.append(_info("missing-preamble", f"no preamble at offset {r.offset}"))
        return None

    at = r.offset
    r.raw(len(layout.PREAMBLE_TAG), "preamble")
    headline = r.i16("cursor headline")
    offset = r.i16("cursor offset")
    if headline == layout.NO_CURSOR and offset == layout.NO_CURSOR:
        return None
    if headline < 0 or offset < 0:
        diagnostics.append(_info(
            "unknown-preamble", f"cursor fields {headline}/{offset} at offset {at} ignored",
        ))
        return None
    return CursorLocator(headline=headline, offset=offset)


def _read_record(
    r: ByteReader,
    index: int,
    prev_level: int,
    encoding: str,
    diagnostics: list[Finding],
    ) -> Headline:
    """Read one headline record starting at its first text byte."""
    text = decode_chars(r.take_while(is_text_byte), encoding)
    at = r.offset
    end = r.u8("heading terminator")
    if end != layout.TEXT_END:
        raise MalformedRecord(at, f"headline {index}: unterminated heading text (found 0x{end:02x})")

    attr = r.u8("attribute")
    if attr & ~layout.A_KNOWN:
        diagnostics.append(_info(
            "unknown-flag-bits",
            f"attribute 0x{attr:02x} carries unknown bits 0x{attr & ~layout.A_KNOWN:02x}",
            index,
        ))

    at = r.offset
    fold = r.u8("fold marker")
    tail = r.u8("fold marker")
    if fold not in (layout.M_EXPANDED, layout.M_COLLAPSED) or tail != layout.MARK_TAIL:
        raise MalformedRecord(at, f"headline {index}: bad fold marker {fold:02x} {tail:02x}")

    delta = r.i16("level delta")
    level = prev_level + delta
    if level < 0:
        diagnostics.append(Finding(
            severity=Severity.corruption,
            code="negative-level",
            message=f"level delta {delta} after level {prev_level} goes below 0; clamped",
            index=index,
        ))
        level = 0

    has_note = bool(attr & layout.A_NOTE)
    note = None
    if has_note:
        length = r.u16("note length")
        note = Note(text=decode_chars(r.run(length, "note body"), encoding))

    return Headline(
        level=level,
        delta=delta,
        text=text,
        open=fold == layout.M_EXPANDED,
        has_note=has_note,
        note=note,
        marked=bool(attr & layout.A_MARKED),
        attr=attr,
        has_next_sibling=bool(attr & layout.A_NEXT_SIBLING),
    )


def decode(data: bytes, encoding: str = layout.DEFAULT_ENCODING) -> OutlineDocument:
    """Decode a complete .OTL buffer. Raises DecodeError; never returns a partial document.

    encoding only chooses how stored bytes become characters; it never
    changes which records are found or how they nest.
    """
    if encoding not in layout.ENCODINGS:
        raise ValueError(f"Unknown encoding: {encoding!r}")

    r = ByteReader(data)
    diagnostics: list[Finding] = []
    if not r.expect(layout.MAGIC, "magic"):
        raise BadMagic(r.offset, f"expected {layout.MAGIC.hex(' ')}, found {r.peek(3).hex(' ')}")
    cursor = _read_preamble(r, diagnostics)

    headlines: list[Headline] = []
    volume = 0
    level = 0
    ended = r.sealed
    while not r.at_end():
        if r.peek(len(layout.TRAILER)) == layout.TRAILER:
            r.raw(len(layout.TRAILER), "trailer")
            ended = True
            break

        gap_at = r.offset
        gap = r.skip_until(is_text_byte)
        if r.at_end():
            diagnostics.append(_info(
                "trailing-bytes", f"{gap} byte(s) after last record at offset {gap_at}",
            ))
            break
        if gap:
            diagnostics.append(_info(
                "skipped-bytes", f"{gap} non-text byte(s) skipped at offset {gap_at}", len(headlines),
            ))

        at = r.offset
        if len(headlines) == MAX_HEADLINES:
            raise DeclaredLimitExceeded(at, "headline count", MAX_HEADLINES + 1, MAX_HEADLINES)
        headline = _read_record(r, len(headlines), level, encoding, diagnostics)
        volume += headline.character_count
        if volume > MAX_CHARACTERS:
            raise DeclaredLimitExceeded(at, "decoded character volume", volume, MAX_CHARACTERS)
        level = headline.level
        headlines.append(headline)

    if not r.at_end():
        diagnostics.append(_info(
            "trailing-bytes", f"{r.remaining} byte(s) after the end-of-file mark at offset {r.offset}",
        ))
    if not ended:
        raise TruncatedInput(r.offset, len(layout.TRAILER), 0, "end-of-file trailer")

    marked = tuple(i for i, h in enumerate(headlines) if h.marked)
    logger.debug("decoded %d headline(s), %d character(s), cursor=%s, %d diagnostic(s)",
                 len(headlines), volume, cursor, len(diagnostics))
    return OutlineDocument(
        headlines=tuple(headlines),
        cursor=cursor,
        marks=BlockMarkRange(indices=marked) if marked else None,
        diagnostics=tuple(diagnostics),
    )
