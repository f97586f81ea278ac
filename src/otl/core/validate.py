"""Structural validator: advisory findings over a decoded OutlineDocument"""

import logging

from otl.core.models import Finding, OutlineDocument, Severity


logger = logging.getLogger(__name__)


def _corrupt(code: str, message: str, index: int | None = None) -> Finding:
    return Finding(severity=Severity.corruption, code=code, message=message, index=index)


def check_levels(doc: OutlineDocument) -> list[Finding]:
    """Each headline may be at most one level deeper than its predecessor; the first is level 0."""
    results = []
    prev = -1
    for i, h in enumerate(doc.headlines):
        if h.level > prev + 1:
            results.append(_corrupt(
                "level-skip", f"level {h.level} follows level {prev if prev >= 0 else 'start'}", i,
            ))
        prev = h.level
    return results


def check_notes(doc: OutlineDocument) -> list[Finding]:
    results = []
    for i, h in enumerate(doc.headlines):
        if h.note is not None and not h.has_note:
            results.append(_corrupt("orphan-note", "note body present but note flag clear", i))
        elif h.has_note and h.note is None:
            results.append(_corrupt("missing-note", "note flag set but no note body", i))
    return results


def check_cursor(doc: OutlineDocument) -> list[Finding]:
    c = doc.cursor
    if c is None:
        return []
    if c.headline >= len(doc.headlines):
        return [_corrupt(
            "invalid-cursor", f"cursor names headline {c.headline}, document has {len(doc.headlines)}",
        )]
    length = len(doc.headlines[c.headline].text)
    if c.offset > length:
        return [_corrupt(
            "invalid-cursor", f"cursor offset {c.offset} beyond text length {length}", c.headline,
        )]
    return []


def check_declared_counts(doc: OutlineDocument) -> list[Finding]:
    """Compare stated totals with what decoded; a count the source never stated is not checked."""
    results = []
    if doc.declared_headlines is not None and doc.declared_headlines != len(doc.headlines):
        results.append(_corrupt(
            "headline-count-mismatch",
            f"header declares {doc.declared_headlines} headline(s), decoded {len(doc.headlines)}",
        ))
    volume = doc.character_volume
    if doc.declared_characters is not None and doc.declared_characters != volume:
        results.append(_corrupt(
            "character-count-mismatch",
            f"header declares {doc.declared_characters} character(s), decoded {volume}",
        ))
    return results


def check_marks(doc: OutlineDocument) -> list[Finding]:
    """Mark indices must be in range; the mark set and per-headline flags should agree."""
    if doc.marks is None:
        return []
    results = []
    n = len(doc.headlines)
    for idx in doc.marks.indices:
        if idx >= n:
            results.append(_corrupt("mark-out-of-range", f"block mark names headline {idx}, document has {n}"))

    flagged = {i for i, h in enumerate(doc.headlines) if h.marked}
    in_set = {i for i in doc.marks.indices if i < n}
    for i in sorted(flagged ^ in_set):
        where = "flagged but not in mark set" if i in flagged else "in mark set but not flagged"
        results.append(Finding(severity=Severity.info, code="mark-flag-mismatch", message=where, index=i))
    return results


CHECKS = (check_levels, check_notes, check_cursor, check_declared_counts, check_marks)


def validate(doc: OutlineDocument) -> list[Finding]:
    """Run every check and return all findings, followed by decoder diagnostics. Never raises."""
    results: list[Finding] = []
    for check in CHECKS:
        results.extend(check(doc))
    results.extend(doc.diagnostics)
    logger.info("validated %d headline(s): %d finding(s)", len(doc.headlines), len(results))
    return results


def has_corruption(findings: list[Finding]) -> bool:
    return any(f.severity == Severity.corruption for f in findings)
