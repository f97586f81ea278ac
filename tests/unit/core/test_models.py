"""Unit tests for core/models.py"""

import pytest
from pydantic import ValidationError

from otl.core.emit import StructuredRenderable, TextRenderable
from otl.core.models import Finding, Headline, Note, OutlineDocument, Severity


def _doc(*levels: int) -> OutlineDocument:
    return OutlineDocument(headlines=tuple(Headline(level=lv, text=f"h{i}") for i, lv in enumerate(levels)))


def test_parents_follow_levels():
    """Parent is the nearest preceding headline with a smaller level."""
    doc = _doc(0, 1, 2, 1, 0, 1)
    assert doc.parents() == [None, 0, 1, 0, None, 4]
    assert doc.roots() == [0, 4]
    assert doc.children(0) == [1, 3]
    assert doc.children(2) == []


def test_level_skip_attaches_to_nearest_shallower():
    doc = _doc(0, 3, 1)
    assert doc.parents() == [None, 0, 0]


def test_documents_are_immutable():
    doc = _doc(0)
    with pytest.raises(ValidationError):
        doc.declared_headlines = 5
    with pytest.raises(ValidationError):
        doc.headlines[0].text = "changed"


def test_negative_level_rejected():
    with pytest.raises(ValidationError):
        Headline(level=-1, text="x")


@pytest.mark.parametrize("text,expected", [
    ("",                []),
    ("one",             ["one"]),
    ("a\r\nb\r\n",      ["a", "b"]),
    ("a\rb\nc",         ["a", "b", "c"]),
    ("a\n\nb",          ["a", "", "b"]),
])
def test_note_lines(text, expected):
    assert Note(text=text).lines() == expected


def test_character_volume_counts_text_and_notes():
    doc = OutlineDocument(headlines=(
        Headline(level=0, text="abc", has_note=True, note=Note(text="12345")),
        Headline(level=1, text="de"),
    ))
    assert doc.character_volume == 10


def test_finding_str():
    f = Finding(severity=Severity.corruption, code="level-skip", message="level 2 follows level 0", index=4)
    assert str(f) == "CORRUPTION: [level-skip] headline 4 - level 2 follows level 0"


def test_document_implements_render_capabilities():
    doc = _doc(0, 1)
    assert isinstance(doc, TextRenderable)
    assert isinstance(doc, StructuredRenderable)
    assert doc.to_canonical() == "[-]  h0\n    [-]  h1\n"
    data = doc.to_structured()
    assert data["headlines"][0]["children"] == [1]
    assert data["headlines"][1]["parent"] == 0
