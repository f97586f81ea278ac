"""Unit tests for core/reader.py"""

import pytest

from otl.core.errors import InconsistentLength, TruncatedInput
from otl.core.reader import TRAILER, ByteReader, decode_chars, is_text_byte


def test_fixed_width_reads_are_little_endian():
    """u8/u16/i16 decode little-endian and advance the offset."""
    r = ByteReader(b"\x01\x02\x03\xff\xff")
    assert r.u8() == 0x01
    assert r.u16() == 0x0302
    assert r.i16() == -1
    assert r.offset == 5
    assert r.at_end()


def test_peek_does_not_advance():
    r = ByteReader(b"abc")
    assert r.peek(2) == b"ab"
    assert r.offset == 0
    assert r.peek(10) == b"abc"


def test_truncated_read_reports_offset():
    """A read past the end raises TruncatedInput at the field's start offset."""
    r = ByteReader(b"\x01\x02\x03")
    r.u16()
    with pytest.raises(TruncatedInput) as exc:
        r.i16("level delta")
    assert exc.value.offset == 2
    assert exc.value.needed == 2
    assert exc.value.available == 1
    assert r.offset == 2


def test_empty_buffer_fails_cleanly():
    with pytest.raises(TruncatedInput) as exc:
        ByteReader(b"").u8()
    assert exc.value.offset == 0


def test_expect_matches_and_mismatches():
    r = ByteReader(b"\x1a\x93\x1a\x00")
    assert r.expect(b"\x1a\x93\x1a")
    assert r.offset == 3
    assert not r.expect(b"\xff")
    assert r.offset == 3


def test_trailer_is_held_back():
    """A sealed buffer stops reads in front of its trailer."""
    r = ByteReader(b"ab" + TRAILER)
    assert r.sealed
    assert r.remaining == 2
    assert r.peek(5) == b"ab"
    r.raw(2)
    assert r.at_end()
    assert not ByteReader(b"ab").sealed


def test_skip_until_and_take_while():
    r = ByteReader(b"\x00\x01Intro\xff")
    assert r.skip_until(is_text_byte) == 2
    assert r.take_while(is_text_byte) == b"Intro"
    assert r.u8() == 0xFF


def test_skip_until_stops_at_end():
    r = ByteReader(b"\x00\x00")
    assert r.skip_until(is_text_byte) == 2
    assert r.at_end()


def test_run_overrun_unsealed_is_truncation():
    r = ByteReader(b"abc")
    with pytest.raises(TruncatedInput):
        r.run(16, "note body")


def test_run_overrun_sealed_is_inconsistent_length():
    """A file ending in the trailer is complete, so an overrunning length is self-contradictory."""
    r = ByteReader(b"\x10\x00abc" + TRAILER)
    r.u16()
    with pytest.raises(InconsistentLength) as exc:
        r.run(16, "note body")
    assert exc.value.offset == 2
    assert exc.value.declared == 16
    assert exc.value.available == 3


@pytest.mark.parametrize("encoding, expected", [
    ("latin1", "caf\xe9 \xb3"),
    ("utf8", "caf\ufffd \ufffd"),
    ("ascii", "cafi 3"),
])
def test_decode_chars(encoding, expected):
    assert decode_chars(b"caf\xe9 \xb3", encoding) == expected


def test_decode_chars_utf8_multibyte():
    assert decode_chars("café".encode("utf-8"), "utf8") == "café"


def test_decode_chars_unknown_encoding():
    with pytest.raises(ValueError, match="Unknown encoding"):
        decode_chars(b"x", "cp437")
