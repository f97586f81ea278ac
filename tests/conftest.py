"""Root test configuration: a legacy-layout .OTL encoder for building binary fixtures"""

import struct

import pytest


MAGIC = b"\x1a\x93\x1a"
PREAMBLE = b"\xff\x00\xff\xff\xff\xff"
TRAILER = b"\xff\xff\x1a"

# Intro (open) > Background (closed, note) + Scope (open)
SCENARIO_A = [
    {"text": "Intro", "level": 0},
    {"text": "Background", "level": 1, "open": False, "note": "see appendix"},
    {"text": "Scope", "level": 1},
]

# The same outline as the legacy outliner writes it, byte for byte.
SCENARIO_A_BYTES = (
    MAGIC + PREAMBLE
    + b"Intro" + b"\xff" + b"\x00\xff\xff" + b"\x00\x00"
    + b"Background" + b"\xff" + b"\x80\xfe\xff" + b"\x01\x00" + b"\x0c\x00" + b"see appendix"
    + b"Scope" + b"\xff" + b"\x00\xff\xff" + b"\x00\x00"
    + TRAILER
)


def encode_otl(
    headlines: list[dict],
    cursor: tuple[int, int] = None,
    encoding: str = "latin-1",
    preamble: bool = True,
    trailer: bool = True,
    ) -> bytes:
    """Encode headline dicts (text, level or delta, open, note, marked, attr) into .OTL bytes.

    Levels become relative deltas unless a dict pins "delta" itself. A str
    note is encoded with `encoding`; a bytes note is written as-is.
    """
    out = bytearray(MAGIC)
    if preamble:
        out += b"\xff\x00" + struct.pack("<hh", *(cursor or (-1, -1)))

    prev = 0
    for h in headlines:
        delta = h["delta"] if "delta" in h else h.get("level", 0) - prev
        prev = max(prev + delta, 0)
        note = h.get("note")
        attr = h.get("attr", 0) | (0x80 if note is not None else 0) | (0x20 if h.get("marked") else 0)
        out += h["text"].encode("ascii") + b"\xff"
        out += struct.pack("<BBBh", attr, 0xFF if h.get("open", True) else 0xFE, 0xFF, delta)
        if note is not None:
            raw = note if isinstance(note, bytes) else note.encode(encoding)
            out += struct.pack("<H", len(raw)) + raw

    if trailer:
        out += TRAILER
    return bytes(out)


@pytest.fixture(name="build_otl")
def build_otl_fixture():
    return encode_otl


@pytest.fixture(name="scenario_a")
def scenario_a_fixture():
    """Headline dicts for the Intro/Background/Scope outline; copies so tests may edit them."""
    return [dict(h) for h in SCENARIO_A]


@pytest.fixture(name="legacy_bytes")
def legacy_bytes_fixture():
    """Scenario A exactly as a real legacy file stores it."""
    return SCENARIO_A_BYTES


@pytest.fixture(name="write_otl")
def write_otl_fixture(tmp_path):
    """Write encoded bytes to tmp_path/<name> and return the path."""
    def _write(name: str, data: bytes):
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _write
