"""Bounds-checked sequential reader and the pinned legacy .OTL byte layout.

Every byte-layout constant lives here. The decoder consults these names and
never hard-codes markers or bit positions itself.

Layout, as the legacy outliner writes it (little-endian)::

    magic     1A 93 1A
    preamble  FF 00 hhhh oooo       cursor headline, offset as i16; -1 = none
    record    text FF               printable ASCII, 0xFF-terminated
              attr:u8 fold:u8 FF    fold FF expanded, FE collapsed
              delta:i16             level change from the previous record
              [len:u16 body]        note, present when attr & 0x80
    trailer   FF FF 1A

Non-text bytes between records are skipped.
"""

import struct
from typing import Callable

from otl.core.errors import InconsistentLength, TruncatedInput


MAGIC = b"\x1a\x93\x1a"
PREAMBLE_TAG = b"\xff\x00"
NO_CURSOR = -1
TRAILER = b"\xff\xff\x1a"

TEXT_END = 0xFF
MARK_TAIL = 0xFF

# record attribute bits (observed in real files)
A_NOTE = 0x80
A_MARKED = 0x20
A_NEXT_SIBLING = 0x08
A_KNOWN = A_NOTE | A_MARKED | A_NEXT_SIBLING

# fold markers
M_EXPANDED = 0xFF
M_COLLAPSED = 0xFE

# character decodings for text and note bytes; structure never depends on them
ENCODINGS = ("latin1", "utf8", "ascii")
DEFAULT_ENCODING = "latin1"

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")


def is_text_byte(b: int) -> bool:
    """Headline text is printable ASCII."""
    return 0x20 <= b <= 0x7E


def decode_chars(raw: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    """Turn stored bytes into characters: latin1 1:1, utf8 lossy, ascii with the high bit cleared."""
    if encoding == "latin1":
        return raw.decode("latin-1")
    if encoding == "utf8":
        return raw.decode("utf-8", errors="replace")
    if encoding == "ascii":
        return bytes(b & 0x7F for b in raw).decode("ascii")
    raise ValueError(f"Unknown encoding: {encoding!r} (expected one of {', '.join(ENCODINGS)})")


class ByteReader:
    """Sequential reader over a fixed buffer; no read ever passes the end.

    When the buffer ends with the trailer, the trailer is held back: reads
    stop in front of it and the file counts as sealed.
    """

    def __init__(self, buf: bytes):
        self._buf = bytes(buf)
        self._pos = 0
        self._sealed = self._buf.endswith(TRAILER)
        self._end = len(self._buf) - len(TRAILER) if self._sealed else len(self._buf)

    @property
    def offset(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    @property
    def sealed(self) -> bool:
        """True when the buffer ends with the legacy end-of-file trailer."""
        return self._sealed

    def __len__(self) -> int:
        return len(self._buf)

    def at_end(self) -> bool:
        return self._pos >= self._end

    def _take(self, n: int, what: str) -> bytes:
        if n > self.remaining:
            raise TruncatedInput(self._pos, n, self.remaining, what)
        chunk = self._buf[self._pos:self._pos + n]
        self._pos += n
        return chunk

    def peek(self, n: int) -> bytes:
        """Return up to n bytes without advancing."""
        return self._buf[self._pos:min(self._pos + n, self._end)]

    def raw(self, n: int, what: str = "bytes") -> bytes:
        return self._take(n, what)

    def u8(self, what: str = "u8") -> int:
        return _U8.unpack(self._take(_U8.size, what))[0]

    def u16(self, what: str = "u16") -> int:
        return _U16.unpack(self._take(_U16.size, what))[0]

    def i16(self, what: str = "i16") -> int:
        return _I16.unpack(self._take(_I16.size, what))[0]

    def expect(self, sig: bytes, what: str = "signature") -> bool:
        """Consume sig if the buffer continues with it; False leaves the cursor alone."""
        if self.remaining < len(sig):
            raise TruncatedInput(self._pos, len(sig), self.remaining, what)
        if self.peek(len(sig)) != sig:
            return False
        self._pos += len(sig)
        return True

    def skip_until(self, pred: Callable[[int], bool]) -> int:
        """Advance to the next byte satisfying pred (or the end); return how many were skipped."""
        start = self._pos
        while self._pos < self._end and not pred(self._buf[self._pos]):
            self._pos += 1
        return self._pos - start

    def take_while(self, pred: Callable[[int], bool]) -> bytes:
        start = self._pos
        while self._pos < self._end and pred(self._buf[self._pos]):
            self._pos += 1
        return self._buf[start:self._pos]

    def run(self, length: int, what: str = "run") -> bytes:
        """Read a byte run whose length prefix was already consumed.

        A sealed file was not cut short, so overrunning it means the length
        field is wrong rather than the file truncated.
        """
        if length > self.remaining and self._sealed:
            raise InconsistentLength(self._pos, length, self.remaining, what)
        return self._take(length, what)
