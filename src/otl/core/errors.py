"""Decode error taxonomy; every error carries the byte offset where decoding stopped"""


class DecodeError(Exception):
    """Base class for fatal decode failures."""
    kind = "DecodeError"

    def __init__(self, offset: int, detail: str):
        self.offset = offset
        self.detail = detail
        super().__init__(f"{self.kind} at offset {offset}: {detail}")


class TruncatedInput(DecodeError):
    """Buffer ended before a declared field or record completed."""
    kind = "TruncatedInput"

    def __init__(self, offset: int, needed: int, available: int, what: str = "field"):
        self.needed = needed
        self.available = available
        super().__init__(offset, f"{what} needs {needed} byte(s), {available} available")


class DeclaredLimitExceeded(DecodeError):
    """Headline count or character volume goes past a hard ceiling."""
    kind = "DeclaredLimitExceeded"

    def __init__(self, offset: int, what: str, declared: int, limit: int):
        self.declared = declared
        self.limit = limit
        super().__init__(offset, f"{what} declared {declared}, limit {limit}")


class InconsistentLength(DecodeError):
    """A length field cannot be reconciled with the remaining buffer."""
    kind = "InconsistentLength"

    def __init__(self, offset: int, declared: int, available: int, what: str = "run"):
        self.declared = declared
        self.available = available
        super().__init__(offset, f"{what} length {declared} exceeds {available} byte(s) before end of file")


class BadMagic(DecodeError):
    kind = "BadMagic"


class MalformedRecord(DecodeError):
    kind = "MalformedRecord"
