"""Text helpers for deterministic, one-line-per-headline output"""

import re


_CONTROL = re.compile(r"[\x00-\x1f\x7f-\x9f\\]")


def escape_controls(text: str) -> str:
    """Escape C0/C1 control codes and DEL as \\xNN (and backslash as \\\\) so text fits on one line."""
    return _CONTROL.sub(lambda m: "\\\\" if m.group() == "\\" else f"\\x{ord(m.group()):02x}", text)


def split_lines(text: str, keepends: bool = False) -> list[str]:
    """Split on \\n only; str.splitlines would also break on NEL, form feed and friends."""
    lines = text.split("\n")
    tail = lines.pop()
    if keepends:
        lines = [f"{line}\n" for line in lines]
    if tail:
        lines.append(tail)
    return lines
