"""Logging utilities."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "WARNING") -> None:
    """Send log records to stderr through a single RichHandler.

    Standard output is reserved for command results, so the handler never
    writes there. Calling this again only updates the level.
    """
    root = logging.getLogger()
    root.setLevel(level)
    if any(isinstance(h, RichHandler) for h in root.handlers):
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
