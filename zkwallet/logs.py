# zkwallet/logs.py
import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING") -> None:
    """Route all zkwallet loggers to stderr through rich, leaving stdout for command output."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    root = logging.getLogger("zkwallet")
    root.handlers = []  # avoid duplicates if called twice
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
