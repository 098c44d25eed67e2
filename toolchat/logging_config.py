"""
Logging configuration.

Diagnostics go to stderr through rich; conversation output is printed by
the terminal UI and never goes through logging.

Usage:
    from toolchat.logging_config import setup_logging
    setup_logging(logging.DEBUG)
    logger = logging.getLogger(__name__)
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def setup_logging(level: int = logging.WARNING, log_file: Optional[Path] = None) -> None:
    """Configure application logging."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_file else level)
    handler.setLevel(level)
    root.handlers = [handler]

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("mcp").setLevel(logging.WARNING)


def level_from_name(name: Optional[str], default: int = logging.WARNING) -> int:
    """Map a settings string like 'info' to a logging level."""
    if not name:
        return default
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default
