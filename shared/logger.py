"""Logging setup shared by all tools."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_ROOT = "tools"


def setup_logger(name: str, level: str = "INFO", console: Optional[Console] = None) -> logging.Logger:
    """
    Configure logging for a tool entry point.

    Installs a single rich handler (stderr) on the package root logger so
    every module logger obtained through get_logger() shares it.

    Args:
        name: Name of the calling module
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        console: Console to log to (stderr if not given)

    Returns:
        Logger for ``name``
    """
    root = logging.getLogger(_ROOT)
    root.setLevel(level.upper())

    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        root.addHandler(handler)
        root.propagate = False

    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""
    return logging.getLogger(name)
