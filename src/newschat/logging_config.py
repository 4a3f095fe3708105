"""Logging setup for command-line runs.

Core modules only create module loggers; handlers are installed here
(rich console output) or by the TUI (log panel).
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(name)s: %(message)s"


def setup_logging(level: str | None = None, console: Console | None = None) -> None:
    """Install a RichHandler on the ``newschat`` logger.

    Args:
        level: Level name (debug/info/warning/error). None keeps warnings only.
        console: Console to write to (defaults to stderr)
    """
    logger = logging.getLogger("newschat")
    logger.setLevel((level or "warning").upper())

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
