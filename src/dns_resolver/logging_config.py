"""Logging setup for the command-line and web front-ends."""

import logging

from rich.console import Console
from rich.logging import RichHandler


_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
}


def level_for(verbosity: int) -> int:
    """Map a ``-v`` count to a logging level (two or more is DEBUG)."""
    return _LEVELS.get(verbosity, logging.DEBUG if verbosity > 1 else logging.WARNING)


def init_logging(verbosity: int = 0) -> None:
    """
    Configure the root logger with a single rich handler on stderr.

    Existing root handlers are replaced so repeated calls do not
    duplicate output.

    Args:
        verbosity: 0 for warnings, 1 for info, 2 or more for debug
    """
    root = logging.getLogger()
    root.setLevel(level_for(verbosity))

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbosity > 1,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s", datefmt="[%X]"))
    root.addHandler(handler)

    logging.captureWarnings(True)
