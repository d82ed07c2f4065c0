import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_console: Optional[Console] = None


class CenteredFormatter(logging.Formatter):
    """Pads logger names to the widest one seen so far so messages line up."""

    width = 14

    def format(self, record):
        CenteredFormatter.width = max(CenteredFormatter.width, len(record.name))
        record.name = record.name.center(CenteredFormatter.width)
        return super().format(record)


def _get_console() -> Console:
    # the TUI owns stdout, so PODSTORE_LOG_FILE lets logs go somewhere readable
    global _console
    if _console is None:
        log_file = os.getenv("PODSTORE_LOG_FILE")
        if log_file:
            _console = Console(file=open(log_file, "a", encoding="utf-8"), width=120)
        else:
            _console = Console(stderr=True)
    return _console


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger that renders through rich. DEBUG level when the DEBUG
    env var is set, INFO otherwise.
    """
    name = name or "podstore"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=_get_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(CenteredFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)
        logger.propagate = False

    return logger
