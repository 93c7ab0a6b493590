"""Logging configuration helpers for lexido."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "lexido"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _close_handlers(logger: logging.Logger) -> None:
    """Detach and close all handlers currently bound to the logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(*, log_file: Path | None, verbose: bool) -> logging.Logger:
    """Configure lexido logging for one CLI run and return the logger.

    With ``log_file`` the file is truncated so each run has an isolated log
    history. Without it, records go to stderr through rich so they never mix
    with the streamed answer on stdout; only warnings are shown unless
    ``verbose`` is set.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    _close_handlers(logger)

    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    logger.propagate = False
    handler: logging.Handler
    if log_file is not None:
        log_path = log_file.expanduser().resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handler.setLevel(level)
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.addHandler(handler)
    return logger


def get_logger() -> logging.Logger:
    """Return the lexido logger (configured or with null handler)."""
    logger = logging.getLogger(_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
