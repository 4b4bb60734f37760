"""Logging setup shared by the CLI and library entry points."""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "codecontext"
_CONSOLE_FORMAT = "[codecontext] %(levelname)s %(message)s"
# Parsing runs on a thread pool, so the file sink records which worker logged.
_FILE_FORMAT = "%(asctime)s %(threadName)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``codecontext.<name>``, or the package logger when ``name`` is empty."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def _level_for(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route codecontext logs to stderr and, optionally, to ``log_file``.

    ``verbose`` wins over ``quiet``. The file sink always records DEBUG so a
    quiet console run still leaves a full trace behind.
    """
    console_level = _level_for(verbose, quiet)
    logger = get_logger()
    logger.propagate = False

    # Repeated calls in one process replace the previous handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is None:
        logger.setLevel(console_level)
        return logger

    log_file.parent.mkdir(parents=True, exist_ok=True)
    sink = logging.FileHandler(log_file, encoding="utf-8")
    sink.setLevel(logging.DEBUG)
    sink.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(sink)
    logger.setLevel(logging.DEBUG)
    return logger


__all__ = ["configure_logging", "get_logger"]
