"""Tests for codecontext.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from codecontext.logging import configure_logging, get_logger


def test_get_logger_nests_under_package() -> None:
    assert get_logger("graph").name == "codecontext.graph"
    assert get_logger().name == "codecontext"


def test_configure_logging_levels() -> None:
    assert configure_logging().level == logging.INFO
    assert configure_logging(quiet=True).level == logging.WARNING
    assert configure_logging(verbose=True, quiet=True).level == logging.DEBUG


def test_configure_logging_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging()

    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_configure_logging_file_sink_records_debug(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    logger = configure_logging(quiet=True, log_file=log_file)

    get_logger("pipeline").debug("parsed %d files", 3)
    for handler in logger.handlers:
        handler.flush()

    assert logger.handlers[0].level == logging.WARNING
    text = log_file.read_text(encoding="utf-8")
    assert "DEBUG codecontext.pipeline: parsed 3 files" in text
    configure_logging()
