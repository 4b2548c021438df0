"""Logger hierarchy shared by the classifier, detectors and evidence stages."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "surfacemap"
CONSOLE_FORMAT = "[surfacemap] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``surfacemap.<name>``, or the package logger itself when unnamed."""
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Send surfacemap records to stderr and, optionally, to ``log_file``.

    Calling this again replaces the previously installed handlers, so a
    process that scans several repositories does not print lines twice.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = get_logger()
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(_handler(logging.StreamHandler(), level, CONSOLE_FORMAT))
    if log_file is not None:
        logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT))
    return logger


__all__ = ["configure_logging", "get_logger"]
