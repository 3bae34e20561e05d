"""Logging setup: a rotating log file in the data directory, plus warnings on stderr for the CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

from .paths import ensure_app_structure, log_path

if TYPE_CHECKING:  # pragma: no cover
    from .settings import Settings

LOGGER_NAME = "support_hours"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(event)s] %(message)s"
DEFAULT_LOG_LEVEL = logging.INFO
CONSOLE_LEVEL = logging.WARNING
LOG_MAX_BYTES = 2_000_000
LOG_BACKUPS = 3

_configured = False


class _EventDefault(logging.Filter):
    """Give records without an ``event`` extra a placeholder so the file format never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "event"):
            record.event = "-"
        return True


class _NoTracebacks(logging.Filter):
    """Tracebacks belong in the log file, not on the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.exc_info is None


def file_handler() -> logging.Handler:
    handler = RotatingFileHandler(
        log_path(), maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8", delay=True
    )
    handler.addFilter(_EventDefault())
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def console_handler() -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        level=CONSOLE_LEVEL,
        show_time=False,
        show_path=False,
    )
    handler.addFilter(_NoTracebacks())
    return handler


def configure_logging(level: int | str = DEFAULT_LOG_LEVEL, *, console: bool = False) -> logging.Logger:
    """Attach handlers to the ``support_hours`` logger once; later calls only adjust the level."""
    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if _configured:
        return logger

    ensure_app_structure()
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(file_handler())
    if console:
        logger.addHandler(console_handler())
    logging.captureWarnings(True)

    _configured = True
    logger.debug(
        "Logging initialized",
        extra={"event": "logging_configured", "level": logging.getLevelName(logger.level), "console": console},
    )
    return logger


def configure_from_settings(settings: "Settings", *, console: bool = False) -> logging.Logger:
    return configure_logging(settings.log_level, console=console)


def reset_logging() -> None:
    """Close and detach every handler so the next ``configure_logging`` starts fresh."""
    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        try:
            handler.close()
        finally:
            logger.removeHandler(handler)
    _configured = False
