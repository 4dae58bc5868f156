from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Console logging for webvisionsheet.

Lines look like ``LABEL message`` (INFO, WARN, ERROR, DEBUG, SUMMARY) so a run
can be grepped and its closing SUMMARY line parsed by scripts. Modules log
through ``logging.getLogger(__name__)``, which places them below the
``webvisionsheet`` logger set up here; nothing reaches the root logger.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "set_debug",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "webvisionsheet"

# Sits between INFO (20) and WARNING (30): shown at the default level
SUMMARY_LEVEL = 25

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_app_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``, followed by the traceback when one is attached."""

    def format(self, record: logging.LogRecord) -> str:
        line = f"{_LABELS.get(record.levelno, record.levelname)} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _console_handler(stream: TextIO, level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    return handler


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled console handler to the app logger.

    Only the first call configures anything; later calls return the same
    logger untouched until ``reset_logging()`` is called.

    Args:
        level: Threshold for both the logger and its handler
        stream: Output stream, stdout by default
    """
    global _app_logger
    if _app_logger is not None:
        return _app_logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    app_logger = logging.getLogger(LOGGER_NAME)
    # drop handlers left over from an earlier setup (tests call reset_logging)
    for old in list(app_logger.handlers):
        app_logger.removeHandler(old)
    app_logger.addHandler(_console_handler(stream or sys.stdout, level))
    app_logger.setLevel(level)
    app_logger.propagate = False

    _app_logger = app_logger
    return app_logger


def get_logger() -> logging.Logger:
    """The app logger, set up with defaults on first use."""
    return _app_logger or setup_logging()


def set_debug(logger: logging.Logger) -> None:
    """Switch ``logger`` and its handlers to DEBUG (``--debug``)."""
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)


def log_summary(message: str) -> None:
    """Emit ``message`` as the run's SUMMARY line."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger so the next setup starts over (tests)."""
    global _app_logger
    _app_logger = None
