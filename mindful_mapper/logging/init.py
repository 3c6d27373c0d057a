from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Application logging: one labeled handler on the ``mindful_mapper`` logger.

Output lines look like ``INFO read 3 rows from products.xlsx`` or
``SUMMARY Successfully imported ...``. The CLI writes to stdout; ``serve``
passes stderr since stdout carries the MCP protocol stream. Module loggers
(``logging.getLogger(__name__)``) propagate to this handler.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "setup_logging",
]

LOGGER_NAME = "mindful_mapper"
SUMMARY_LEVEL = 25  # INFO < SUMMARY < WARNING

_LABELS = {
    "WARNING": "WARN",
}


class LabeledFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelname, record.levelname)
        text = f"{label} {record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def _own_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h.formatter, LabeledFormatter)]


def setup_logging(stream: TextIO | None = None, level: int = logging.INFO) -> logging.Logger:
    """Install the labeled handler once and return the application logger.

    ``stream`` defaults to the current ``sys.stdout``. Calling again while a
    handler is installed is a no-op, so the first caller decides the stream.
    """
    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    if _own_handlers(logger):
        return logger

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(LabeledFormatter())
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def set_debug(logger: logging.Logger | None = None) -> None:
    logger = logger or get_logger()
    logger.setLevel(logging.DEBUG)
    for h in _own_handlers(logger):
        h.setLevel(logging.DEBUG)


def get_logger() -> logging.Logger:
    return setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Remove the labeled handler (tests re-install it against captured streams)."""
    logger = logging.getLogger(LOGGER_NAME)
    for h in _own_handlers(logger):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
