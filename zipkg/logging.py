"""
Logging utilities for zipkg.

Provides a centralized logging configuration for the package. Modules log
through logging.getLogger(__name__), which places them under the "zipkg"
logger configured here.
"""

import logging
import sys
from typing import TextIO

_root_logger = logging.getLogger("zipkg")


def setup_logging(
    level: str | int = "WARNING",
    format: str | None = None,
    stream: TextIO | None = None,
    file: str | None = None,
) -> None:
    """
    Configure logging for zipkg.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR) or int
        format: Custom log format string
        stream: Output stream (defaults to stderr)
        file: Optional file path to write logs

    Example:
        from zipkg.logging import setup_logging

        setup_logging("DEBUG", file="zipkg.log")
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    _root_logger.setLevel(level)
    _root_logger.handlers.clear()

    if format is None:
        format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    formatter = logging.Formatter(format)

    stream_handler = logging.StreamHandler(stream or sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(level)
    _root_logger.addHandler(stream_handler)

    if file:
        file_handler = logging.FileHandler(file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        _root_logger.addHandler(file_handler)

