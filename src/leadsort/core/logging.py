from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} [{level}] {name}: {message}"


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to stderr at ``level``.

    stdout is reserved for the run summary.
    """
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper())
