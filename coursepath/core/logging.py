"""
Loguru sink configuration.

Call configure_logging() once from an entry point (CLI, app startup).
Library code only does ``from loguru import logger``.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from config import get_settings

_CONSOLE_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Replace the default loguru handler with stderr + optional file sinks."""
    settings = get_settings()
    level = level or settings.log_level
    log_file = log_file if log_file is not None else settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            format=_FILE_FORMAT,
            rotation="10 MB",
            retention="14 days",
            encoding="utf-8",
        )
