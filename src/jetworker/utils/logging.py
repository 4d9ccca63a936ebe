# src/jetworker/utils/logging.py
"""
Logging setup for jetworker.

Library modules log through loguru's ``logger`` directly; only entry points
(the CLI, scripts) install sinks via ``setup_logging``.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {process} | {name}:{function}:{line} | {message}"


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure loguru sinks.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to
            the configured ``logging.level``.
        log_file: Optional file path; adds a rotating file sink.
    """
    if level is None:
        from ..settings import DEFAULT_LOG_LEVEL

        level = DEFAULT_LOG_LEVEL
    level = level.upper()

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=level,
            rotation="100 MB",
            retention=5,
            enqueue=True,  # Thread-safe
        )

    logger.debug(f"Logging configured with level {level}")
