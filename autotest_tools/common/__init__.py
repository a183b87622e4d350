"""
================================================================================
Autotest Tools Common Utilities
================================================================================

Shared logging setup and filesystem helpers for the UI automation suite.

Exports:
    - init_logger: Initialize loguru with the standard console/file sinks
    - reset_logger: Drop the sinks added by init_logger (tests only)
    - ensure_directory: Create a directory if it does not exist

Usage:
    from autotest_tools.common import init_logger

    init_logger(level="DEBUG", log_file="test-output/logs/automation.log")

================================================================================
"""

import logging
import os
import sys
from typing import Optional

from loguru import logger

# ============================================================
# Logging Setup
# ============================================================

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{thread.name}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Third-party loggers that are chatty at INFO (stdlib logging)
NOISY_LOGGERS = ("selenium", "urllib3", "WDM")

_logger_initialized = False


def init_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Safe to call more than once; only the first call configures sinks.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL or INFO.
        format_string: Log format string. Uses default if not provided.
        log_file: Optional file path to write logs to.
        rotation: Size or age at which the log file is rotated.
        retention: How long rotated files are kept.

    Example:
        init_logger()  # Use defaults
        init_logger(level="DEBUG", log_file="test-output/logs/automation.log")
    """
    global _logger_initialized

    if _logger_initialized:
        return

    # Remove default handler
    logger.remove()

    level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    format_string = format_string or DEFAULT_FORMAT

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
        enqueue=True,
    )

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            ensure_directory(log_dir)

        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=rotation,
            retention=retention,
            enqueue=True,
        )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logger_initialized = True
    logger.debug(f"Logger initialized successfully (level={level}, file={log_file})")


def reset_logger() -> None:
    """Remove all loguru sinks and allow init_logger to run again."""
    global _logger_initialized
    logger.remove()
    _logger_initialized = False


# ============================================================
# Common Utilities
# ============================================================

def ensure_directory(path: str) -> str:
    """
    Ensures a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        The path (for chaining)
    """
    os.makedirs(path, exist_ok=True)
    return path


# Export public API
__all__ = [
    "init_logger",
    "reset_logger",
    "ensure_directory",
]
