"""Centralized logging configuration."""

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Standard output carries the rendered status line, so console
    logging goes to standard error.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        format_string: Optional custom format string

    Returns:
        Configured package logger
    """
    if not format_string:
        format_string = DEFAULT_FORMAT

    logger = logging.getLogger("statusline")
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    # Drop handlers from a previous call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
        except OSError as e:
            logger.warning(f"Cannot open log file {log_path}: {e}")
        else:
            file_handler.setFormatter(logging.Formatter(format_string))
            logger.addHandler(file_handler)

    return logger
