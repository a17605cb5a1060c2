"""
Logging Configuration for Video Dataset Capture

Every module logs through a cached logger with one stdout handler. The CLI
adjusts verbosity for all of them at once and can mirror them to a file.

Usage:
    from video_dataset.common.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Capture started")
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Module-level cache for loggers
_loggers: dict[str, logging.Logger] = {}


def _formatter() -> logging.Formatter:
    return logging.Formatter(fmt=DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)


def _targets(name: Optional[str]) -> List[logging.Logger]:
    if name is None:
        return list(_loggers.values())
    return [_loggers[name]] if name in _loggers else []


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get or create a logger writing to stdout.

    Args:
        name: Logger name, typically __name__ of the calling module
        level: Logging level for a newly created logger

    Returns:
        Configured logging.Logger instance
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(_formatter())
        logger.addHandler(console_handler)

        logger.propagate = False

    _loggers[name] = logger
    return logger


def set_log_level(level: int, name: Optional[str] = None) -> None:
    """
    Set the log level for one cached logger, or for all of them.

    Args:
        level: New logging level
        name: Logger name; None applies the level to every cached logger
    """
    for logger in _targets(name):
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


def add_file_handler(
    log_file: Path,
    name: Optional[str] = None,
    level: int = logging.DEBUG,
) -> logging.FileHandler:
    """
    Mirror one cached logger, or all of them, to a log file.

    Args:
        log_file: Path to log file; parent directories are created
        name: Logger name; None attaches the file to every cached logger
        level: File logging level

    Returns:
        The shared file handler, so the caller can remove and close it
    """
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(_formatter())

    for logger in _targets(name):
        logger.addHandler(file_handler)
    return file_handler


def remove_handler(handler: logging.Handler) -> None:
    """Detach a handler from every cached logger and close it."""
    for logger in _loggers.values():
        if handler in logger.handlers:
            logger.removeHandler(handler)
    handler.close()
