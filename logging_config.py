"""
Logging Configuration

Centralized logging configuration for the Satellite Eye project.
All modules should use this logger for consistent output.

Usage:
    from logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Satellite propagated successfully")
    logger.warning("TLE checksum mismatch")
    logger.error("Propagation failed")

The default level can be set with the ``SATEYE_LOG_LEVEL`` environment
variable (e.g. ``DEBUG``, ``WARNING``).
"""

import logging
import os
import sys
from typing import Optional

# Default logging format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def level_from_env(default: int = logging.INFO) -> int:
    """
    Resolve the logging level from ``SATEYE_LOG_LEVEL``.

    Parameters
    ----------
    default : int
        Level used when the variable is unset or not a known level name.

    Returns
    -------
    int
        Logging level
    """
    name = os.getenv("SATEYE_LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(level: Optional[int] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the entire application.

    Parameters
    ----------
    level : int, optional
        Logging level (e.g., logging.DEBUG, logging.INFO). Defaults to the
        ``SATEYE_LOG_LEVEL`` environment variable, then INFO.
    log_file : str, optional
        Path to log file. If None, logs only to console.

    Notes
    -----
    Handlers are only installed when the root logger has none, so an
    application that already configured logging keeps its handlers. An
    explicit ``level`` is still applied to the root logger.
    """
    explicit = level is not None
    if not explicit:
        level = level_from_env()

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
    )
    if explicit:
        logging.getLogger().setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Parameters
    ----------
    name : str
        Name of the logger (typically __name__)

    Returns
    -------
    logging.Logger
        Configured logger instance
    """
    return logging.getLogger(name)


# Configure default logging on module import
configure_logging()
