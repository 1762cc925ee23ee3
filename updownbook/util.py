"""Logging setup for the updownbook console application."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Transport libraries that log every frame at DEBUG
NOISY_LOGGERS = ("websockets", "aiohttp")


def setup_logging(
    name: str = "updownbook",
    level: str = "INFO",
    format_str: Optional[str] = None,
) -> logging.Logger:
    """
    Configure root logging and return the package logger.

    Log records go to stderr; stdout carries the rewritten status line.
    Transport libraries are capped at WARNING unless level is DEBUG.

    Args:
        name: Logger name to return
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_str: Optional custom format string
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        level=numeric_level,
        format=format_str or LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    transport_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(transport_level)

    return logging.getLogger(name)
