"""
Logging configuration for the menu engine.

Usage:
    from menu_engine.logging_config import setup_logging
    setup_logging()  # Call once at host startup

Environment variables:
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: INFO)

Engine modules only create loggers with logging.getLogger(__name__) and never
attach handlers. Hosts that already configure logging can skip this and tune
the "menu_engine" logger directly.
"""
import logging
import os
import sys

PACKAGE_LOGGER = "menu_engine"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: str | int | None = None) -> int:
    """
    Turn a level name or number into a logging level.

    None reads LOG_LEVEL from the environment. Unrecognized names give INFO.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(str(level).strip().upper())
    # getLevelName returns "Level <name>" for names it does not know
    return numeric if isinstance(numeric, int) else logging.INFO


def setup_logging(level: str | int | None = None) -> int:
    """
    Configure logging for the engine.

    Adds a stdout handler on the root logger when the host has none, and sets
    the engine's package logger to the resolved level.

    Args:
        level: Level name or number. Defaults to the LOG_LEVEL env var.

    Returns:
        The numeric level applied to the package logger
    """
    numeric_level = resolve_level(level)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric_level)

    logging.getLogger(__name__).debug(
        "Logging configured at %s level", logging.getLevelName(numeric_level)
    )
    return numeric_level
