"""
Logging Utilities

The package logs through standard library loggers named after each module
and never installs handlers on import. configure_logging() is provided for
test suites that want to see the settlement trace.
"""

import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PACKAGE_LOGGER = "promise_mock"


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the package logger

    Args:
        name: Component name, e.g. "engine" or "promise_mock.engine"

    Returns:
        Logger instance
    """
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(level: str = "INFO", format_string: Optional[str] = None) -> None:
    """
    Configure logging for PromiseMock components

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string
    """
    numeric_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric_level)
