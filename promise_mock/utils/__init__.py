"""Utility helpers"""

from .descriptors import dualmethod
from .logging import configure_logging, get_logger

__all__ = ["dualmethod", "configure_logging", "get_logger"]
