"""PromiseMock exception module

Provides all exception classes raised by the package
"""

from .errors import (
    PromiseMockError,
    AlreadySettledError,
    InvalidArgumentError,
    ChainingCycleError,
    ConfigurationError,
)

__all__ = [
    "PromiseMockError",
    "AlreadySettledError",
    "InvalidArgumentError",
    "ChainingCycleError",
    "ConfigurationError",
]
