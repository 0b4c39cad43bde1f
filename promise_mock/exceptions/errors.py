"""
PromiseMock Exception Definitions

Error types raised synchronously for programmer misuse. Failures inside
user handlers never use these types directly; they flow through the
rejection model instead.
"""

from typing import Any, Dict, Optional


class PromiseMockError(Exception):
    """PromiseMock base exception"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AlreadySettledError(PromiseMockError):
    """
    Settlement error

    Raised when resolve or reject is called on a cell that is no longer
    pending
    """

    pass


class InvalidArgumentError(PromiseMockError, ValueError):
    """
    Invalid argument error

    Raised for a missing or non-iterable combinator argument, a
    non-callable handler, or an exception kind list holding non-exception
    objects
    """

    pass


class ChainingCycleError(PromiseMockError, TypeError):
    """
    Chaining cycle error

    Used as the rejection reason when a handler returns the very cell it
    was supposed to settle
    """

    pass


class ConfigurationError(PromiseMockError):
    """
    Configuration error

    Raised for unreadable configuration files or exception type names that
    cannot be imported
    """

    pass
