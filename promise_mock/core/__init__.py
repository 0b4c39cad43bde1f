"""PromiseMock core data model"""

from .state import PromiseState
from .cell import SettlementCell
from .continuation import (
    RecordKind,
    ContinuationRecord,
    ContinuationRegistry,
    create_record,
)
from .classifier import ExceptionClassifier
from .protocols import Thenable, HasFinally, is_thenable, get_finally_hook

__all__ = [
    # State
    "PromiseState",
    # Cell
    "SettlementCell",
    # Continuations
    "RecordKind",
    "ContinuationRecord",
    "ContinuationRegistry",
    "create_record",
    # Classification
    "ExceptionClassifier",
    # Protocols
    "Thenable",
    "HasFinally",
    "is_thenable",
    "get_finally_hook",
]
