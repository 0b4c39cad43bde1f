"""PromiseMock - a synchronous, deterministic promise double for tests."""

from .promise import PromiseMock
from .core import (
    PromiseState,
    SettlementCell,
    ContinuationRecord,
    RecordKind,
    ExceptionClassifier,
    Thenable,
    HasFinally,
)
from .engine import ResolutionEngine, get_default_engine
from .combinators import all_of, race_of
from .exceptions import (
    PromiseMockError,
    AlreadySettledError,
    InvalidArgumentError,
    ChainingCycleError,
    ConfigurationError,
)
from .config import (
    PromiseMockConfig,
    load_config_from_file,
    load_config_from_env,
    apply_config,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Cell
    "PromiseMock",
    "PromiseState",
    "SettlementCell",
    "ContinuationRecord",
    "RecordKind",
    "Thenable",
    "HasFinally",
    # Engine
    "ResolutionEngine",
    "ExceptionClassifier",
    "get_default_engine",
    # Combinators
    "all_of",
    "race_of",
    # Errors
    "PromiseMockError",
    "AlreadySettledError",
    "InvalidArgumentError",
    "ChainingCycleError",
    "ConfigurationError",
    # Config
    "PromiseMockConfig",
    "load_config_from_file",
    "load_config_from_env",
    "apply_config",
]
