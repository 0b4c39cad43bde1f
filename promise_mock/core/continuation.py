"""
Continuation records

A record is created for every success/catch/then/finally_ registration and
fired exactly once when its parent cell settles
"""

from enum import Enum
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from .state import PromiseState
from ..exceptions.errors import InvalidArgumentError


class RecordKind(str, Enum):
    """Registration kind of a continuation record"""

    SUCCESS = "success"
    CATCH = "catch"
    THEN = "then"
    FINALLY = "finally"
    # Internal: child adopting the outcome of a cell returned by a handler
    ADOPT = "adopt"


class ContinuationRecord(BaseModel):
    """
    Continuation record

    Holds the handlers of one registration and the child cell handed back
    to the caller. Only THEN and ADOPT records forward an unmatched branch
    to their child; a SUCCESS record on a rejected parent (and a CATCH
    record on a fulfilled one) leaves its child pending forever.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    kind: RecordKind
    child: Any
    on_fulfilled: Optional[Callable[[Any], Any]] = None
    on_rejected: Optional[Callable[[Any], Any]] = None
    on_finally: Optional[Callable[[], Any]] = None

    @property
    def is_finally(self) -> bool:
        return self.kind is RecordKind.FINALLY

    @property
    def passes_through(self) -> bool:
        return self.kind in (RecordKind.THEN, RecordKind.ADOPT)

    def handler_for(self, state: PromiseState) -> Optional[Callable[[Any], Any]]:
        """Get the handler matching a settled branch, if any"""
        if state is PromiseState.FULFILLED:
            return self.on_fulfilled
        if state is PromiseState.REJECTED:
            return self.on_rejected
        return None


def create_record(kind: RecordKind, child: Any, **handlers: Any) -> ContinuationRecord:
    """
    Build a record, reporting non-callable handlers as InvalidArgumentError

    Args:
        kind: Registration kind
        child: Child cell owned by the record
        **handlers: on_fulfilled / on_rejected / on_finally

    Returns:
        Validated continuation record
    """
    try:
        return ContinuationRecord(kind=kind, child=child, **handlers)
    except ValidationError as e:
        bad_fields = [".".join(str(loc) for loc in err["loc"]) for err in e.errors()]
        raise InvalidArgumentError(
            f"Handlers passed to {kind.value}() must be callable",
            {"fields": bad_fields},
        ) from e


class ContinuationRegistry:
    """
    Ordered, append-only list of records owned by one cell

    drain() hands the whole list over and empties the registry in one step,
    so firing never iterates a list that is still being appended to.
    """

    def __init__(self):
        self._records: List[ContinuationRecord] = []

    def append(self, record: ContinuationRecord) -> None:
        self._records.append(record)

    def drain(self) -> List[ContinuationRecord]:
        records, self._records = self._records, []
        return records

    def __len__(self) -> int:
        return len(self._records)
