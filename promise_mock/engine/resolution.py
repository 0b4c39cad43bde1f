"""
Resolution Engine

Fires continuation records when a cell settles, or immediately when a
record is registered against a cell that has already settled. Handler
results are adapted (plain value, returned cell, foreign thenable) and
handler exceptions are either captured as rejections or re-raised,
depending on the exception classifier.

Work is kept on an explicit work list drained iteratively. A settled
child's records are pushed to the front of the list, so the cascade runs
depth-first (a child's continuations fire before its parent's next
record) while the call stack stays flat regardless of chain length.
Signals arriving from thenables or finally hooks while a drain is running
are committed onto that same work list instead of starting a nested drain.
"""

from collections import deque
from typing import Any, Callable, Deque, List, Optional, Tuple
import logging

from ..core.cell import SettlementCell
from ..core.classifier import ExceptionClassifier
from ..core.continuation import ContinuationRecord, RecordKind, create_record
from ..core.protocols import get_finally_hook, is_thenable
from ..core.state import PromiseState
from ..exceptions.errors import ChainingCycleError

logger = logging.getLogger(__name__)

WorkItem = Tuple[ContinuationRecord, PromiseState, Any]


class ResolutionEngine:
    """
    Continuation firing engine

    Every public entry point (settle, register, run_executor) drains the
    work it creates before returning, so all firing is complete by the
    time control goes back to the caller.
    """

    def __init__(self, classifier: Optional[ExceptionClassifier] = None):
        """
        Initialize the engine

        Args:
            classifier: Registry of exception kinds that must escape
                handlers; a fresh empty registry when omitted
        """
        self.classifier = classifier if classifier is not None else ExceptionClassifier()
        # Work list of the innermost drain in progress, None when idle
        self._active: Optional[Deque[WorkItem]] = None

    def settle(self, cell: SettlementCell, state: PromiseState, payload: Any) -> None:
        """
        Settle a cell and fire its continuations

        Raises:
            AlreadySettledError: If the cell is not pending
        """
        queue: Deque[WorkItem] = deque()
        self._commit(cell, state, payload, queue, strict=True)
        self._drain(queue)

    def settle_once(self, cell: SettlementCell, state: PromiseState, payload: Any) -> bool:
        """
        Settle a cell unless it already settled

        Used for signals coming back from thenables and finally hooks.
        During a drain the settlement joins the running work list.

        Returns:
            True if this call settled the cell
        """
        if not cell.is_pending():
            logger.debug(f"Ignoring late {state.value} signal for {cell!r}")
            return False

        if self._active is not None:
            self._commit(cell, state, payload, self._active)
        else:
            self.settle(cell, state, payload)
        return True

    def register(self, cell: SettlementCell, record: ContinuationRecord) -> Any:
        """
        Register a continuation record on a cell

        Pending cells queue the record; settled cells fire it before this
        call returns.

        Returns:
            The record's child cell
        """
        if cell.is_pending():
            cell._attach(record)
            logger.debug(f"Queued {record.kind.value} continuation on {cell!r}")
            return record.child

        state, payload = cell.outcome
        logger.debug(f"Firing {record.kind.value} continuation on settled {cell!r}")
        self._drain(deque([(record, state, payload)]))
        return record.child

    def run_executor(
        self,
        cell: SettlementCell,
        executor: Callable[[Callable[..., None], Callable[..., None]], Any],
        resolve: Callable[..., None],
        reject: Callable[..., None],
    ) -> None:
        """
        Run a constructor executor synchronously

        An exception from the executor rejects the cell while it is still
        pending; registered exceptions, and any exception raised after the
        cell settled, propagate to the caller.
        """
        try:
            executor(resolve, reject)
        except Exception as error:
            if self.classifier.is_registered(error) or not cell.is_pending():
                raise
            logger.debug(f"Executor raised {error!r}, rejecting {cell!r}")
            self.settle(cell, PromiseState.REJECTED, error)

    def _commit(
        self,
        cell: SettlementCell,
        state: PromiseState,
        payload: Any,
        queue: Deque[WorkItem],
        strict: bool = False,
    ) -> None:
        """Transition a cell and push its records to the front, finally records last"""
        if not strict and not cell.is_pending():
            # Child settled directly by user code before the engine got to it
            logger.debug(f"Ignoring {state.value} outcome for settled {cell!r}")
            return

        records = cell._transition(state, payload)
        logger.debug(f"Settled {cell!r} with {len(records)} continuation(s)")

        ordered: List[ContinuationRecord] = [r for r in records if not r.is_finally]
        ordered.extend(r for r in records if r.is_finally)
        queue.extendleft((r, state, payload) for r in reversed(ordered))

    def _drain(self, queue: Deque[WorkItem]) -> None:
        outer = self._active
        self._active = queue
        try:
            while queue:
                record, state, payload = queue.popleft()
                if record.is_finally:
                    self._fire_finally(record, state, payload, queue)
                else:
                    self._fire(record, state, payload, queue)
        finally:
            self._active = outer

    def _fire(
        self,
        record: ContinuationRecord,
        state: PromiseState,
        payload: Any,
        queue: Deque[WorkItem],
    ) -> None:
        handler = record.handler_for(state)
        if handler is None:
            if record.passes_through:
                self._commit(record.child, state, payload, queue)
            return

        try:
            result = handler(payload)
        except Exception as error:
            if self.classifier.is_registered(error):
                logger.debug(f"Re-raising registered exception {error!r}")
                raise
            self._commit(record.child, PromiseState.REJECTED, error, queue)
            return

        self._adopt(record.child, result, queue)

    def _adopt(self, child: SettlementCell, result: Any, queue: Deque[WorkItem]) -> None:
        """Settle child from a handler's return value"""
        if result is child:
            error = ChainingCycleError("A handler returned the promise it settles")
            self._commit(child, PromiseState.REJECTED, error, queue)
            return

        if isinstance(result, SettlementCell):
            adopt = create_record(RecordKind.ADOPT, child)
            if result.is_pending():
                result._attach(adopt)
            else:
                state, payload = result.outcome
                queue.appendleft((adopt, state, payload))
            return

        if is_thenable(result):
            self._adopt_thenable(child, result, queue)
            return

        self._commit(child, PromiseState.FULFILLED, result, queue)

    def _adopt_thenable(self, child: SettlementCell, thenable: Any, queue: Deque[WorkItem]) -> None:
        """Subscribe child to a foreign thenable; the first signal wins"""

        def on_fulfilled(value: Any = None) -> None:
            self.settle_once(child, PromiseState.FULFILLED, value)

        def on_rejected(reason: Any = None) -> None:
            self.settle_once(child, PromiseState.REJECTED, reason)

        try:
            thenable.then(on_fulfilled, on_rejected)
        except Exception as error:
            # Once the child has settled the error has nowhere else to go
            if self.classifier.is_registered(error) or not child.is_pending():
                raise
            self._commit(child, PromiseState.REJECTED, error, queue)

    def _fire_finally(
        self,
        record: ContinuationRecord,
        state: PromiseState,
        payload: Any,
        queue: Deque[WorkItem],
    ) -> None:
        child = record.child

        try:
            result = record.on_finally()
        except Exception as error:
            if self.classifier.is_registered(error):
                raise
            self._commit(child, PromiseState.REJECTED, error, queue)
            return

        hook = get_finally_hook(result)
        if hook is None or (isinstance(result, SettlementCell) and not result.is_pending()):
            self._commit(child, state, payload, queue)
            return

        # The child keeps the parent's outcome, only its timing is deferred
        def release(*_: Any) -> None:
            self.settle_once(child, state, payload)

        try:
            hook(release)
        except Exception as error:
            if self.classifier.is_registered(error) or not child.is_pending():
                raise
            self._commit(child, PromiseState.REJECTED, error, queue)


_default_engine = ResolutionEngine()


def get_default_engine() -> ResolutionEngine:
    """Get the process-wide engine used by cells created without one"""
    return _default_engine
