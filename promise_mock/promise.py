"""
PromiseMock

Synchronous promise double for tests. Continuations registered on a cell
run inside the resolve()/reject() call that settles it, or inside the
registration call when the cell has already settled, so a test can drive
"asynchronous" code step by step without an event loop.

Example::

    promise = PromiseMock()
    seen = []
    promise.then(lambda x: x + 1).then(seen.append)
    promise.resolve(5)
    assert seen == [6]
"""

from typing import Any, Callable, Iterable, Optional, Type

from .combinators import all_of, race_of
from .core.cell import SettlementCell
from .core.continuation import RecordKind, create_record
from .core.state import PromiseState
from .engine.resolution import ResolutionEngine, get_default_engine
from .utils.descriptors import dualmethod


Executor = Callable[[Callable[..., None], Callable[..., None]], Any]


class PromiseMock(SettlementCell):
    """
    Deterministic deferred value

    ``resolve`` and ``reject`` settle the instance when called on an
    instance and build an already-settled cell when called on the class.
    The value passed to ``resolve`` is stored verbatim, even a thenable;
    only values returned from handlers are unwrapped.
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        *,
        engine: Optional[ResolutionEngine] = None,
    ):
        """
        Create a pending cell

        Args:
            executor: Optional callable receiving (resolve, reject), run
                synchronously before the constructor returns
            engine: Engine firing this cell's continuations; the default
                engine when omitted. Child cells inherit it.
        """
        super().__init__()
        self._engine = engine if engine is not None else get_default_engine()

        if executor is not None:
            self._engine.run_executor(self, executor, self.resolve, self.reject)

    @property
    def engine(self) -> ResolutionEngine:
        return self._engine

    # Settlement

    @dualmethod
    def resolve(self, value: Any = None) -> None:
        """
        Fulfill the cell and fire its continuations

        Raises:
            AlreadySettledError: If the cell is not pending
        """
        self._engine.settle(self, PromiseState.FULFILLED, value)

    @resolve.classmethod
    def resolve(cls, value: Any = None) -> "PromiseMock":
        """Create a cell already fulfilled with value"""
        promise = cls()
        promise.resolve(value)
        return promise

    @dualmethod
    def reject(self, reason: Any = None) -> None:
        """
        Reject the cell and fire its continuations

        Raises:
            AlreadySettledError: If the cell is not pending
        """
        self._engine.settle(self, PromiseState.REJECTED, reason)

    @reject.classmethod
    def reject(cls, reason: Any = None) -> "PromiseMock":
        """Create a cell already rejected with reason"""
        promise = cls()
        promise.reject(reason)
        return promise

    # Registration

    def success(self, on_fulfilled: Callable[[Any], Any]) -> "PromiseMock":
        """Register a fulfillment-only continuation"""
        return self._register(RecordKind.SUCCESS, on_fulfilled=on_fulfilled)

    def catch(self, on_rejected: Callable[[Any], Any]) -> "PromiseMock":
        """Register a rejection-only continuation"""
        return self._register(RecordKind.CATCH, on_rejected=on_rejected)

    def then(
        self,
        on_fulfilled: Optional[Callable[[Any], Any]] = None,
        on_rejected: Optional[Callable[[Any], Any]] = None,
    ) -> "PromiseMock":
        """
        Register a continuation for both outcomes

        A missing handler passes its branch through to the returned cell
        unchanged.
        """
        return self._register(
            RecordKind.THEN, on_fulfilled=on_fulfilled, on_rejected=on_rejected
        )

    def finally_(self, on_settled: Callable[[], Any]) -> "PromiseMock":
        """
        Register a continuation run on either outcome

        on_settled takes no argument. The returned cell settles with this
        cell's outcome; if on_settled returns an object with a finally
        member, settlement waits until that object's finally fires.
        """
        return self._register(RecordKind.FINALLY, on_finally=on_settled)

    def _register(self, kind: RecordKind, **handlers: Any) -> "PromiseMock":
        child = type(self)(engine=self._engine)
        record = create_record(kind, child, **handlers)
        return self._engine.register(self, record)

    # Class-level operations

    @classmethod
    def all(cls, iterable: Iterable[Any]) -> "PromiseMock":
        """Fulfill with all values in input order, or reject with the first reason"""
        return all_of(iterable, cls)

    @classmethod
    def race(cls, iterable: Iterable[Any]) -> "PromiseMock":
        """Settle with whichever element settles first"""
        return race_of(iterable, cls)

    @staticmethod
    def set_assertion_exception_types(kinds: Optional[Iterable[Type[BaseException]]]) -> None:
        """
        Replace the exception kinds re-raised out of handlers

        Applies to the default engine. The previous list is discarded, not
        extended.
        """
        get_default_engine().classifier.replace(kinds)
