"""
Settlement cell

State holder shared by every cell type: the current state, the settled
payload and the registry of pending continuations. Firing the
continuations is the engine's job; this class only enforces the single
transition.
"""

from typing import Any, List, Tuple

from .continuation import ContinuationRecord, ContinuationRegistry
from .state import PromiseState
from ..exceptions.errors import AlreadySettledError


class SettlementCell:
    """
    Deferred-value cell

    Once settled the state and payload never change and the continuation
    registry stays empty.
    """

    def __init__(self):
        self._state = PromiseState.PENDING
        self._payload: Any = None
        self._continuations = ContinuationRegistry()

    @property
    def state(self) -> PromiseState:
        return self._state

    @property
    def value(self) -> Any:
        """Fulfillment value, None unless fulfilled"""
        return self._payload if self._state is PromiseState.FULFILLED else None

    @property
    def reason(self) -> Any:
        """Rejection reason, None unless rejected"""
        return self._payload if self._state is PromiseState.REJECTED else None

    @property
    def outcome(self) -> Tuple[PromiseState, Any]:
        """State and raw payload as a pair"""
        return self._state, self._payload

    @property
    def continuation_count(self) -> int:
        """Number of continuations waiting for settlement"""
        return len(self._continuations)

    def is_pending(self) -> bool:
        return self._state is PromiseState.PENDING

    def is_fulfilled(self) -> bool:
        return self._state is PromiseState.FULFILLED

    def is_rejected(self) -> bool:
        return self._state is PromiseState.REJECTED

    def _transition(self, state: PromiseState, payload: Any) -> List[ContinuationRecord]:
        """
        Settle the cell and hand over its queued continuations

        Args:
            state: FULFILLED or REJECTED
            payload: Value or reason, stored verbatim

        Returns:
            The drained continuation records, in registration order

        Raises:
            AlreadySettledError: If the cell is not pending
        """
        if not state.is_settled:
            raise ValueError("A cell can only transition to a settled state")

        if self._state.is_settled:
            action = "resolve" if state is PromiseState.FULFILLED else "reject"
            raise AlreadySettledError(
                f"Cannot {action} a {self._state.value} promise",
                {"state": self._state.value},
            )

        self._state = state
        self._payload = payload
        return self._continuations.drain()

    def _attach(self, record: ContinuationRecord) -> None:
        """Queue a record on a pending cell"""
        self._continuations.append(record)

    def __repr__(self) -> str:
        if self._state is PromiseState.PENDING:
            return f"<{type(self).__name__} pending>"
        return f"<{type(self).__name__} {self._state.value}: {self._payload!r}>"
