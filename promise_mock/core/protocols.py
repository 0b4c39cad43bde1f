"""
Capability protocols

Thenables and finally-bearing objects are recognised by the members they
expose, not by their concrete type, so results coming from other promise
libraries interoperate with PromiseMock cells.
"""

from typing import Any, Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class Thenable(Protocol):
    """Anything exposing then(on_fulfilled, on_rejected)"""

    def then(
        self,
        on_fulfilled: Optional[Callable[[Any], Any]] = None,
        on_rejected: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        ...


@runtime_checkable
class HasFinally(Protocol):
    """Anything exposing finally_(on_settled)"""

    def finally_(self, on_settled: Callable[[], Any]) -> Any:
        ...


def is_thenable(obj: Any) -> bool:
    """Check whether obj exposes a callable then member"""
    if isinstance(obj, type):
        return False
    return isinstance(obj, Thenable) and callable(getattr(obj, "then", None))


def get_finally_hook(obj: Any) -> Optional[Callable[[Callable[[], Any]], Any]]:
    """
    Return the bound finally member of obj, or None

    Python reserves the ``finally`` keyword, so ``finally_`` is the native
    spelling; a plain ``finally`` attribute set through setattr is accepted
    as well for objects ported from other runtimes.
    """
    if obj is None or isinstance(obj, type):
        return None

    if isinstance(obj, HasFinally):
        hook = getattr(obj, "finally_", None)
    else:
        hook = getattr(obj, "finally", None)

    return hook if callable(hook) else None
