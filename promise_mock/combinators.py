"""
Combinators

all_of and race_of funnel the outcomes of several thenables into one new
cell. They only use the public then() protocol of their inputs, so foreign
thenables can be mixed with PromiseMock cells.
"""

from typing import Any, Callable, Dict, Iterable, List

from .core.protocols import is_thenable
from .exceptions.errors import InvalidArgumentError
from .utils.logging import get_logger

logger = get_logger(__name__)


def _adapt_elements(iterable: Any, factory: Callable[[], Any], operation: str) -> List[Any]:
    """
    Materialize the input, wrapping non-thenables in fulfilled cells

    None is a valid element and is wrapped like any other value.
    """
    if iterable is None:
        raise InvalidArgumentError(f"{operation}() requires an iterable, got None")

    try:
        elements = list(iterable)
    except TypeError as e:
        raise InvalidArgumentError(
            f"{operation}() requires an iterable, got {type(iterable).__name__}",
            {"type": type(iterable).__name__},
        ) from e

    adapted = []
    for element in elements:
        if is_thenable(element):
            adapted.append(element)
        else:
            cell = factory()
            cell.resolve(element)
            adapted.append(cell)
    return adapted


def all_of(iterable: Iterable[Any], factory: Callable[[], Any]) -> Any:
    """
    Fulfill with every value, in input order, once all elements fulfill

    The first rejection rejects the result; later signals are ignored.

    Args:
        iterable: Thenables and/or plain values
        factory: Creates a new pending cell

    Returns:
        Aggregate cell
    """
    elements = _adapt_elements(iterable, factory, "all")
    result = factory()

    if not elements:
        result.resolve([])
        return result

    values: Dict[int, Any] = {}

    def subscribe(index: int, element: Any) -> None:
        def on_fulfilled(value: Any = None) -> None:
            values[index] = value
            if len(values) == len(elements) and result.is_pending():
                result.resolve([values[i] for i in range(len(elements))])

        def on_rejected(reason: Any = None) -> None:
            if result.is_pending():
                result.reject(reason)
            else:
                logger.debug(f"all(): ignoring rejection of element {index}")

        element.then(on_fulfilled, on_rejected)

    for index, element in enumerate(elements):
        subscribe(index, element)

    return result


def race_of(iterable: Iterable[Any], factory: Callable[[], Any]) -> Any:
    """
    Settle with the first outcome reported by any element

    An empty input fulfills the result with None.

    Args:
        iterable: Thenables and/or plain values
        factory: Creates a new pending cell

    Returns:
        Aggregate cell
    """
    elements = _adapt_elements(iterable, factory, "race")
    result = factory()

    if not elements:
        result.resolve(None)
        return result

    def on_fulfilled(value: Any = None) -> None:
        if result.is_pending():
            result.resolve(value)

    def on_rejected(reason: Any = None) -> None:
        if result.is_pending():
            result.reject(reason)

    for element in elements:
        element.then(on_fulfilled, on_rejected)

    return result
