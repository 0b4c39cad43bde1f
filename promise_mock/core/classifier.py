"""
Exception classification

Decides which exceptions raised by handlers must escape the firing call
instead of being captured as rejections. Test harnesses register their
assertion error types here so failed assertions inside callbacks fail the
test rather than silently rejecting a child cell.
"""

import logging
from typing import Iterable, Optional, Tuple, Type

from ..exceptions.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


class ExceptionClassifier:
    """
    Exception classification registry

    The registered kinds are replaced wholesale on every call to
    replace(); the last write wins.
    """

    def __init__(self, kinds: Optional[Iterable[Type[BaseException]]] = None):
        self._kinds: Tuple[Type[BaseException], ...] = ()
        if kinds is not None:
            self.replace(kinds)

    @property
    def kinds(self) -> Tuple[Type[BaseException], ...]:
        """Currently registered exception kinds"""
        return self._kinds

    def replace(self, kinds: Optional[Iterable[Type[BaseException]]]) -> None:
        """
        Replace the registered kinds

        Args:
            kinds: Exception classes to re-raise, None clears the registry

        Raises:
            InvalidArgumentError: If an entry is not an exception class
        """
        if kinds is None:
            self._kinds = ()
            logger.debug("Cleared assertion exception types")
            return

        if isinstance(kinds, type):
            raise InvalidArgumentError(
                "Exception kinds must be given as an iterable of classes",
                {"value": kinds.__name__},
            )

        kinds = tuple(kinds)
        invalid = [
            kind
            for kind in kinds
            if not (isinstance(kind, type) and issubclass(kind, BaseException))
        ]
        if invalid:
            raise InvalidArgumentError(
                f"Not exception classes: {invalid!r}", {"invalid": invalid}
            )

        self._kinds = kinds
        logger.debug(
            f"Assertion exception types set to: {[k.__name__ for k in kinds]}"
        )

    def clear(self) -> None:
        self.replace(None)

    def is_registered(self, error: BaseException) -> bool:
        """Check whether error must be re-raised out of the firing call"""
        return bool(self._kinds) and isinstance(error, self._kinds)
