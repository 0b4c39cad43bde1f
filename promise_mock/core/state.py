"""Settlement states"""

from enum import Enum


class PromiseState(str, Enum):
    """
    Cell state

    Transitions only PENDING -> FULFILLED or PENDING -> REJECTED
    """

    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"

    @property
    def is_settled(self) -> bool:
        return self is not PromiseState.PENDING
