"""
Bounded value stack used as the evaluation accumulator.
"""

from typing import Generic, List, TypeVar

from .errors import StackOverflowError, StackUnderflowError

T = TypeVar("T")

DEFAULT_MAX_STACK_DEPTH = 100


class ValueStack(Generic[T]):
    """A LIFO stack that refuses to grow past ``max_depth`` values."""

    def __init__(self, max_depth: int = DEFAULT_MAX_STACK_DEPTH):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._max_depth = max_depth
        self._values: List[T] = []

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def __len__(self) -> int:
        return len(self._values)

    def push(self, value: T) -> None:
        if len(self._values) >= self._max_depth:
            raise StackOverflowError(self._max_depth)
        self._values.append(value)

    def pop(self) -> T:
        if not self._values:
            raise StackUnderflowError()
        return self._values.pop()

    def pop_many(self, count: int) -> List[T]:
        """Pops ``count`` values and returns them oldest first."""
        if count > len(self._values):
            raise StackUnderflowError()
        if count == 0:
            return []
        values = self._values[-count:]
        del self._values[-count:]
        return values

    def clear(self) -> None:
        self._values.clear()
