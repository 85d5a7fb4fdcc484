"""
Single-slot latest-value channel between the detection and render loops.
"""
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class LatestValue(Generic[T]):
    """
    Holds only the most recently published value.

    Publishing overwrites whatever was there and reading never waits, so a
    slow producer just means readers keep seeing the last value. Values that
    are overwritten before anyone reads them are dropped on purpose; do not
    replace this with a queue.

    Both loops run on the same event loop thread, so no lock is needed.
    """

    def __init__(self, initial: Optional[T] = None):
        self._value = initial
        self._sequence = 0

    def publish(self, value: Optional[T]) -> None:
        self._value = value
        self._sequence += 1

    def read(self) -> Optional[T]:
        return self._value

    def read_with_sequence(self) -> Tuple[Optional[T], int]:
        """Latest value and how many publishes have happened so far."""
        return self._value, self._sequence

    @property
    def sequence(self) -> int:
        return self._sequence
