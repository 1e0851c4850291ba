"""Round-robin rotation of the first-choice provider."""

import threading
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


class RotationCursor:
    """Shared counter advanced once per orchestrator invocation.

    Successive requests start with a different provider so traffic is spread
    across all of them. Fairness under concurrent requests is best-effort.
    """

    def __init__(self, start: int = 0) -> None:
        """Create cursor starting at the given position."""
        self._value = start
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        """Return current position of the cursor."""
        return self._value

    def next(self) -> int:
        """Return current position and advance the cursor."""
        with self._lock:
            current = self._value
            self._value += 1
            return current

    def rotate(self, items: Sequence[T]) -> list[T]:
        """Rotate items so that the cursor position comes first.

        The cursor is not advanced for less than two items.
        """
        if len(items) <= 1:
            return list(items)
        start = self.next() % len(items)
        return [*items[start:], *items[:start]]
