"""Bounded record of recently executed delivery attempts."""

from __future__ import annotations

from collections import deque

DEFAULT_HISTORY_SIZE = 25


class CommandHistory:
    """Strict FIFO membership cache of attempt ids.

    Re-adding an id that is already present does not refresh its position; the
    oldest insertion is always the first to be evicted.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self._capacity = capacity
        self._ids: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, attempt_id: str) -> None:
        self._ids.append(attempt_id)

    def contains(self, attempt_id: str) -> bool:
        return attempt_id in self._ids

    __contains__ = contains
