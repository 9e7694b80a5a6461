"""Bounded undo stack with clone-on-push semantics."""

from __future__ import annotations

import copy
from collections import deque
from typing import Generic, TypeVar

S = TypeVar("S")

DEFAULT_MAX_DEPTH = 50


class UndoStack(Generic[S]):
    """Stores deep clones of state snapshots.

    Once *max_depth* snapshots are held, pushing discards the oldest one.
    Popped snapshots are returned directly (no re-cloning) since they are
    already detached.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._stack: deque[S] = deque(maxlen=max_depth)

    def push(self, state: S) -> None:
        """Push a deep clone of the given state onto the stack."""
        self._stack.append(copy.deepcopy(state))

    def pop(self) -> S | None:
        """Pop and return the most recent snapshot, or None if empty."""
        return self._stack.pop() if self._stack else None

    def clear(self) -> None:
        """Remove all snapshots."""
        self._stack.clear()

    @property
    def max_depth(self) -> int:
        return self._stack.maxlen or 0

    @property
    def length(self) -> int:
        return len(self._stack)
