"""Short-lived status messages shown at the top right of the screen."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

DEFAULT_TTL = 8
MAX_NOTIFICATIONS = 5


class NotificationLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    level: NotificationLevel
    message: str
    ttl: int = DEFAULT_TTL


class Notifications:
    """A bounded queue of notifications; the oldest is dropped when full."""

    def __init__(self, max_size: int = MAX_NOTIFICATIONS) -> None:
        self._items: deque[Notification] = deque(maxlen=max_size)

    def push(self, level: NotificationLevel, message: str, ttl: int = DEFAULT_TTL) -> None:
        self._items.append(Notification(level, message, ttl))

    def info(self, message: str) -> None:
        self.push(NotificationLevel.INFO, message)

    def warning(self, message: str) -> None:
        self.push(NotificationLevel.WARNING, message)

    def error(self, message: str) -> None:
        self.push(NotificationLevel.ERROR, message)

    def tick(self) -> None:
        """Age every notification by one tick and drop the expired ones."""
        for item in self._items:
            item.ttl -= 1
        self._items = deque((n for n in self._items if n.ttl > 0), maxlen=self._items.maxlen)

    def __iter__(self) -> Iterator[Notification]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
