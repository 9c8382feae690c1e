"""Dismissible donor notifications"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Notification:
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=datetime.utcnow)


class NotificationFeed:
    """Bounded queue of notifications the UI drains and shows as toasts"""

    def __init__(self, max_items: int = 50):
        self._items: deque[Notification] = deque(maxlen=max_items)

    def push(self, level: NotificationLevel, message: str) -> None:
        self._items.append(Notification(level=level, message=message))

    def info(self, message: str) -> None:
        self.push(NotificationLevel.INFO, message)

    def success(self, message: str) -> None:
        self.push(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        self.push(NotificationLevel.ERROR, message)

    def drain(self) -> list[Notification]:
        """Return and clear pending notifications"""
        items = list(self._items)
        self._items.clear()
        return items

    def __len__(self) -> int:
        return len(self._items)
