"""User-facing notification sink.

The session core only needs ``notify(kind, message)``. ``NotificationFeed``
logs every notification and keeps the most recent ones in memory so the
HTTP layer can hand them to a dashboard.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections import deque
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Deque, Dict, List, Protocol

from .constants import NOTIFICATION_HISTORY_DEFAULT

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    """Severity of a notification."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Notifier(Protocol):
    """Fire-and-forget message sink."""

    def notify(self, kind: NotificationKind, message: str) -> None:
        """Deliver one user-facing message."""


@dataclass(slots=True)
class Notification:
    """A delivered notification."""

    id: int
    kind: NotificationKind
    message: str
    created_at: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


class NotificationFeed:
    """Notifier keeping a bounded history of recent messages."""

    def __init__(self, max_entries: int = NOTIFICATION_HISTORY_DEFAULT):
        self._entries: Deque[Notification] = deque(maxlen=max_entries)
        self._ids = itertools.count(1)

    def notify(self, kind: NotificationKind, message: str) -> None:
        entry = Notification(
            id=next(self._ids),
            kind=NotificationKind(kind),
            message=message,
            created_at=time.time(),
        )
        self._entries.append(entry)
        level = logging.WARNING if entry.kind is NotificationKind.ERROR else logging.INFO
        logger.log(level, "[%s] %s", entry.kind.value, message)

    def recent(self, limit: int = 20, after_id: int = 0) -> List[Notification]:
        """Return up to ``limit`` most recent notifications newer than ``after_id``."""
        entries = [entry for entry in self._entries if entry.id > after_id]
        return entries[-limit:] if limit > 0 else entries

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
