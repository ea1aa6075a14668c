"""Transient user-facing notifications (toasts).

Each session owns one NotificationCenter. Views push success/error messages;
the session drains the pending ones into the next render frame so every toast
reaches the browser exactly once. A short history is kept for diagnostics.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from reware.domain.enums import NotificationLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    id: int
    level: NotificationLevel
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "level": self.level.value, "message": self.message}


class NotificationCenter:
    """Bounded toast channel for one session."""

    def __init__(
        self,
        history_size: int = 20,
        on_push: Callable[[], None] | None = None,
    ) -> None:
        self._history: deque[Notification] = deque(maxlen=history_size)
        self._pending: list[Notification] = []
        self._ids = itertools.count(1)
        self._on_push = on_push

    def success(self, message: str) -> Notification:
        return self._push(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> Notification:
        return self._push(NotificationLevel.ERROR, message)

    def info(self, message: str) -> Notification:
        return self._push(NotificationLevel.INFO, message)

    def _push(self, level: NotificationLevel, message: str) -> Notification:
        note = Notification(next(self._ids), level, message)
        self._history.append(note)
        self._pending.append(note)
        if level == NotificationLevel.ERROR:
            logger.warning("Notification: %s", message)
        else:
            logger.debug("Notification (%s): %s", level.value, message)
        if self._on_push is not None:
            self._on_push()
        return note

    def drain(self) -> list[Notification]:
        """Return and clear the notifications not yet delivered."""
        pending, self._pending = self._pending, []
        return pending

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    @property
    def last(self) -> Notification | None:
        return self._history[-1] if self._history else None

    def messages(self, level: NotificationLevel | None = None) -> list[str]:
        """Messages in history, optionally filtered by level."""
        return [n.message for n in self._history if level is None or n.level == level]
