"""
Transient notification queue.

Holds at most one success/error message. A new message replaces the pending
one and restarts its lifetime. Expiry is driven by an asyncio timer when a
loop is running; the deadline is also checked on read, so pages that render
between event loops (Streamlit reruns) never show a stale message.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional

from sheetdesk import frontend_config as config
from sheetdesk.helpers.models import Notification, NotificationKind

logger = logging.getLogger(__name__)


class NotificationCenter:
    def __init__(self, ttl: float = config.NOTIFICATION_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._current: Optional[Notification] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listeners: List[Callable[[Optional[Notification]], None]] = []

    @property
    def current(self) -> Optional[Notification]:
        if self._current is not None and self._clock() >= self._current.expires_at:
            self._clear()
        return self._current

    def subscribe(self, callback: Callable[[Optional[Notification]], None]) -> Callable[[], None]:
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def notify(self, kind: NotificationKind, text: str) -> Notification:
        self._cancel_timer()
        notification = Notification(kind=kind, text=text, expires_at=self._clock() + self.ttl)
        self._current = notification
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._timer = loop.call_later(self.ttl, self._expire, notification)
        self._emit()
        return notification

    def success(self, text: str) -> Notification:
        return self.notify(NotificationKind.SUCCESS, text)

    def error(self, text: str) -> Notification:
        logger.debug("error notification: %s", text)
        return self.notify(NotificationKind.ERROR, text)

    def dismiss(self):
        self._cancel_timer()
        self._clear()

    def close(self):
        """Tear down: drop the pending timer so it can't fire later."""
        self._cancel_timer()
        self._current = None
        self._listeners.clear()

    def _expire(self, notification: Notification):
        self._timer = None
        # Only the notification this timer was armed for may be cleared.
        if self._current is notification:
            self._clear()

    def _clear(self):
        if self._current is None:
            return
        self._current = None
        self._emit()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _emit(self):
        for callback in list(self._listeners):
            callback(self._current)
