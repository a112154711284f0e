"""
Transient notifications.

A single slot: showing a notification replaces whatever is visible and
restarts the timeout. Once the timeout has passed the surface is idle again.
"""
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from smartmark.constants import NOTIFICATION_TIMEOUT


class NotificationKind(Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    message: str
    kind: NotificationKind
    shown_at: float

    @property
    def is_error(self) -> bool:
        return self.kind is NotificationKind.ERROR


class Notifier:
    """
    idle -> showing(message, kind) -> idle, the second transition after
    ``timeout`` seconds.

    Args:
        timeout: Seconds a notification stays visible
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, timeout: float = NOTIFICATION_TIMEOUT,
                 clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout
        self.clock = clock
        self._current: Optional[Notification] = None
        self._lock = threading.Lock()

    def show(self, message: str, kind: NotificationKind) -> Notification:
        notification = Notification(message=message, kind=kind, shown_at=self.clock())
        with self._lock:
            self._current = notification
        return notification

    def success(self, message: str) -> Notification:
        return self.show(message, NotificationKind.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, NotificationKind.ERROR)

    def clear(self) -> None:
        with self._lock:
            self._current = None

    @property
    def current(self) -> Optional[Notification]:
        """The visible notification, or None when idle."""
        with self._lock:
            if self._current is not None and self.clock() - self._current.shown_at >= self.timeout:
                self._current = None
            return self._current

    @property
    def idle(self) -> bool:
        return self.current is None
