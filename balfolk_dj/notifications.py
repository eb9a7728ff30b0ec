"""User-facing notifications.

Services report recoverable problems (queue full, no tracks available,
failed playback) here instead of raising. Every notification is logged
at the level matching its severity and forwarded to an optional sink,
which the CLI points at the rich console helpers.
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MAX_RETAINED = 100


class Severity(enum.Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Notification:
    message: str
    severity: Severity


class Notifier:
    """Collects notifications and forwards them to a display sink."""

    def __init__(self, sink: Callable[[Notification], None] | None = None) -> None:
        self._sink = sink
        self._recent: deque[Notification] = deque(maxlen=MAX_RETAINED)

    def notify(self, message: str, severity: Severity = Severity.INFO) -> Notification:
        notification = Notification(message, severity)
        logger.log(_LOG_LEVELS[severity], "[Notification] %s", message)
        self._recent.append(notification)
        if self._sink is not None:
            self._sink(notification)
        return notification

    def info(self, message: str) -> Notification:
        return self.notify(message, Severity.INFO)

    def warning(self, message: str) -> Notification:
        return self.notify(message, Severity.WARNING)

    def error(self, message: str) -> Notification:
        return self.notify(message, Severity.ERROR)

    @property
    def recent(self) -> list[Notification]:
        """Most recent notifications, oldest first."""
        return list(self._recent)

    def messages(self, severity: Severity | None = None) -> list[str]:
        return [n.message for n in self._recent if severity is None or n.severity is severity]

    def clear(self) -> None:
        self._recent.clear()


def console_sink(notification: Notification) -> None:
    """Sink that prints notifications with the rich output helpers."""
    from balfolk_dj.utils.output import error, info, warning

    if notification.severity is Severity.ERROR:
        error(notification.message)
    elif notification.severity is Severity.WARNING:
        warning(notification.message)
    else:
        info(notification.message)
