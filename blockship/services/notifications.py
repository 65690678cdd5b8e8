"""
User-facing notifications.

Notifications are transient and dismissible. They are logged locally and
fanned out to registered sinks (e.g. the CLI console); nothing is persisted.
Only the most recent ones stay active.
"""

from typing import Callable, List

import structlog

from blockship.core.models import Notification, NotificationVariant

logger = structlog.get_logger(__name__)

NotificationSink = Callable[[Notification], None]

DEFAULT_NOTIFICATION_LIMIT = 5


class NotificationCenter:
    """Collects active notifications and forwards new ones to sinks."""

    def __init__(self, limit: int = DEFAULT_NOTIFICATION_LIMIT):
        if limit < 1:
            raise ValueError("Notification limit must be at least 1")
        self.limit = limit
        self._active: List[Notification] = []
        self._sinks: List[NotificationSink] = []

    @property
    def active(self) -> List[Notification]:
        return list(self._active)

    def add_sink(self, sink: NotificationSink) -> None:
        self._sinks.append(sink)

    def notify(self, title: str, description: str) -> Notification:
        """Emit a success/informational notification."""
        return self._emit(Notification(title=title, description=description))

    def fail(self, title: str, description: str) -> Notification:
        """Emit a destructive (failure) notification."""
        return self._emit(
            Notification(
                title=title, description=description, variant=NotificationVariant.DESTRUCTIVE
            )
        )

    def dismiss(self, notification_id: str) -> bool:
        before = len(self._active)
        self._active = [n for n in self._active if n.id != notification_id]
        return len(self._active) < before

    def clear(self) -> None:
        self._active.clear()

    def _emit(self, notification: Notification) -> Notification:
        self._active.append(notification)
        # Oldest first out
        del self._active[: -self.limit]

        log = logger.warning if notification.destructive else logger.info
        log(
            "Notification",
            title=notification.title,
            description=notification.description,
            variant=notification.variant.value,
        )
        for sink in self._sinks:
            sink(notification)
        return notification
