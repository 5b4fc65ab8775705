"""Side channel for user-visible notices (refresh failures, write results)."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol

import structlog

logger = structlog.get_logger()


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """A single notice for the user."""
    level: NotificationLevel
    message: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "message": self.message,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
        }


class Notifier(Protocol):
    """Anything that can deliver a notification."""

    def notify(self, notification: Notification) -> None:
        ...


class LogNotifier:
    """Writes notifications to the structured log."""

    def notify(self, notification: Notification) -> None:
        log = logger.error if notification.level == NotificationLevel.ERROR else logger.info
        log(
            "notification",
            level=notification.level.value,
            message=notification.message,
            description=notification.description,
        )


class CollectingNotifier:
    """Keeps notifications in memory for consumers that poll."""

    def __init__(self, limit: int = 100):
        self.limit = limit
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        if len(self.notifications) > self.limit:
            del self.notifications[: len(self.notifications) - self.limit]

    def drain(self) -> list[Notification]:
        """Return and clear pending notifications."""
        pending, self.notifications = self.notifications, []
        return pending
