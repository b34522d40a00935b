"""Collaborator interfaces for clipboard and user notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class Notification:
    """A toast-style message for the user."""

    title: str
    description: str = ""
    is_error: bool = False


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None:
        ...


class ClipboardSink(Protocol):
    def write(self, text: str) -> None:
        """Store ``text``; raises ClipboardError on failure."""
        ...


class LoggingNotificationSink:
    """Routes notifications to a logger. Used headless (CLI, tests)."""

    def __init__(self, logger_obj: Optional[logging.Logger] = None) -> None:
        self.logger = logger_obj or logging.getLogger(__name__)
        self.history: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.history.append(notification)
        level = logging.ERROR if notification.is_error else logging.INFO
        self.logger.log(level, "%s: %s", notification.title, notification.description)
