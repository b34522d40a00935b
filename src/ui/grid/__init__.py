"""Grid building blocks: layout, cell operations, collaborator sinks."""

from .column_lock import LockedColumnSet, offset_for, sticky_offsets
from .sinks import ClipboardSink, LoggingNotificationSink, Notification, NotificationSink

__all__ = [
    "LockedColumnSet",
    "offset_for",
    "sticky_offsets",
    "ClipboardSink",
    "LoggingNotificationSink",
    "Notification",
    "NotificationSink",
]
