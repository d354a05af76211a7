"""Notifications - outbox, dispatcher and sinks"""

from .ports import NotificationSink
from .sink import DatabaseNotificationSink
from .outbox import OutboxWriter
from .dispatcher import NotificationDispatcher, DispatchResult

__all__ = [
    "NotificationSink",
    "DatabaseNotificationSink",
    "OutboxWriter",
    "NotificationDispatcher",
    "DispatchResult",
]
