"""Notification Sink Port - delivers rendered notifications to users.

The dispatcher is the only caller. Core services publish domain events to
the outbox and never talk to a sink directly.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID


class NotificationSink(ABC):
    """Port interface for user-facing notifications."""

    @abstractmethod
    def notify(
        self,
        user_id: UUID,
        type: str,
        title: str,
        body: str,
        link: Optional[str] = None,
    ) -> None:
        """Deliver one notification.

        Raises:
            Exception: Any failure; the dispatcher records it and retries later
        """
