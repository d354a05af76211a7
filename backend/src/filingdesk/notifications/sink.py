"""In-app inbox notification sink."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..models.notification import Notification
from .ports import NotificationSink

logger = logging.getLogger(__name__)


class DatabaseNotificationSink(NotificationSink):
    """Writes Notification rows into the dispatcher's session."""

    def __init__(self, db: Session):
        self.db = db

    def notify(self, user_id, type, title, body, link: Optional[str] = None) -> None:
        notification = Notification(
            user_id=user_id if isinstance(user_id, UUID) else UUID(str(user_id)),
            type=type,
            title=title,
            body=body,
            link=link,
        )
        self.db.add(notification)
        self.db.flush()

        logger.debug(
            "Notification stored",
            extra={"user_id": str(user_id), "notification_type": type},
        )
