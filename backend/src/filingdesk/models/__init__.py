"""SQLAlchemy Models for the filing desk"""

from .base import Base
from .user import User
from .filing import Filing, FilingStatusLog
from .document import Document
from .audit_log import AuditLog
from .notification import Notification
from .outbox_event import OutboxEvent

__all__ = [
    "Base",
    "User",
    "Filing",
    "FilingStatusLog",
    "Document",
    "AuditLog",
    "Notification",
    "OutboxEvent",
]
