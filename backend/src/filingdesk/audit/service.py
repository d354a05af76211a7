"""Audit logging service for state changes.

This service provides a centralized interface for creating immutable audit log
entries. Core services go through an AuditSink; DatabaseAuditSink is the
default sink and writes into the same session as the mutation.

Audit Events:
- FILING_INITIATED
- STATUS_CHANGE (Filing)
- ADVISOR_ASSIGNED (Filing)
- REVIEW (Document)
- DOCUMENT_DELETED (Document)
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog
from .ports import AuditSink


class AuditAction:
    FILING_INITIATED = "FILING_INITIATED"
    STATUS_CHANGE = "STATUS_CHANGE"
    ADVISOR_ASSIGNED = "ADVISOR_ASSIGNED"
    REVIEW = "REVIEW"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"


def log_audit_event(
    db: Session,
    action: str,
    entity_type: str,
    entity_id: UUID,
    actor_id: Optional[UUID] = None,
    old_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Create an audit log entry.

    All parameters are stored as-is. This function does not validate action
    names or entity types.

    Args:
        db: Database session
        action: Event action (e.g., "STATUS_CHANGE", "REVIEW")
        entity_type: Type of entity affected (e.g., "Filing", "Document")
        entity_id: ID of affected entity
        actor_id: User who performed the action (None for system events)
        old_value: State before the change as JSON (e.g., {"status": "PENDING"})
        new_value: State after the change as JSON

    Returns:
        AuditLog: The created audit log entry

    Example:
        log_audit_event(
            db=db,
            action="STATUS_CHANGE",
            entity_type="Filing",
            entity_id=filing.id,
            actor_id=current_user.id,
            old_value={"status": "INITIATED"},
            new_value={"status": "DOCUMENTS_RECEIVED", "note": "docs ok"},
        )
    """
    audit_entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_value=old_value,
        new_value=new_value,
    )

    db.add(audit_entry)
    db.flush()  # Get ID without committing transaction

    return audit_entry


class DatabaseAuditSink(AuditSink):
    """AuditSink writing AuditLog rows in the caller's session."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, actor_id, action, entity_type, entity_id, old_value=None, new_value=None) -> None:
        log_audit_event(
            self.db,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            old_value=old_value,
            new_value=new_value,
        )
