"""Audit trail - port and database-backed sink"""

from .ports import AuditSink
from .service import AuditAction, DatabaseAuditSink, log_audit_event

__all__ = ["AuditSink", "AuditAction", "DatabaseAuditSink", "log_audit_event"]
