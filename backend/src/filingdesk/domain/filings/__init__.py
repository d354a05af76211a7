"""Filings domain module - status state machine, service types, progress"""

from .filing_status import (
    FilingStatus,
    STATUS_ORDER,
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    StateTransitionError,
    can_transition,
    get_allowed_transitions,
    resume_targets,
    validate_transition,
    status_label,
)
from .service_type import ServiceType, parse_service_type, validate_assessment_year
from .progress import FilingProgress, StatusStep, compute_progress, progress_percent, days_remaining

__all__ = [
    "FilingStatus",
    "STATUS_ORDER",
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "StateTransitionError",
    "can_transition",
    "get_allowed_transitions",
    "resume_targets",
    "validate_transition",
    "status_label",
    "ServiceType",
    "parse_service_type",
    "validate_assessment_year",
    "FilingProgress",
    "StatusStep",
    "compute_progress",
    "progress_percent",
    "days_remaining",
]
