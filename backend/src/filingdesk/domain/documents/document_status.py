"""DocumentStatus state machine for the review lifecycle

State flow (per version):
PENDING → ACCEPTED | REJECTED | NEEDS_REUPLOAD
Every outcome is terminal for the version; a re-upload creates a new
version which starts again at PENDING.
"""

from enum import Enum
from typing import Optional, Dict, List


class DocumentStatus(str, Enum):
    """Document review status enum"""
    PENDING = "PENDING"                # Awaiting staff review
    ACCEPTED = "ACCEPTED"              # Immutable from here on
    REJECTED = "REJECTED"              # Owner may re-upload
    NEEDS_REUPLOAD = "NEEDS_REUPLOAD"  # Owner must re-upload


# Checklist placeholder for a category with no chain
NOT_UPLOADED = "NOT_UPLOADED"

REVIEW_OUTCOMES = (
    DocumentStatus.ACCEPTED,
    DocumentStatus.REJECTED,
    DocumentStatus.NEEDS_REUPLOAD,
)

# Outcomes that must carry a rejection note
NOTE_REQUIRED_OUTCOMES = (DocumentStatus.REJECTED, DocumentStatus.NEEDS_REUPLOAD)

# Chain statuses that open the chain for a new version
REUPLOADABLE_STATUSES = (DocumentStatus.REJECTED, DocumentStatus.NEEDS_REUPLOAD)

MIN_REJECTION_NOTE_LENGTH = 10


# State transition rules
ALLOWED_TRANSITIONS: Dict[Optional[DocumentStatus], List[DocumentStatus]] = {
    None: [DocumentStatus.PENDING],
    DocumentStatus.PENDING: list(REVIEW_OUTCOMES),
    DocumentStatus.ACCEPTED: [],        # Terminal
    DocumentStatus.REJECTED: [],        # Terminal for this version
    DocumentStatus.NEEDS_REUPLOAD: [],  # Terminal for this version
}


def can_transition(from_status: Optional[DocumentStatus], to_status: DocumentStatus) -> bool:
    """Validate if status transition is allowed

    Args:
        from_status: Current status (None for new versions)
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise

    Example:
        >>> can_transition(DocumentStatus.PENDING, DocumentStatus.ACCEPTED)
        True
        >>> can_transition(DocumentStatus.ACCEPTED, DocumentStatus.REJECTED)
        False
    """
    allowed = ALLOWED_TRANSITIONS.get(from_status, [])
    return to_status in allowed


def is_reuploadable(status: DocumentStatus) -> bool:
    return status in REUPLOADABLE_STATUSES
