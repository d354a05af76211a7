"""FilingStatus state machine.

State Flow (linear progress order):
    INITIATED → DOCUMENTS_PENDING → DOCUMENTS_RECEIVED → UNDER_PREPARATION
    → REVIEW_READY → CUSTOMER_APPROVED → E_FILED → ACKNOWLEDGED → COMPLETED

Forward moves may skip steps. Backward moves are limited to rework
(DOCUMENTS_PENDING, UNDER_PREPARATION) and are closed once the return has
been e-filed. ON_HOLD is a side state enterable from every linear state;
leaving it requires an explicit target that is either the state the filing
was held from or a legal move from that state.

Terminal State: COMPLETED (only ON_HOLD is reachable from it)
"""

from enum import Enum
from typing import Dict, List, Optional

from ...errors import BadRequestError


class FilingStatus(str, Enum):
    """Filing status enumeration."""
    INITIATED = "INITIATED"
    DOCUMENTS_PENDING = "DOCUMENTS_PENDING"
    DOCUMENTS_RECEIVED = "DOCUMENTS_RECEIVED"
    UNDER_PREPARATION = "UNDER_PREPARATION"
    REVIEW_READY = "REVIEW_READY"
    CUSTOMER_APPROVED = "CUSTOMER_APPROVED"
    E_FILED = "E_FILED"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


# Linear progress order (ON_HOLD is not part of it)
STATUS_ORDER: List[FilingStatus] = [
    FilingStatus.INITIATED,
    FilingStatus.DOCUMENTS_PENDING,
    FilingStatus.DOCUMENTS_RECEIVED,
    FilingStatus.UNDER_PREPARATION,
    FilingStatus.REVIEW_READY,
    FilingStatus.CUSTOMER_APPROVED,
    FilingStatus.E_FILED,
    FilingStatus.ACKNOWLEDGED,
    FilingStatus.COMPLETED,
]

# Statuses counted as "in flight" on the staff dashboard
ACTIVE_STATUSES = STATUS_ORDER[:5]

# Allowed state transitions
ALLOWED_TRANSITIONS: Dict[FilingStatus, List[FilingStatus]] = {
    FilingStatus.INITIATED: [
        FilingStatus.DOCUMENTS_PENDING,
        FilingStatus.DOCUMENTS_RECEIVED,
        FilingStatus.UNDER_PREPARATION,
        FilingStatus.REVIEW_READY,
        FilingStatus.CUSTOMER_APPROVED,
        FilingStatus.E_FILED,
        FilingStatus.ACKNOWLEDGED,
        FilingStatus.COMPLETED,
        FilingStatus.ON_HOLD,
    ],
    FilingStatus.DOCUMENTS_PENDING: [
        FilingStatus.DOCUMENTS_RECEIVED,
        FilingStatus.UNDER_PREPARATION,
        FilingStatus.REVIEW_READY,
        FilingStatus.CUSTOMER_APPROVED,
        FilingStatus.E_FILED,
        FilingStatus.ACKNOWLEDGED,
        FilingStatus.COMPLETED,
        FilingStatus.ON_HOLD,
    ],
    FilingStatus.DOCUMENTS_RECEIVED: [
        FilingStatus.DOCUMENTS_PENDING,  # rework: documents found insufficient
        FilingStatus.UNDER_PREPARATION,
        FilingStatus.REVIEW_READY,
        FilingStatus.CUSTOMER_APPROVED,
        FilingStatus.E_FILED,
        FilingStatus.ACKNOWLEDGED,
        FilingStatus.COMPLETED,
        FilingStatus.ON_HOLD,
    ],
    FilingStatus.UNDER_PREPARATION: [
        FilingStatus.DOCUMENTS_PENDING,
        FilingStatus.REVIEW_READY,
        FilingStatus.CUSTOMER_APPROVED,
        FilingStatus.E_FILED,
        FilingStatus.ACKNOWLEDGED,
        FilingStatus.COMPLETED,
        FilingStatus.ON_HOLD,
    ],
    FilingStatus.REVIEW_READY: [
        FilingStatus.DOCUMENTS_PENDING,
        FilingStatus.UNDER_PREPARATION,  # rework: customer requested changes
        FilingStatus.CUSTOMER_APPROVED,
        FilingStatus.E_FILED,
        FilingStatus.ACKNOWLEDGED,
        FilingStatus.COMPLETED,
        FilingStatus.ON_HOLD,
    ],
    FilingStatus.CUSTOMER_APPROVED: [
        FilingStatus.DOCUMENTS_PENDING,
        FilingStatus.UNDER_PREPARATION,
        FilingStatus.E_FILED,
        FilingStatus.ACKNOWLEDGED,
        FilingStatus.COMPLETED,
        FilingStatus.ON_HOLD,
    ],
    FilingStatus.E_FILED: [
        FilingStatus.ACKNOWLEDGED,
        FilingStatus.COMPLETED,
        FilingStatus.ON_HOLD,
    ],
    FilingStatus.ACKNOWLEDGED: [
        FilingStatus.COMPLETED,
        FilingStatus.ON_HOLD,
    ],
    FilingStatus.COMPLETED: [
        FilingStatus.ON_HOLD,
    ],
    # Narrowed at runtime by the held-from status, see resume_targets()
    FilingStatus.ON_HOLD: list(STATUS_ORDER),
}


class StateTransitionError(BadRequestError):
    """Raised when an invalid state transition is attempted."""
    pass


def resume_targets(held_from: Optional[FilingStatus]) -> List[FilingStatus]:
    """Statuses a held filing may resume to.

    Args:
        held_from: Status the filing was in when it was put on hold
            (None for rows held before the status was tracked)

    Returns:
        The held-from status followed by every legal move from it
    """
    if held_from is None:
        return list(STATUS_ORDER)
    targets = [held_from]
    targets.extend(s for s in ALLOWED_TRANSITIONS[held_from] if s != FilingStatus.ON_HOLD)
    return targets


def get_allowed_transitions(
    status: FilingStatus,
    held_from: Optional[FilingStatus] = None,
) -> List[FilingStatus]:
    """Get list of allowed transitions from a given status.

    Args:
        status: Current status
        held_from: Pre-hold status, only consulted when status is ON_HOLD

    Returns:
        List of allowed target statuses
    """
    if status == FilingStatus.ON_HOLD:
        return resume_targets(held_from)
    return ALLOWED_TRANSITIONS.get(status, [])


def can_transition(
    current_status: FilingStatus,
    new_status: FilingStatus,
    held_from: Optional[FilingStatus] = None,
) -> bool:
    """Check if a state transition is allowed without raising exception."""
    return new_status in get_allowed_transitions(current_status, held_from)


def validate_transition(
    current_status: FilingStatus,
    new_status: FilingStatus,
    held_from: Optional[FilingStatus] = None,
) -> None:
    """Validate that a state transition is allowed.

    Args:
        current_status: Current filing status
        new_status: Target status to transition to
        held_from: Pre-hold status, only consulted when current_status is ON_HOLD

    Raises:
        StateTransitionError: If transition is not allowed
    """
    allowed = get_allowed_transitions(current_status, held_from)
    if new_status not in allowed:
        raise StateTransitionError(
            f"Invalid transition: {current_status.value} -> {new_status.value}. "
            f"Allowed transitions from {current_status.value}: "
            f"{[s.value for s in allowed]}"
        )


def status_label(status: FilingStatus) -> str:
    """Human-readable label, e.g. DOCUMENTS_RECEIVED -> 'DOCUMENTS RECEIVED'."""
    return FilingStatus(status).value.replace("_", " ")
