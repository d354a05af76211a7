"""User roles for the filing desk.

Roles are flat, not hierarchical:
- CUSTOMER: Owns filings and documents
- TAX_ADVISOR: Prepares filings, reviews documents
- OPERATIONS: Runs the desk; everything a TAX_ADVISOR can do plus statistics
- SUPER_ADMIN: Everything

Permission Matrix:
┌──────────────────────┬──────────┬─────────────┬────────────┬─────────────┐
│ Action               │ CUSTOMER │ TAX_ADVISOR │ OPERATIONS │ SUPER_ADMIN │
├──────────────────────┼──────────┼─────────────┼────────────┼─────────────┤
│ Own filings/docs     │    ✓     │             │            │             │
│ Transition filings   │          │      ✓      │     ✓      │      ✓      │
│ Review documents     │          │      ✓      │     ✓      │      ✓      │
│ Filing statistics    │          │             │     ✓      │      ✓      │
└──────────────────────┴──────────┴─────────────┴────────────┴─────────────┘
"""

from enum import Enum
from typing import FrozenSet


class UserRole(str, Enum):
    """Values are stored as TEXT in the database and must match exactly."""
    CUSTOMER = "CUSTOMER"
    TAX_ADVISOR = "TAX_ADVISOR"
    OPERATIONS = "OPERATIONS"
    SUPER_ADMIN = "SUPER_ADMIN"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"


STAFF_ROLES: FrozenSet[UserRole] = frozenset({
    UserRole.TAX_ADVISOR,
    UserRole.OPERATIONS,
    UserRole.SUPER_ADMIN,
})

STATS_ROLES: FrozenSet[UserRole] = frozenset({
    UserRole.OPERATIONS,
    UserRole.SUPER_ADMIN,
})


def is_staff(role: str) -> bool:
    """
    Examples:
        >>> is_staff("OPERATIONS")
        True
        >>> is_staff("CUSTOMER")
        False
    """
    try:
        return UserRole(role) in STAFF_ROLES
    except ValueError:
        return False
