"""Read-side progress computation for filings.

Pure functions: nothing here touches the database. Callers pass the status
log rows when they want per-step dates.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from ...models.base import ensure_utc, utcnow
from .filing_status import FilingStatus, STATUS_ORDER


@dataclass
class StatusStep:
    status: FilingStatus
    completed: bool
    current: bool
    entered_at: Optional[datetime] = None


@dataclass
class FilingProgress:
    """Presentation-only view of where a filing stands."""
    progress: int
    days_remaining: Optional[int]
    on_hold: bool = False
    status_steps: List[StatusStep] = field(default_factory=list)


def effective_status(status: FilingStatus, held_from: Optional[FilingStatus]) -> Optional[FilingStatus]:
    """Linear status used for progress; ON_HOLD reports the held-from state."""
    if status == FilingStatus.ON_HOLD:
        return held_from
    return status


def progress_percent(status: Optional[FilingStatus]) -> int:
    """round((index + 1) / len(order) * 100); 0 when there is no linear status."""
    if status is None or status not in STATUS_ORDER:
        return 0
    index = STATUS_ORDER.index(status)
    return round((index + 1) / len(STATUS_ORDER) * 100)


def days_remaining(deadline: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """max(0, ceil((deadline - now) / 1 day)), or None without a deadline."""
    if deadline is None:
        return None
    now = ensure_utc(now) or utcnow()
    remaining = ensure_utc(deadline) - now
    return max(0, math.ceil(remaining / timedelta(days=1)))


def compute_progress(filing, status_log: Iterable = (), now: Optional[datetime] = None) -> FilingProgress:
    """Compute progress, days remaining and the per-step timeline.

    Args:
        filing: Filing row (status, held_from_status, deadline)
        status_log: FilingStatusLog rows for the filing, any order
        now: Reference time (defaults to current UTC time)

    Returns:
        FilingProgress
    """
    status = FilingStatus(filing.status)
    held_from = FilingStatus(filing.held_from_status) if filing.held_from_status else None
    current = effective_status(status, held_from)

    first_entered = {}
    for row in sorted(status_log, key=lambda r: ensure_utc(r.created_at)):
        first_entered.setdefault(row.to_status, ensure_utc(row.created_at))

    current_index = STATUS_ORDER.index(current) if current in STATUS_ORDER else -1
    steps = [
        StatusStep(
            status=step,
            completed=i <= current_index,
            current=i == current_index,
            entered_at=first_entered.get(step.value),
        )
        for i, step in enumerate(STATUS_ORDER)
    ]

    return FilingProgress(
        progress=progress_percent(current),
        days_remaining=days_remaining(filing.deadline, now),
        on_hold=status == FilingStatus.ON_HOLD,
        status_steps=steps,
    )
