"""Offset pagination shared by list endpoints.

Envelope: {items, total, page, limit, total_pages}
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def clamp(page: int, limit: int):
    """Normalise page/limit (page >= 1, 1 <= limit <= MAX_LIMIT)."""
    return max(1, page or 1), min(max(1, limit or DEFAULT_LIMIT), MAX_LIMIT)


def paginate(query, page: int = 1, limit: int = DEFAULT_LIMIT,
             transform: Optional[Callable[[Any], T]] = None) -> Page:
    """Run a SQLAlchemy Query for one page.

    Args:
        query: Ordered Query object
        page: 1-based page number
        limit: Page size
        transform: Optional mapping applied to each row
    """
    page, limit = clamp(page, limit)
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    if transform is not None:
        rows = [transform(row) for row in rows]
    return Page(items=rows, total=total, page=page, limit=limit)
