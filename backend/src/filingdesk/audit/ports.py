"""Audit Sink Port - append-only record of who changed what.

Implementations must write within the caller's unit of work when they can,
so an audit entry exists exactly when the mutation it describes commits.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from uuid import UUID


class AuditSink(ABC):
    """Port interface for immutable audit records."""

    @abstractmethod
    def append(
        self,
        actor_id: Optional[UUID],
        action: str,
        entity_type: str,
        entity_id: UUID,
        old_value: Optional[Dict[str, Any]] = None,
        new_value: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append one audit record."""
