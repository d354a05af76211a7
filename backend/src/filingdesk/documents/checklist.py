"""Required-document checklist for a filing.

Derived on every call, never persisted. Each required category of the
filing's service type reports the current status of its best chain, or
NOT_UPLOADED when the filing has no chain in that category.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..domain.documents import NOT_UPLOADED, DocumentStatus, category_label, required_categories
from ..domain.filings import parse_service_type
from ..errors import NotFoundError
from ..models.base import ensure_utc
from ..models.filing import Filing
from .version_store import DocumentChain, DocumentVersionStore

# Preference when several chains exist for one category
_STATUS_RANK = {
    DocumentStatus.ACCEPTED.value: 0,
    DocumentStatus.PENDING.value: 1,
    DocumentStatus.NEEDS_REUPLOAD.value: 2,
    DocumentStatus.REJECTED.value: 3,
}


@dataclass
class ChecklistItem:
    category: str
    label: str
    status: str
    document_id: Optional[UUID] = None
    chain_root_id: Optional[UUID] = None
    version: Optional[int] = None


@dataclass
class Checklist:
    filing_id: UUID
    service_type: str
    items: List[ChecklistItem] = field(default_factory=list)

    @property
    def required_count(self) -> int:
        return len(self.items)

    @property
    def accepted_count(self) -> int:
        return sum(1 for item in self.items if item.status == DocumentStatus.ACCEPTED.value)

    @property
    def completion_rate(self) -> int:
        if not self.items:
            return 100
        return round(100 * self.accepted_count / self.required_count)

    @property
    def is_complete(self) -> bool:
        return self.completion_rate == 100


def _best_chain(chains: List[DocumentChain]) -> DocumentChain:
    """ACCEPTED > PENDING > NEEDS_REUPLOAD > REJECTED, newest head first on ties."""
    newest_first = sorted(chains, key=lambda c: ensure_utc(c.head.created_at), reverse=True)
    return min(newest_first, key=lambda c: _STATUS_RANK.get(c.status, len(_STATUS_RANK)))


class ChecklistEngine:
    """Scores a filing's uploaded documents against its service type."""

    def __init__(self, db: Session, version_store: Optional[DocumentVersionStore] = None):
        self.db = db
        self.version_store = version_store or DocumentVersionStore(db, upload_store=None)

    def compute_checklist(self, filing_id: UUID, owner_user_id: Optional[UUID] = None) -> Checklist:
        """Checklist for a filing.

        Args:
            filing_id: Filing to score
            owner_user_id: Restrict to this owner (customers); None for staff

        Raises:
            NotFoundError: Filing missing or not owned
            BadRequestError: Filing carries an unknown service type
        """
        query = self.db.query(Filing).filter(Filing.id == filing_id)
        if owner_user_id is not None:
            query = query.filter(Filing.owner_user_id == owner_user_id)
        filing = query.first()
        if not filing:
            raise NotFoundError("Filing not found")

        return self.checklist_for(filing)

    def checklist_for(self, filing: Filing) -> Checklist:
        service_type = parse_service_type(filing.service_type)

        by_category: Dict[str, List[DocumentChain]] = {}
        for chain in self.version_store.list_all_chains_for_filing(filing.id):
            by_category.setdefault(chain.category, []).append(chain)

        items = []
        for category in required_categories(service_type):
            chains = by_category.get(category.value)
            if not chains:
                items.append(ChecklistItem(category=category.value, label=category_label(category), status=NOT_UPLOADED))
                continue
            best = _best_chain(chains)
            items.append(
                ChecklistItem(
                    category=category.value,
                    label=category_label(category),
                    status=best.status,
                    document_id=best.head.id,
                    chain_root_id=best.chain_root_id,
                    version=best.head.version,
                )
            )

        return Checklist(filing_id=filing.id, service_type=service_type.value, items=items)

    def is_complete(self, filing: Filing) -> bool:
        """Gate used by the filing lifecycle when REQUIRE_COMPLETE_CHECKLIST is on."""
        return self.checklist_for(filing).is_complete
