"""Filing lifecycle service.

Owns Filing rows, their status transitions and the status log. Every
mutation writes its entity change, status-log row, audit entry and outbox
event into the caller's session; the caller commits them together.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..audit.ports import AuditSink
from ..audit.service import AuditAction, DatabaseAuditSink
from ..auth.roles import UserRole, UserStatus
from ..config import settings
from ..database import is_unique_violation
from ..documents.checklist import ChecklistEngine
from ..domain.events import AdvisorAssigned, FilingInitiated, FilingStatusChanged
from ..domain.filings import (
    ACTIVE_STATUSES,
    STATUS_ORDER,
    FilingProgress,
    FilingStatus,
    compute_progress,
    parse_service_type,
    validate_assessment_year,
    validate_transition,
)
from ..errors import BadRequestError, ConflictError, NotFoundError
from ..models.base import utcnow
from ..models.filing import Filing, FilingStatusLog
from ..models.user import User
from ..notifications.outbox import OutboxWriter
from ..pagination import DEFAULT_LIMIT, Page, paginate

logger = logging.getLogger(__name__)

MONEY_FIELDS = ("total_income", "tax_payable", "tax_paid", "refund_amount")
FINANCIAL_FIELDS = MONEY_FIELDS + ("deadline", "internal_notes")

# First status that requires the document checklist to be complete
_CHECKLIST_GATE_INDEX = STATUS_ORDER.index(FilingStatus.DOCUMENTS_RECEIVED)


@dataclass
class FilingDetails:
    filing: Filing
    progress: FilingProgress
    status_history: List[FilingStatusLog] = field(default_factory=list)  # newest first


def parse_status(value) -> FilingStatus:
    try:
        return FilingStatus(value)
    except ValueError:
        raise BadRequestError(f"Unknown filing status: {value}")


def _to_money(name: str, value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise BadRequestError(f"{name} must be a decimal number")


class FilingLifecycleManager:
    """Create filings and move them through their lifecycle.

    Args:
        db: Session owned by the caller
        audit_sink: Defaults to DatabaseAuditSink on the same session
        outbox: Defaults to OutboxWriter
        checklist_gate: Object with is_complete(filing); consulted only when
            require_complete_checklist is on
        require_complete_checklist: Defaults to REQUIRE_COMPLETE_CHECKLIST
    """

    def __init__(
        self,
        db: Session,
        audit_sink: Optional[AuditSink] = None,
        outbox: Optional[OutboxWriter] = None,
        checklist_gate=None,
        require_complete_checklist: Optional[bool] = None,
    ):
        self.db = db
        self.audit = audit_sink or DatabaseAuditSink(db)
        self.outbox = outbox or OutboxWriter()
        self.checklist_gate = checklist_gate
        if require_complete_checklist is None:
            require_complete_checklist = settings.REQUIRE_COMPLETE_CHECKLIST
        self.require_complete_checklist = require_complete_checklist

    # ─── Writes ───────────────────────────────────────

    def initiate(self, owner_user_id: UUID, assessment_year: str, service_type: str) -> Filing:
        """Open a filing for an assessment year.

        Raises:
            BadRequestError: Malformed year or unknown service type
            NotFoundError: Owner does not exist
            ConflictError: Owner already has a filing for the year
        """
        assessment_year = validate_assessment_year(assessment_year)
        service = parse_service_type(service_type)

        if not self.db.get(User, owner_user_id):
            raise NotFoundError("User not found")

        filing = Filing(
            id=uuid.uuid4(),
            owner_user_id=owner_user_id,
            assessment_year=assessment_year,
            service_type=service.value,
            status=FilingStatus.INITIATED.value,
        )
        try:
            with self.db.begin_nested():
                self.db.add(filing)
        except IntegrityError as e:
            if is_unique_violation(e, "uq_filing_owner_year"):
                raise ConflictError(f"A filing for assessment year {assessment_year} already exists")
            raise

        self.db.add(
            FilingStatusLog(
                filing_id=filing.id,
                from_status=FilingStatus.INITIATED.value,
                to_status=FilingStatus.INITIATED.value,
                changed_by_user_id=owner_user_id,
                note="Filing initiated",
            )
        )
        self.audit.append(
            owner_user_id,
            AuditAction.FILING_INITIATED,
            "Filing",
            filing.id,
            new_value={"assessment_year": assessment_year, "service_type": service.value},
        )
        self.outbox.publish(
            self.db,
            FilingInitiated(
                filing_id=str(filing.id),
                owner_user_id=str(owner_user_id),
                assessment_year=assessment_year,
                service_type=service.value,
            ),
        )
        self.db.flush()

        logger.info(
            f"Filing initiated: {filing.id} by {owner_user_id}",
            extra={"filing_id": str(filing.id), "assessment_year": assessment_year},
        )
        return filing

    def transition(
        self,
        filing_id: UUID,
        to_status,
        note: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ) -> Filing:
        """Move a filing to another status.

        Entering E_FILED or ACKNOWLEDGED stamps filed_at / acknowledged_at
        the first time only. Entering ON_HOLD remembers the current status;
        leaving ON_HOLD is limited to that status or a legal move from it.

        Raises:
            NotFoundError: Filing missing
            StateTransitionError: Illegal edge (BadRequest)
            BadRequestError: Checklist gate not satisfied
            ConflictError: Status changed concurrently
        """
        target = parse_status(to_status)
        filing = self._get(filing_id)

        current = FilingStatus(filing.status)
        held_from = FilingStatus(filing.held_from_status) if filing.held_from_status else None
        validate_transition(current, target, held_from)

        if self.require_complete_checklist:
            self._check_checklist_gate(filing, current, held_from, target)

        now = utcnow()
        values: Dict[str, Any] = {"status": target.value, "updated_at": now}
        if target == FilingStatus.ON_HOLD:
            values["held_from_status"] = current.value
        else:
            values["held_from_status"] = None
        if target == FilingStatus.E_FILED and filing.filed_at is None:
            values["filed_at"] = now
        if target == FilingStatus.ACKNOWLEDGED and filing.acknowledged_at is None:
            values["acknowledged_at"] = now

        result = self.db.execute(
            update(Filing)
            .where(Filing.id == filing.id, Filing.status == current.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError("Filing was modified concurrently, please retry")
        self.db.refresh(filing)

        self.db.add(
            FilingStatusLog(
                filing_id=filing.id,
                from_status=current.value,
                to_status=target.value,
                changed_by_user_id=actor_id,
                note=note,
            )
        )
        self.audit.append(
            actor_id,
            AuditAction.STATUS_CHANGE,
            "Filing",
            filing.id,
            old_value={"status": current.value},
            new_value={"status": target.value, "note": note},
        )
        self.outbox.publish(
            self.db,
            FilingStatusChanged(
                filing_id=str(filing.id),
                owner_user_id=str(filing.owner_user_id),
                assessment_year=filing.assessment_year,
                from_status=current.value,
                to_status=target.value,
                actor_id=str(actor_id) if actor_id else None,
                note=note,
            ),
        )
        self.db.flush()

        logger.info(
            f"Filing {filing.id} status: {current.value} -> {target.value} by {actor_id}",
            extra={"filing_id": str(filing.id), "from_status": current.value, "to_status": target.value},
        )
        return filing

    def assign_advisor(self, filing_id: UUID, advisor_user_id: UUID, actor_id: Optional[UUID] = None) -> Filing:
        """Assign an active TAX_ADVISOR to a filing.

        Raises:
            NotFoundError: Filing missing
            BadRequestError: Advisor missing, not a TAX_ADVISOR, or inactive
        """
        filing = self._get(filing_id)

        advisor = self.db.get(User, advisor_user_id)
        if (
            not advisor
            or advisor.role != UserRole.TAX_ADVISOR.value
            or advisor.status != UserStatus.ACTIVE.value
        ):
            raise BadRequestError("Invalid advisor: user not found or not an active TAX_ADVISOR")

        previous = filing.advisor_user_id
        filing.advisor_user_id = advisor.id
        filing.updated_at = utcnow()

        self.audit.append(
            actor_id,
            AuditAction.ADVISOR_ASSIGNED,
            "Filing",
            filing.id,
            old_value={"advisor_user_id": str(previous) if previous else None},
            new_value={"advisor_user_id": str(advisor.id)},
        )
        self.outbox.publish(
            self.db,
            AdvisorAssigned(
                filing_id=str(filing.id),
                owner_user_id=str(filing.owner_user_id),
                advisor_user_id=str(advisor.id),
                assessment_year=filing.assessment_year,
                service_type=filing.service_type,
                actor_id=str(actor_id) if actor_id else None,
            ),
        )
        self.db.flush()

        logger.info(
            f"Advisor {advisor.id} assigned to filing {filing.id}",
            extra={"filing_id": str(filing.id), "advisor_user_id": str(advisor.id)},
        )
        return filing

    def update_financials(self, filing_id: UUID, fields: Dict[str, Any], actor_id: Optional[UUID] = None) -> Filing:
        """Partial update of the financial fields, deadline and internal notes.

        Only keys present in fields change; a None value clears the field.
        No status-log row and no notification.

        Raises:
            NotFoundError: Filing missing
            BadRequestError: Unknown field or malformed value
        """
        unknown = set(fields) - set(FINANCIAL_FIELDS)
        if unknown:
            raise BadRequestError(f"Cannot update fields: {sorted(unknown)}")

        filing = self._get(filing_id)

        for name, value in fields.items():
            if name in MONEY_FIELDS:
                value = _to_money(name, value)
            elif name == "deadline" and value is not None and not isinstance(value, datetime):
                raise BadRequestError("deadline must be a datetime")
            setattr(filing, name, value)

        if fields:
            filing.updated_at = utcnow()
        self.db.flush()

        logger.info(
            f"Filing {filing.id} financials updated by {actor_id}",
            extra={"filing_id": str(filing.id), "fields": sorted(fields)},
        )
        return filing

    # ─── Reads ────────────────────────────────────────

    def compute_progress(self, filing: Filing, now: Optional[datetime] = None) -> FilingProgress:
        return compute_progress(filing, self.get_status_history(filing.id), now=now)

    def get_for_owner(self, owner_user_id: UUID, filing_id: UUID) -> Filing:
        filing = self.db.query(Filing).filter(
            Filing.id == filing_id,
            Filing.owner_user_id == owner_user_id,
        ).first()
        if not filing:
            raise NotFoundError("Filing not found")
        return filing

    def get_details(self, filing_id: UUID, owner_user_id: Optional[UUID] = None) -> FilingDetails:
        """Filing with progress and status history (newest first)."""
        if owner_user_id is not None:
            filing = self.get_for_owner(owner_user_id, filing_id)
        else:
            filing = self._get(filing_id)
        history = self.get_status_history(filing.id)
        return FilingDetails(
            filing=filing,
            progress=compute_progress(filing, history),
            status_history=history,
        )

    def list_for_owner(
        self,
        owner_user_id: UUID,
        status: Optional[str] = None,
        assessment_year: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_LIMIT,
    ) -> Page:
        query = self.db.query(Filing).filter(Filing.owner_user_id == owner_user_id)
        if status:
            query = query.filter(Filing.status == parse_status(status).value)
        if assessment_year:
            query = query.filter(Filing.assessment_year == assessment_year)
        return paginate(query.order_by(Filing.created_at.desc()), page, limit)

    def list_all(
        self,
        status: Optional[str] = None,
        assessment_year: Optional[str] = None,
        service_type: Optional[str] = None,
        advisor_user_id: Optional[UUID] = None,
        page: int = 1,
        limit: int = DEFAULT_LIMIT,
    ) -> Page:
        query = self.db.query(Filing)
        if status:
            query = query.filter(Filing.status == parse_status(status).value)
        if assessment_year:
            query = query.filter(Filing.assessment_year == assessment_year)
        if service_type:
            query = query.filter(Filing.service_type == parse_service_type(service_type).value)
        if advisor_user_id is not None:
            query = query.filter(Filing.advisor_user_id == advisor_user_id)
        return paginate(query.order_by(Filing.created_at.desc()), page, limit)

    def get_stats(self) -> Dict[str, Any]:
        """Dashboard counters: totals by status and by service type."""
        by_status = dict(
            self.db.query(Filing.status, func.count(Filing.id)).group_by(Filing.status).all()
        )
        by_type = dict(
            self.db.query(Filing.service_type, func.count(Filing.id)).group_by(Filing.service_type).all()
        )
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_type": by_type,
            "active": sum(by_status.get(s.value, 0) for s in ACTIVE_STATUSES),
            "completed": by_status.get(FilingStatus.COMPLETED.value, 0),
            "on_hold": by_status.get(FilingStatus.ON_HOLD.value, 0),
        }

    def get_status_history(self, filing_id: UUID) -> List[FilingStatusLog]:
        return self.db.query(FilingStatusLog).filter(
            FilingStatusLog.filing_id == filing_id
        ).order_by(FilingStatusLog.created_at.desc(), FilingStatusLog.id).all()

    # ─── Internals ────────────────────────────────────

    def _get(self, filing_id: UUID) -> Filing:
        filing = self.db.get(Filing, filing_id)
        if not filing:
            raise NotFoundError("Filing not found")
        return filing

    def _check_checklist_gate(
        self,
        filing: Filing,
        current: FilingStatus,
        held_from: Optional[FilingStatus],
        target: FilingStatus,
    ) -> None:
        if target not in STATUS_ORDER or STATUS_ORDER.index(target) < _CHECKLIST_GATE_INDEX:
            return
        origin = held_from if current == FilingStatus.ON_HOLD else current
        if origin is not None and STATUS_ORDER.index(origin) >= _CHECKLIST_GATE_INDEX:
            return

        gate = self.checklist_gate or ChecklistEngine(self.db)
        if not gate.is_complete(filing):
            raise BadRequestError(
                f"All required documents must be accepted before moving to {target.value}"
            )
