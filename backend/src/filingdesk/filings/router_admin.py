"""Staff filing endpoints.

Status changes, advisor assignment and financial updates. Requires a staff
role (TAX_ADVISOR, OPERATIONS, SUPER_ADMIN); statistics are limited to
OPERATIONS and SUPER_ADMIN.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ..auth.dependencies import StaffUser, StatsUser
from ..database import get_db
from ..dependencies import get_checklist_engine, get_filing_manager, kick_notification_dispatch
from ..documents.checklist import ChecklistEngine
from ..documents.schemas import ChecklistResponse
from .router import detail_response
from .schemas import (
    AdvisorAssign,
    FilingAdminDetailResponse,
    FilingAdminListResponse,
    FilingAdminResponse,
    FilingStatsResponse,
    FilingStatusUpdate,
    FinancialsUpdate,
    StatusLogResponse,
)
from .service import FilingLifecycleManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/filings", tags=["admin-filings"])


@router.get(
    "",
    response_model=FilingAdminListResponse,
    summary="List all filings",
    description="""
    **Filters:** status, assessment_year, service_type, advisor_id

    **Pagination:** page (1-indexed), limit (max 100)
    """
)
def list_filings(
    current_user: StaffUser,
    status: Optional[str] = Query(None),
    assessment_year: Optional[str] = Query(None),
    service_type: Optional[str] = Query(None),
    advisor_id: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    manager: FilingLifecycleManager = Depends(get_filing_manager),
) -> FilingAdminListResponse:
    result = manager.list_all(
        status=status,
        assessment_year=assessment_year,
        service_type=service_type,
        advisor_user_id=advisor_id,
        page=page,
        limit=limit,
    )
    return FilingAdminListResponse(
        items=[FilingAdminResponse.model_validate(f) for f in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/stats", response_model=FilingStatsResponse, summary="Filing statistics")
def filing_stats(
    current_user: StatsUser,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
) -> FilingStatsResponse:
    return FilingStatsResponse(**manager.get_stats())


@router.get("/{filing_id}", response_model=FilingAdminDetailResponse, summary="Get any filing")
def get_filing(
    filing_id: UUID,
    current_user: StaffUser,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
) -> FilingAdminDetailResponse:
    details = manager.get_details(filing_id)
    return detail_response(details, FilingAdminDetailResponse, FilingAdminResponse)


@router.get("/{filing_id}/history", response_model=List[StatusLogResponse], summary="Status history")
def get_filing_history(
    filing_id: UUID,
    current_user: StaffUser,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
) -> List[StatusLogResponse]:
    manager.get_details(filing_id)  # 404 for unknown filings
    return [StatusLogResponse.model_validate(row) for row in manager.get_status_history(filing_id)]


@router.get("/{filing_id}/checklist", response_model=ChecklistResponse, summary="Document checklist")
def get_filing_checklist(
    filing_id: UUID,
    current_user: StaffUser,
    engine: ChecklistEngine = Depends(get_checklist_engine),
) -> ChecklistResponse:
    return ChecklistResponse.from_checklist(engine.compute_checklist(filing_id))


@router.patch(
    "/{filing_id}/status",
    response_model=FilingAdminResponse,
    summary="Change filing status",
    description="""
    Move the filing along its lifecycle. Illegal transitions return 400 with
    the allowed targets. Leaving ON_HOLD requires a target that is the status
    the filing was held from or a legal move from it.

    **Audit Log:** STATUS_CHANGE
    """
)
def update_filing_status(
    filing_id: UUID,
    body: FilingStatusUpdate,
    current_user: StaffUser,
    background_tasks: BackgroundTasks,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
    db: Session = Depends(get_db),
) -> FilingAdminResponse:
    filing = manager.transition(filing_id, body.status, note=body.note, actor_id=current_user.id)
    db.commit()

    background_tasks.add_task(kick_notification_dispatch)
    return FilingAdminResponse.model_validate(filing)


@router.patch("/{filing_id}/advisor", response_model=FilingAdminResponse, summary="Assign advisor")
def assign_advisor(
    filing_id: UUID,
    body: AdvisorAssign,
    current_user: StaffUser,
    background_tasks: BackgroundTasks,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
    db: Session = Depends(get_db),
) -> FilingAdminResponse:
    filing = manager.assign_advisor(filing_id, body.advisor_id, actor_id=current_user.id)
    db.commit()

    background_tasks.add_task(kick_notification_dispatch)
    return FilingAdminResponse.model_validate(filing)


@router.patch("/{filing_id}/financials", response_model=FilingAdminResponse, summary="Update financial details")
def update_financials(
    filing_id: UUID,
    body: FinancialsUpdate,
    current_user: StaffUser,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
    db: Session = Depends(get_db),
) -> FilingAdminResponse:
    filing = manager.update_financials(
        filing_id,
        body.model_dump(exclude_unset=True),
        actor_id=current_user.id,
    )
    db.commit()
    return FilingAdminResponse.model_validate(filing)
