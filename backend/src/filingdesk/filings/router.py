"""Customer-facing filing endpoints.

Customers open filings and follow their progress. Every query is scoped to
the authenticated owner; another owner's filing is reported as not found.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ..auth.dependencies import CurrentUser
from ..database import get_db
from ..dependencies import get_checklist_engine, get_filing_manager, kick_notification_dispatch
from ..documents.checklist import ChecklistEngine
from ..documents.schemas import ChecklistResponse
from .schemas import (
    FilingCreate,
    FilingDetailResponse,
    FilingListResponse,
    FilingResponse,
    ProgressResponse,
    StatusLogResponse,
)
from .service import FilingDetails, FilingLifecycleManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/filings", tags=["filings"])


def detail_response(details: FilingDetails, schema=FilingDetailResponse, filing_schema=FilingResponse):
    return schema(
        filing=filing_schema.model_validate(details.filing),
        progress=ProgressResponse.model_validate(details.progress),
        status_history=[StatusLogResponse.model_validate(row) for row in details.status_history],
    )


@router.post(
    "",
    response_model=FilingResponse,
    status_code=201,
    summary="Initiate a filing",
    description="""
    Open a tax filing for an assessment year.

    **Rules:**
    - One filing per user per assessment year (409 on duplicates)
    - assessment_year must be YYYY-YYYY
    - service_type: individual, corporate or nrb

    The filing starts in INITIATED and the owner is notified.
    """
)
def initiate_filing(
    body: FilingCreate,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
    db: Session = Depends(get_db),
) -> FilingResponse:
    filing = manager.initiate(current_user.id, body.assessment_year, body.service_type.value)
    db.commit()

    background_tasks.add_task(kick_notification_dispatch)
    return FilingResponse.model_validate(filing)


@router.get(
    "",
    response_model=FilingListResponse,
    summary="List my filings",
)
def list_my_filings(
    current_user: CurrentUser,
    status: Optional[str] = Query(None, description="Filter by status"),
    assessment_year: Optional[str] = Query(None, description="Filter by assessment year"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    manager: FilingLifecycleManager = Depends(get_filing_manager),
) -> FilingListResponse:
    result = manager.list_for_owner(
        current_user.id,
        status=status,
        assessment_year=assessment_year,
        page=page,
        limit=limit,
    )
    return FilingListResponse(
        items=[FilingResponse.model_validate(f) for f in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get(
    "/{filing_id}",
    response_model=FilingDetailResponse,
    summary="Get my filing with progress and history",
)
def get_my_filing(
    filing_id: UUID,
    current_user: CurrentUser,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
) -> FilingDetailResponse:
    details = manager.get_details(filing_id, owner_user_id=current_user.id)
    return detail_response(details)


@router.get(
    "/{filing_id}/progress",
    response_model=ProgressResponse,
    summary="Get filing progress",
)
def get_my_filing_progress(
    filing_id: UUID,
    current_user: CurrentUser,
    manager: FilingLifecycleManager = Depends(get_filing_manager),
) -> ProgressResponse:
    filing = manager.get_for_owner(current_user.id, filing_id)
    return ProgressResponse.model_validate(manager.compute_progress(filing))


@router.get(
    "/{filing_id}/checklist",
    response_model=ChecklistResponse,
    summary="Get the required-document checklist",
)
def get_my_filing_checklist(
    filing_id: UUID,
    current_user: CurrentUser,
    engine: ChecklistEngine = Depends(get_checklist_engine),
) -> ChecklistResponse:
    checklist = engine.compute_checklist(filing_id, owner_user_id=current_user.id)
    return ChecklistResponse.from_checklist(checklist)
