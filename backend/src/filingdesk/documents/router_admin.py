"""Staff document endpoints: browse, review queue, review, request."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import StaffUser
from ..config import settings
from ..database import get_db
from ..dependencies import get_review_pipeline, get_version_store, kick_notification_dispatch
from .review import DocumentReviewPipeline
from .schemas import (
    DocumentChainResponse,
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentRequestCreate,
    DocumentRequestResponse,
    DocumentResponse,
    DownloadUrlResponse,
    ReviewRequest,
)
from .version_store import DocumentVersionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/documents", tags=["admin-documents"])


def _list_response(result) -> DocumentListResponse:
    return DocumentListResponse(
        items=[DocumentChainResponse.from_chain(chain) for chain in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("", response_model=DocumentListResponse, summary="List all documents")
def list_documents(
    current_user: StaffUser,
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    filing_id: Optional[UUID] = Query(None),
    owner_id: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    store: DocumentVersionStore = Depends(get_version_store),
) -> DocumentListResponse:
    result = store.list_all(
        category=category,
        status=status,
        filing_id=filing_id,
        owner_user_id=owner_id,
        page=page,
        limit=limit,
    )
    return _list_response(result)


@router.get(
    "/queue",
    response_model=DocumentListResponse,
    summary="Review queue",
    description="Chains whose current version is PENDING, oldest first.",
)
def review_queue(
    current_user: StaffUser,
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    store: DocumentVersionStore = Depends(get_version_store),
) -> DocumentListResponse:
    return _list_response(store.review_queue(category=category, page=page, limit=limit))


@router.post(
    "/request",
    response_model=DocumentRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request an additional document",
)
def request_document(
    body: DocumentRequestCreate,
    current_user: StaffUser,
    background_tasks: BackgroundTasks,
    pipeline: DocumentReviewPipeline = Depends(get_review_pipeline),
    db: Session = Depends(get_db),
) -> DocumentRequestResponse:
    pipeline.request_additional(
        body.user_id,
        body.category,
        body.note,
        filing_id=body.filing_id,
        requester_id=current_user.id,
    )
    db.commit()

    background_tasks.add_task(kick_notification_dispatch)
    return DocumentRequestResponse(message="Document request sent")


@router.get("/{document_id}", response_model=DocumentDetailResponse, summary="Get any document")
def get_document(
    document_id: UUID,
    current_user: StaffUser,
    store: DocumentVersionStore = Depends(get_version_store),
) -> DocumentDetailResponse:
    result = store.get_document(document_id)
    return DocumentDetailResponse(
        document=DocumentResponse.model_validate(result.document),
        versions=[DocumentResponse.model_validate(v) for v in result.versions],
    )


@router.get("/{document_id}/download", response_model=DownloadUrlResponse, summary="Get a download URL")
def download_document(
    document_id: UUID,
    current_user: StaffUser,
    store: DocumentVersionStore = Depends(get_version_store),
) -> DownloadUrlResponse:
    url = store.get_download_url(document_id)
    return DownloadUrlResponse(url=url, expires_in=settings.DOWNLOAD_URL_EXPIRES_SECONDS)


@router.patch(
    "/{document_id}/review",
    response_model=DocumentResponse,
    summary="Review a document",
    description="""
    Record ACCEPTED, REJECTED or NEEDS_REUPLOAD for a PENDING version.
    REJECTED and NEEDS_REUPLOAD need a rejection_note of 10+ characters.
    A version can be reviewed exactly once.

    **Audit Log:** REVIEW
    """
)
def review_document(
    document_id: UUID,
    body: ReviewRequest,
    current_user: StaffUser,
    background_tasks: BackgroundTasks,
    pipeline: DocumentReviewPipeline = Depends(get_review_pipeline),
    db: Session = Depends(get_db),
) -> DocumentResponse:
    document = pipeline.review(document_id, body.status, body.rejection_note, current_user.id)
    db.commit()

    background_tasks.add_task(kick_notification_dispatch)
    return DocumentResponse.model_validate(document)
