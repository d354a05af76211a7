"""Customer document endpoints.

Upload, re-upload, list, download and delete the caller's own documents.
The size and MIME policy is checked here before the file reaches the core,
which checks it again.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from ..auth.dependencies import CurrentUser
from ..config import settings
from ..database import get_db
from ..dependencies import get_version_store
from ..domain.documents import DocumentCategory, is_supported_mime_type, validate_file_size
from ..errors import BadRequestError
from .schemas import (
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentChainResponse,
    DocumentResponse,
    DownloadUrlResponse,
)
from .version_store import DocumentVersionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


async def read_upload(file: UploadFile):
    """Read an upload after checking name, MIME type and size.

    Returns:
        Tuple of (file_name, mime_type, data)

    Raises:
        BadRequestError: If the file breaks the upload policy
    """
    if not file.filename:
        raise BadRequestError("File name is required")

    mime_type = file.content_type or "application/octet-stream"
    if not is_supported_mime_type(mime_type):
        raise BadRequestError(f"Unsupported file type {mime_type}. Allowed: PDF, JPG, JPEG, PNG, DOCX")

    if file.size is not None and file.size > settings.MAX_UPLOAD_SIZE_BYTES:
        raise BadRequestError(f"File exceeds maximum size of {settings.MAX_UPLOAD_SIZE_BYTES} bytes")

    data = await file.read()
    ok, error = validate_file_size(len(data))
    if not ok:
        raise BadRequestError(error)

    return file.filename, mime_type, data


@router.post(
    "/upload",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document",
    description="""
    Upload a file (multipart/form-data) as version 1 of a new document.

    **Limits:** 10 MB; PDF, JPG, JPEG, PNG, DOCX

    filing_id is optional; when given it must be one of your filings.
    """
)
async def upload_document(
    current_user: CurrentUser,
    file: UploadFile = File(...),
    category: DocumentCategory = Form(...),
    filing_id: Optional[UUID] = Form(None),
    store: DocumentVersionStore = Depends(get_version_store),
    db: Session = Depends(get_db),
) -> DocumentResponse:
    file_name, mime_type, data = await read_upload(file)

    document = store.upload(
        current_user.id,
        file_name,
        data,
        mime_type,
        category,
        filing_id=filing_id,
    )
    db.commit()
    return DocumentResponse.model_validate(document)


@router.post(
    "/{document_id}/reupload",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Re-upload a rejected document",
)
async def reupload_document(
    document_id: UUID,
    current_user: CurrentUser,
    file: UploadFile = File(...),
    store: DocumentVersionStore = Depends(get_version_store),
    db: Session = Depends(get_db),
) -> DocumentResponse:
    file_name, mime_type, data = await read_upload(file)

    document = store.reupload(current_user.id, document_id, file_name, data, mime_type)
    db.commit()
    return DocumentResponse.model_validate(document)


@router.get("", response_model=DocumentListResponse, summary="List my documents")
def list_my_documents(
    current_user: CurrentUser,
    category: Optional[str] = Query(None),
    filing_id: Optional[UUID] = Query(None),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    store: DocumentVersionStore = Depends(get_version_store),
) -> DocumentListResponse:
    result = store.list_roots(
        current_user.id,
        category=category,
        filing_id=filing_id,
        status=status,
        page=page,
        limit=limit,
    )
    return DocumentListResponse(
        items=[DocumentChainResponse.from_chain(chain) for chain in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/{document_id}", response_model=DocumentDetailResponse, summary="Get my document with versions")
def get_my_document(
    document_id: UUID,
    current_user: CurrentUser,
    store: DocumentVersionStore = Depends(get_version_store),
) -> DocumentDetailResponse:
    result = store.get_document(document_id, owner_user_id=current_user.id)
    return DocumentDetailResponse(
        document=DocumentResponse.model_validate(result.document),
        versions=[DocumentResponse.model_validate(v) for v in result.versions],
    )


@router.get("/{document_id}/download", response_model=DownloadUrlResponse, summary="Get a download URL")
def download_my_document(
    document_id: UUID,
    current_user: CurrentUser,
    store: DocumentVersionStore = Depends(get_version_store),
) -> DownloadUrlResponse:
    url = store.get_download_url(document_id, owner_user_id=current_user.id)
    return DownloadUrlResponse(url=url, expires_in=settings.DOWNLOAD_URL_EXPIRES_SECONDS)


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a document",
    description="Deletes the whole chain. Accepted documents cannot be deleted (403).",
)
def delete_my_document(
    document_id: UUID,
    current_user: CurrentUser,
    store: DocumentVersionStore = Depends(get_version_store),
    db: Session = Depends(get_db),
) -> Response:
    store.delete(current_user.id, document_id, actor_id=current_user.id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
