"""Pydantic schemas for the Documents API"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..domain.documents import DocumentCategory
from .checklist import Checklist
from .version_store import DocumentChain


# ============================================================================
# Requests
# ============================================================================

class ReviewRequest(BaseModel):
    """PATCH /admin/documents/{id}/review"""
    status: Literal["ACCEPTED", "REJECTED", "NEEDS_REUPLOAD"]
    rejection_note: Optional[str] = Field(None, max_length=2000)


class DocumentRequestCreate(BaseModel):
    """POST /admin/documents/request"""
    user_id: UUID
    category: DocumentCategory
    filing_id: Optional[UUID] = None
    note: str = Field(..., min_length=1, max_length=2000)


# ============================================================================
# Responses
# ============================================================================

class DocumentResponse(BaseModel):
    id: UUID
    owner_user_id: UUID
    filing_id: Optional[UUID] = None
    category: str
    file_name: str
    file_size_bytes: int
    mime_type: str
    status: str
    version: int
    chain_root_id: UUID
    rejection_note: Optional[str] = None
    reviewed_by_user_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentChainResponse(BaseModel):
    """One entry per chain: root identity, head state."""
    id: UUID  # root document id
    owner_user_id: UUID
    filing_id: Optional[UUID] = None
    category: str
    file_name: str
    status: str
    current_version: int
    current_document_id: UUID
    version_count: int
    rejection_note: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_chain(cls, chain: DocumentChain) -> "DocumentChainResponse":
        return cls(
            id=chain.root.id,
            owner_user_id=chain.root.owner_user_id,
            filing_id=chain.head.filing_id,
            category=chain.head.category,
            file_name=chain.head.file_name,
            status=chain.head.status,
            current_version=chain.head.version,
            current_document_id=chain.head.id,
            version_count=chain.version_count,
            rejection_note=chain.head.rejection_note,
            created_at=chain.root.created_at,
            updated_at=chain.head.created_at,
        )


class DocumentListResponse(BaseModel):
    items: List[DocumentChainResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class DocumentDetailResponse(BaseModel):
    document: DocumentResponse
    versions: List[DocumentResponse] = Field(default_factory=list)


class DownloadUrlResponse(BaseModel):
    url: str
    expires_in: int


class DocumentRequestResponse(BaseModel):
    message: str


class ChecklistItemResponse(BaseModel):
    category: str
    label: str
    status: str
    document_id: Optional[UUID] = None
    chain_root_id: Optional[UUID] = None
    version: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ChecklistResponse(BaseModel):
    filing_id: UUID
    service_type: str
    items: List[ChecklistItemResponse]
    required_count: int
    accepted_count: int
    completion_rate: int

    @classmethod
    def from_checklist(cls, checklist: Checklist) -> "ChecklistResponse":
        return cls(
            filing_id=checklist.filing_id,
            service_type=checklist.service_type,
            items=[ChecklistItemResponse.model_validate(item) for item in checklist.items],
            required_count=checklist.required_count,
            accepted_count=checklist.accepted_count,
            completion_rate=checklist.completion_rate,
        )
