"""Pydantic schemas for the Filings API"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..domain.filings import FilingStatus, ServiceType


# ============================================================================
# Requests
# ============================================================================

class FilingCreate(BaseModel):
    """POST /filings"""
    assessment_year: str = Field(..., pattern=r"^\d{4}-\d{4}$", examples=["2025-2026"])
    service_type: ServiceType

    model_config = ConfigDict(extra='forbid')


class FilingStatusUpdate(BaseModel):
    """PATCH /admin/filings/{id}/status"""
    status: FilingStatus
    note: Optional[str] = Field(None, max_length=2000)


class AdvisorAssign(BaseModel):
    """PATCH /admin/filings/{id}/advisor"""
    advisor_id: UUID


class FinancialsUpdate(BaseModel):
    """PATCH /admin/filings/{id}/financials (only supplied fields change)"""
    total_income: Optional[Decimal] = Field(None, ge=0)
    tax_payable: Optional[Decimal] = Field(None, ge=0)
    tax_paid: Optional[Decimal] = Field(None, ge=0)
    refund_amount: Optional[Decimal] = Field(None, ge=0)
    deadline: Optional[datetime] = None
    internal_notes: Optional[str] = Field(None, max_length=5000)

    model_config = ConfigDict(extra='forbid')


# ============================================================================
# Responses
# ============================================================================

class FilingResponse(BaseModel):
    id: UUID
    owner_user_id: UUID
    assessment_year: str
    service_type: str
    status: str
    held_from_status: Optional[str] = None
    advisor_user_id: Optional[UUID] = None
    total_income: Optional[Decimal] = None
    tax_payable: Optional[Decimal] = None
    tax_paid: Optional[Decimal] = None
    refund_amount: Optional[Decimal] = None
    deadline: Optional[datetime] = None
    filed_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FilingAdminResponse(FilingResponse):
    """Staff view; adds internal notes."""
    internal_notes: Optional[str] = None


class StatusLogResponse(BaseModel):
    id: UUID
    from_status: str
    to_status: str
    changed_by_user_id: Optional[UUID] = None
    note: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusStepResponse(BaseModel):
    status: FilingStatus
    completed: bool
    current: bool
    entered_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProgressResponse(BaseModel):
    progress: int = Field(..., ge=0, le=100)
    days_remaining: Optional[int] = None
    on_hold: bool = False
    status_steps: List[StatusStepResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class FilingDetailResponse(BaseModel):
    filing: FilingResponse
    progress: ProgressResponse
    status_history: List[StatusLogResponse] = Field(default_factory=list)


class FilingAdminDetailResponse(FilingDetailResponse):
    filing: FilingAdminResponse


class FilingListResponse(BaseModel):
    items: List[FilingResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class FilingAdminListResponse(FilingListResponse):
    items: List[FilingAdminResponse]


class FilingStatsResponse(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    active: int
    completed: int
    on_hold: int
