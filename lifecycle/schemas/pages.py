"""Pydantic schemas for the page routes."""
from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from lifecycle.services.expiry import ExpiryStatus


class SubjectResponse(BaseModel):
    id: UUID
    email: str
    business_name: str = ""
    is_admin: bool = False


class BatchStatusResponse(BaseModel):
    """One batch with its computed expiry status."""
    product_id: Optional[UUID] = None
    product_name: str
    category: str
    batch_id: Optional[UUID] = None
    batch_number: Optional[str] = None
    expiry_date: date
    quantity: int = 0
    days_until_expiry: int
    status: ExpiryStatus
    supplier: Optional[str] = None
    location: Optional[str] = None


class DashboardSummary(BaseModel):
    total_products: int = 0
    total_batches: int = 0
    expired: int = 0
    urgent: int = 0
    warning: int = 0
    ok: int = 0


class DashboardResponse(BaseModel):
    """Response for the dashboard page."""
    subject: SubjectResponse
    summary: DashboardSummary
    batches: List[BatchStatusResponse] = Field(default_factory=list)


class AuthPageResponse(BaseModel):
    """Placeholder for the login/signup forms."""
    page: str
    redirect_to: Optional[str] = None
