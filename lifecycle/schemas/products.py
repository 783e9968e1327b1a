"""Pydantic schemas for tenant products and batches."""
from datetime import date, datetime
from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field

from lifecycle.services.expiry import ExpiryStatus


class BatchCreate(BaseModel):
    """One batch of a product."""
    batch_number: Optional[str] = Field(None, max_length=100)
    expiry_date: date
    quantity: Optional[int] = Field(None, ge=0)


class ProductBase(BaseModel):
    """Base product schema."""
    name: str = Field(..., min_length=2, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    supplier: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    barcode: Optional[str] = Field(None, max_length=100)


class ProductCreate(ProductBase):
    """Product creation schema."""
    batches: List[BatchCreate] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    """Product update schema. `batches`, when given, replaces every batch."""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    supplier: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    barcode: Optional[str] = Field(None, max_length=100)
    batches: Optional[List[BatchCreate]] = None


class BatchResponse(BaseModel):
    """Batch with its computed expiry status."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    batch_number: Optional[str] = None
    expiry_date: date
    quantity: Optional[int] = None
    days_until_expiry: int
    status: ExpiryStatus


class ProductResponse(BaseModel):
    """Product response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    category: str
    supplier: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    barcode: Optional[str] = None
    added_date: datetime
    total_quantity: int = 0
    batches: List[BatchResponse] = Field(default_factory=list)


class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    total: int
