"""Pydantic schemas for the admin pages."""
from datetime import datetime
from typing import Dict, Optional
import uuid

from pydantic import BaseModel

from lifecycle.models.role import AppRole


class AdminStatsResponse(BaseModel):
    """Platform-wide counts for the admin page."""
    total_users: int
    active_users: int
    admin_count: int
    total_products: int
    total_batches: int
    batches_by_status: Dict[str, int]


class AdminUserResponse(BaseModel):
    """A tenant account with its inventory counts."""
    id: uuid.UUID
    email: str
    business_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime
    is_active: bool
    is_admin: bool
    total_products: int
    active_batches: int


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserStatusResponse(BaseModel):
    success: bool
    message: str


class RoleChangeResponse(BaseModel):
    user_id: uuid.UUID
    role: AppRole
    has_role: bool
    changed: bool
