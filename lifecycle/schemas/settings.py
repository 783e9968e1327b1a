"""Pydantic schemas for tenant settings."""
from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field

from lifecycle.models.settings import MAX_ALERT_THRESHOLD, MIN_ALERT_THRESHOLD


class ProfileUpdate(BaseModel):
    """Business profile update schema."""
    business_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    business_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime


class NotificationPreferencesUpdate(BaseModel):
    """Daily alerts switch, alert threshold in days, weekly report switch."""
    daily_expiry_alerts_enabled: bool
    alert_threshold: int = Field(..., ge=MIN_ALERT_THRESHOLD, le=MAX_ALERT_THRESHOLD)
    weekly_report: bool


class NotificationPreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    daily_expiry_alerts_enabled: bool
    alert_threshold: int
    weekly_report: bool
    updated_at: datetime


class SettingsResponse(BaseModel):
    """Everything the settings page shows."""
    profile: ProfileResponse
    notifications: Optional[NotificationPreferencesResponse] = None
