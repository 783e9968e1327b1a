"""Pydantic schemas for the cron endpoints."""
from typing import List, Optional

from pydantic import BaseModel, Field


class TenantError(BaseModel):
    user_id: str
    email: Optional[str] = None
    error: Optional[str] = None


class CronRunResponse(BaseModel):
    """Summary of one notification job run."""
    message: str
    job: str
    status: str
    tenant_count: int = 0
    processed: int = 0
    emails_sent: int = 0
    duration_ms: Optional[int] = None
    errors: List[TenantError] = Field(default_factory=list)
