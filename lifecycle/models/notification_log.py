"""Delivery bookkeeping for scheduled notifications."""
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, UniqueConstraint

from lifecycle.database import Base
from lifecycle.db_types import UUIDType


class NotificationKind(str, Enum):
    """Scheduled notification types."""
    DAILY_EXPIRY_ALERT = "daily_expiry_alert"
    WEEKLY_REPORT = "weekly_report"


class NotificationLog(Base):
    """
    One row per (tenant, kind, calendar day) that was delivered.
    Claimed by the dispatch jobs before sending; removed again if the send fails.
    """
    __tablename__ = "notification_log"
    __table_args__ = (
        UniqueConstraint("user_id", "kind", "sent_on", name="uq_notification_log_user_kind_day"),
    )

    id = Column(UUIDType, primary_key=True, default=uuid4)
    user_id = Column(UUIDType, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(50), nullable=False)
    sent_on = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
