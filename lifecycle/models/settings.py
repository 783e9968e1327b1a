"""Database model for tenant notification preferences."""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Integer, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from lifecycle.database import Base
from lifecycle.db_types import UUIDType


DEFAULT_ALERT_THRESHOLD = 7
MIN_ALERT_THRESHOLD = 1
MAX_ALERT_THRESHOLD = 365


class NotificationPreference(Base):
    """
    Per-tenant notification settings.
    Mutated only by the tenant; read by the notification jobs.
    """
    __tablename__ = "settings"
    __table_args__ = (
        CheckConstraint(
            f"alert_threshold BETWEEN {MIN_ALERT_THRESHOLD} AND {MAX_ALERT_THRESHOLD}",
            name="ck_settings_alert_threshold",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=uuid4)

    user_id = Column(UUIDType, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Daily operational email with every batch inside the threshold
    daily_expiry_alerts_enabled = Column(Boolean, default=True, nullable=False)
    alert_threshold = Column(Integer, default=DEFAULT_ALERT_THRESHOLD, nullable=False)

    # Weekly strategic digest
    weekly_report = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    profile = relationship("Profile", back_populates="notification_preference")
