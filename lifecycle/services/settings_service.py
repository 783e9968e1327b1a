import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifecycle.models.profile import Profile
from lifecycle.models.settings import NotificationPreference

logger = logging.getLogger(__name__)


class SettingsService:
    """Business profile and notification preferences of one tenant."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, user_id: uuid.UUID) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()

    async def update_profile(self, user_id: uuid.UUID, data: dict) -> Optional[Profile]:
        """Update business name, phone and address. Email is owned by the identity provider."""
        profile = await self.get_profile(user_id)
        if not profile:
            return None

        for key, value in data.items():
            if value is not None:
                setattr(profile, key, value)

        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def get_preferences(self, user_id: uuid.UUID) -> Optional[NotificationPreference]:
        result = await self.db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def update_preferences(self, user_id: uuid.UUID, data: dict) -> Optional[NotificationPreference]:
        """
        Update the daily alert switch, alert threshold and weekly report switch.
        The threshold has already been bounds-checked by the request schema.
        """
        preference = await self.get_preferences(user_id)
        if not preference:
            return None

        for key, value in data.items():
            if value is not None:
                setattr(preference, key, value)

        await self.db.commit()
        await self.db.refresh(preference)

        logger.info(
            f"Notification preferences of {user_id}: daily={preference.daily_expiry_alerts_enabled}, "
            f"threshold={preference.alert_threshold}, weekly={preference.weekly_report}"
        )
        return preference
