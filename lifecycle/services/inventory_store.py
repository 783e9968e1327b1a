import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy import select, exists, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lifecycle.models.notification_log import NotificationKind, NotificationLog
from lifecycle.models.product import Product, ProductBatch
from lifecycle.models.profile import Profile
from lifecycle.models.role import AppRole, UserRole
from lifecycle.models.settings import NotificationPreference
from lifecycle.services.expiry import ExpiryStatus, InvalidExpiryDateError, get_expiry_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    """A tenant that opted into a scheduled notification."""
    user_id: uuid.UUID
    email: str
    business_name: str
    is_active: bool
    alert_threshold: int


class InventoryStore:
    """
    Read access to tenant inventory and notification preferences, the
    delivery bookkeeping used by the notification jobs, and the admin
    account overview.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_recipients(self, kind: NotificationKind) -> List[Recipient]:
        """Tenants whose preference enables the given notification kind."""
        if kind == NotificationKind.DAILY_EXPIRY_ALERT:
            flag = NotificationPreference.daily_expiry_alerts_enabled
        else:
            flag = NotificationPreference.weekly_report

        stmt = (
            select(Profile, NotificationPreference.alert_threshold)
            .join(NotificationPreference, NotificationPreference.user_id == Profile.id)
            .where(flag == True)  # noqa: E712
            .order_by(Profile.created_at)
        )
        result = await self.db.execute(stmt)
        return [
            Recipient(
                user_id=profile.id,
                email=profile.email,
                business_name=profile.business_name,
                is_active=profile.is_active,
                alert_threshold=threshold,
            )
            for profile, threshold in result.all()
        ]

    async def get_products(self, user_id: uuid.UUID) -> List[Product]:
        """All products of a tenant with their batches loaded."""
        stmt = (
            select(Product)
            .options(selectinload(Product.batches))
            .where(Product.user_id == user_id)
            .order_by(Product.name)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_preference(self, user_id: uuid.UUID) -> Optional[NotificationPreference]:
        result = await self.db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def was_sent(self, user_id: uuid.UUID, kind: NotificationKind, day: date) -> bool:
        stmt = select(
            exists().where(
                NotificationLog.user_id == user_id,
                NotificationLog.kind == kind.value,
                NotificationLog.sent_on == day,
            )
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def claim_delivery(self, user_id: uuid.UUID, kind: NotificationKind, day: date) -> bool:
        """
        Reserve the (user, kind, day) delivery before sending.

        The row is committed immediately so overlapping runs see it; the
        unique constraint decides which run gets to send.

        Returns:
            False if another run already claimed the same delivery
        """
        self.db.add(NotificationLog(user_id=user_id, kind=kind.value, sent_on=day))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Delivery of {kind.value} to {user_id} on {day} already claimed")
            return False
        return True

    async def release_delivery(self, user_id: uuid.UUID, kind: NotificationKind, day: date) -> None:
        """Drop a claim whose send failed, so the next run retries it."""
        await self.db.execute(
            delete(NotificationLog).where(
                NotificationLog.user_id == user_id,
                NotificationLog.kind == kind.value,
                NotificationLog.sent_on == day,
            )
        )
        await self.db.commit()

    # ==================== ADMIN STATISTICS ====================

    async def get_admin_stats(self) -> dict:
        """Platform-wide counts for the admin overview."""
        total_users = (await self.db.execute(select(func.count(Profile.id)))).scalar() or 0
        active_users = (await self.db.execute(
            select(func.count(Profile.id)).where(Profile.is_active == True)  # noqa: E712
        )).scalar() or 0
        admin_count = (await self.db.execute(
            select(func.count(UserRole.id)).where(UserRole.role == AppRole.ADMIN.value)
        )).scalar() or 0
        total_products = (await self.db.execute(select(func.count(Product.id)))).scalar() or 0
        total_batches = (await self.db.execute(select(func.count(ProductBatch.id)))).scalar() or 0

        expiry_dates = (await self.db.execute(select(ProductBatch.expiry_date))).scalars().all()
        batches_by_status = {status.value: 0 for status in ExpiryStatus}
        for expiry_date in expiry_dates:
            try:
                batches_by_status[get_expiry_status(expiry_date).value] += 1
            except InvalidExpiryDateError:
                continue

        return {
            "batches_by_status": batches_by_status,
            "total_users": total_users,
            "active_users": active_users,
            "admin_count": admin_count,
            "total_products": total_products,
            "total_batches": total_batches,
        }

    async def list_users_with_stats(self, today: Optional[date] = None) -> List[dict]:
        """
        Every profile, newest first, with its product count and the number of
        batches that have not expired yet.
        """
        today = today or date.today()

        profiles = (await self.db.execute(
            select(Profile).order_by(Profile.created_at.desc())
        )).scalars().all()

        product_counts = dict((await self.db.execute(
            select(Product.user_id, func.count(Product.id)).group_by(Product.user_id)
        )).all())
        active_batch_counts = dict((await self.db.execute(
            select(Product.user_id, func.count(ProductBatch.id))
            .join(ProductBatch, ProductBatch.product_id == Product.id)
            .where(ProductBatch.expiry_date >= today)
            .group_by(Product.user_id)
        )).all())
        admin_ids = set((await self.db.execute(
            select(UserRole.user_id).where(UserRole.role == AppRole.ADMIN.value)
        )).scalars().all())

        return [
            {
                "id": profile.id,
                "email": profile.email,
                "business_name": profile.business_name,
                "phone": profile.phone,
                "address": profile.address,
                "created_at": profile.created_at,
                "is_active": profile.is_active,
                "is_admin": profile.id in admin_ids,
                "total_products": product_counts.get(profile.id, 0),
                "active_batches": active_batch_counts.get(profile.id, 0),
            }
            for profile in profiles
        ]

    async def set_user_status(self, user_id: uuid.UUID, is_active: bool) -> Optional[Profile]:
        """Activate or deactivate an account. Deactivated accounts lose their session."""
        profile = (await self.db.execute(
            select(Profile).where(Profile.id == user_id)
        )).scalar_one_or_none()
        if not profile:
            return None

        profile.is_active = is_active
        await self.db.commit()
        logger.info(f"User {profile.email} {'activated' if is_active else 'deactivated'}")
        return profile
