"""
Scheduled notification jobs.

Selection is delegated to the notification selector; these functions only
decide whether to send, claim the delivery, and send.

A delivery is claimed (committed to notification_log) before the email goes
out, so overlapping runs on the same day send at most once. A failed send
releases the claim.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from lifecycle.jobs.tenant_job_runner import OUTCOME_SENT, JobContext, tenant_job
from lifecycle.models.notification_log import NotificationKind
from lifecycle.services.inventory_store import InventoryStore, Recipient
from lifecycle.services.notification_selector import build_weekly_report, select_daily_alerts

logger = logging.getLogger(__name__)

DAILY_EXPIRY_ALERT_JOB = "daily_expiry_alert"
WEEKLY_REPORT_JOB = "weekly_report"


class NotificationDeliveryError(Exception):
    """Raised when the email service reports a failed send."""
    pass


@tenant_job(DAILY_EXPIRY_ALERT_JOB, NotificationKind.DAILY_EXPIRY_ALERT)
async def daily_expiry_alert_job(session: AsyncSession, recipient: Recipient, context: JobContext) -> str:
    """Email every batch inside the tenant's alert threshold, at most once a day."""
    if not recipient.is_active:
        logger.info(f"Skipping inactive user: {recipient.email}")
        return "skipped_inactive"

    store = InventoryStore(session)
    kind = NotificationKind.DAILY_EXPIRY_ALERT

    if await store.was_sent(recipient.user_id, kind, context.today):
        logger.info(f"Daily alert already sent to {recipient.email} on {context.today}")
        return "skipped_already_sent"

    products = await store.get_products(recipient.user_id)
    preference = await store.get_preference(recipient.user_id)
    alerts = select_daily_alerts(products, preference, context.today)

    if not alerts:
        logger.info(f"No expiring products for {recipient.email}")
        return "skipped_no_alerts"

    if not await store.claim_delivery(recipient.user_id, kind, context.today):
        return "skipped_already_sent"

    threshold = preference.alert_threshold if preference is not None else recipient.alert_threshold
    sent = context.email_service.send_daily_expiry_alert(
        recipient.email,
        recipient.business_name,
        alerts,
        threshold,
    )
    if not sent:
        await store.release_delivery(recipient.user_id, kind, context.today)
        raise NotificationDeliveryError(f"Failed to send daily alert to {recipient.email}")

    logger.info(f"Sent daily alert to {recipient.email} ({len(alerts)} batches)")
    return OUTCOME_SENT


@tenant_job(WEEKLY_REPORT_JOB, NotificationKind.WEEKLY_REPORT)
async def weekly_report_job(session: AsyncSession, recipient: Recipient, context: JobContext) -> str:
    """Weekly digest; sent even when the inventory is empty."""
    if not recipient.is_active:
        logger.info(f"Skipping inactive user: {recipient.email}")
        return "skipped_inactive"

    store = InventoryStore(session)
    kind = NotificationKind.WEEKLY_REPORT

    if await store.was_sent(recipient.user_id, kind, context.today):
        logger.info(f"Weekly report already sent to {recipient.email} on {context.today}")
        return "skipped_already_sent"

    products = await store.get_products(recipient.user_id)
    report = build_weekly_report(products, context.today)

    if not await store.claim_delivery(recipient.user_id, kind, context.today):
        return "skipped_already_sent"

    sent = context.email_service.send_weekly_report(recipient.email, recipient.business_name, report)
    if not sent:
        await store.release_delivery(recipient.user_id, kind, context.today)
        raise NotificationDeliveryError(f"Failed to send weekly report to {recipient.email}")

    logger.info(f"Sent weekly report to {recipient.email}")
    return OUTCOME_SENT
