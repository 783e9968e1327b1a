"""Cron trigger endpoints for the notification jobs.

External schedulers call these with `Authorization: Bearer <CRON_SECRET>`.
"""
import logging

from fastapi import APIRouter, Depends

from lifecycle.api.deps import JobRunner, verify_cron_secret
from lifecycle.jobs.notification_jobs import DAILY_EXPIRY_ALERT_JOB, WEEKLY_REPORT_JOB
from lifecycle.schemas.cron import CronRunResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


def _to_response(message: str, summary: dict) -> CronRunResponse:
    return CronRunResponse(
        message=message,
        job=summary["job"],
        status=summary["status"],
        tenant_count=summary.get("tenant_count", 0),
        processed=summary.get("processed", 0),
        emails_sent=summary.get("emails_sent", 0),
        duration_ms=summary.get("duration_ms"),
        errors=summary.get("errors", []),
    )


@router.get("/daily-summary", response_model=CronRunResponse)
async def run_daily_summary(runner: JobRunner):
    """Send the daily expiry alert to every opted-in tenant."""
    logger.info("Starting daily summary cron job")
    summary = await runner.run_job(DAILY_EXPIRY_ALERT_JOB)
    return _to_response("Daily summary cron job completed", summary)


@router.get("/weekly-report", response_model=CronRunResponse)
async def run_weekly_report(runner: JobRunner):
    """Send the weekly report to every opted-in tenant."""
    logger.info("Starting weekly report cron job")
    summary = await runner.run_job(WEEKLY_REPORT_JOB)
    return _to_response("Weekly report cron job completed", summary)
