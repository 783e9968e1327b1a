"""
APScheduler Configuration

Triggers the tenant-aware notification jobs on a cron schedule:
- daily expiry alert at 09:00
- weekly report on Mondays at 10:00

Times are in SCHEDULER_TIMEZONE (UTC by default). The same jobs can be
triggered externally through the /api/cron endpoints.
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor

from lifecycle.config import settings

logger = logging.getLogger(__name__)

# Job stores
jobstores = {
    'default': MemoryJobStore()
}

# Executors
executors = {
    'default': AsyncIOExecutor(),
}

# Job defaults
job_defaults = {
    'coalesce': True,  # Combine multiple pending executions into one
    'max_instances': 1,  # Only one instance of each job at a time
    'misfire_grace_time': 3600,  # A daily job may still run up to an hour late
}

# Create scheduler
scheduler = AsyncIOScheduler(
    jobstores=jobstores,
    executors=executors,
    job_defaults=job_defaults,
    timezone=settings.SCHEDULER_TIMEZONE
)


async def run_tenant_aware_job(job_name: str):
    """
    Wrapper to run a tenant-aware job from the scheduler.

    Delegates to the TenantJobRunner which iterates the opted-in tenants.
    """
    from lifecycle.jobs.tenant_job_runner import run_tenant_job

    try:
        result = await run_tenant_job(job_name)
        logger.info(
            f"Job '{job_name}' completed: "
            f"{result.get('emails_sent', 0)}/{result.get('tenant_count', 0)} tenants notified"
        )
    except Exception as e:
        logger.error(f"Job '{job_name}' failed: {e}")


def start_scheduler():
    """Start the background job scheduler with the notification jobs."""
    if not scheduler.running:
        # This import triggers the @tenant_job decorators
        from lifecycle.jobs.notification_jobs import DAILY_EXPIRY_ALERT_JOB, WEEKLY_REPORT_JOB

        scheduler.add_job(
            run_tenant_aware_job,
            'cron',
            hour=9,
            minute=0,
            args=[DAILY_EXPIRY_ALERT_JOB],
            id=DAILY_EXPIRY_ALERT_JOB,
            name='[Multi-Tenant] Daily Expiry Alert',
            replace_existing=True,
        )

        scheduler.add_job(
            run_tenant_aware_job,
            'cron',
            day_of_week='mon',
            hour=10,
            minute=0,
            args=[WEEKLY_REPORT_JOB],
            id=WEEKLY_REPORT_JOB,
            name='[Multi-Tenant] Weekly Report',
            replace_existing=True,
        )

        scheduler.start()
        logger.info("Notification job scheduler started")

        for job in scheduler.get_jobs():
            logger.info(f"Scheduled job: {job.name} - Next run: {job.next_run_time}")


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Notification job scheduler stopped")


def get_job_status():
    """Get status of all scheduled jobs."""
    jobs = scheduler.get_jobs()
    return [
        {
            'id': job.id,
            'name': job.name,
            'next_run_time': str(job.next_run_time) if job.next_run_time else None,
            'trigger': str(job.trigger),
        }
        for job in jobs
    ]
