"""
Tenant-Aware Job Runner

Runs a notification job once for every tenant that opted into it.

Architecture:
- Jobs are registered with the @tenant_job decorator, together with the
  notification kind that decides who receives them
- Runner lists the recipients from the settings table
- Each tenant gets its own session and its own try/except
- Failures in one tenant don't affect others
- The summary carries per-tenant results and a flat list of errors

Usage:
    @tenant_job("daily_expiry_alert", NotificationKind.DAILY_EXPIRY_ALERT)
    async def daily_expiry_alert(session, recipient, context):
        ...
        return "sent"
"""

import logging
import asyncio
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
from datetime import date, datetime, timezone
from functools import wraps

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lifecycle.database import get_db_context
from lifecycle.models.notification_log import NotificationKind
from lifecycle.services.email_service import EmailService
from lifecycle.services.inventory_store import InventoryStore, Recipient

logger = logging.getLogger(__name__)

# Outcome a job returns after actually delivering a notification
OUTCOME_SENT = "sent"

# Registry of tenant-aware jobs: name -> (kind, function)
_tenant_jobs: Dict[str, Tuple[NotificationKind, Callable]] = {}


@dataclass
class JobContext:
    """Shared, read-only inputs of one job run."""
    email_service: EmailService
    today: date


def tenant_job(name: str, kind: NotificationKind):
    """
    Decorator to register a tenant-aware notification job.

    The decorated function receives:
    - session: AsyncSession dedicated to this tenant
    - recipient: Recipient with user id, email, business name, threshold
    - context: JobContext with the email service and the run date

    It returns a short outcome string ("sent", "skipped_...").
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(session: AsyncSession, recipient: Recipient, context: JobContext):
            return await func(session, recipient, context)

        _tenant_jobs[name] = (kind, wrapper)
        logger.debug(f"Registered tenant job: {name}")
        return wrapper
    return decorator


def registered_jobs() -> List[str]:
    return list(_tenant_jobs.keys())


class TenantJobRunner:
    """
    Executes notification jobs across all opted-in tenants.

    Features:
    - Recipient lookup per notification kind
    - Session isolation per tenant
    - Error isolation (one tenant failure doesn't affect others)
    - Execution metrics and logging
    - Configurable concurrency
    """

    def __init__(
        self,
        max_concurrent: Optional[int] = None,
        session_factory: Optional[async_sessionmaker] = None,
        email_service: Optional[EmailService] = None,
    ):
        """
        Initialize the job runner.

        Args:
            max_concurrent: Max tenants to process concurrently
            session_factory: Session factory, defaults to the application's
            email_service: Email service, defaults to one built from settings
        """
        from lifecycle.config import settings

        self.max_concurrent = max_concurrent or settings.JOB_MAX_CONCURRENT_TENANTS
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._session_factory = session_factory
        self._email_service = email_service

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            from lifecycle.database import async_session_factory
            self._session_factory = async_session_factory
        return self._session_factory

    @property
    def email_service(self) -> EmailService:
        if self._email_service is None:
            from lifecycle.services.email_service import get_email_service
            self._email_service = get_email_service()
        return self._email_service

    async def get_recipients(self, kind: NotificationKind) -> List[Recipient]:
        """Fetch every tenant whose settings enable the given notification."""
        async with self.session_factory() as session:
            return await InventoryStore(session).list_recipients(kind)

    async def run_job_for_tenant(
        self,
        job_name: str,
        job_func: Callable,
        recipient: Recipient,
        context: JobContext,
    ) -> dict:
        """
        Execute a job for a single tenant.

        Returns:
            Result dictionary with status, outcome and metrics
        """
        start_time = datetime.now(timezone.utc)

        result = {
            "user_id": str(recipient.user_id),
            "email": recipient.email,
            "job": job_name,
            "status": "pending",
            "outcome": None,
            "started_at": start_time.isoformat(),
            "error": None,
            "duration_ms": 0
        }

        try:
            async with self._semaphore:
                async with get_db_context(self.session_factory) as session:
                    result["outcome"] = await job_func(session, recipient, context)
                result["status"] = "success"

        except Exception as e:
            result["status"] = "failed"
            result["error"] = str(e)
            logger.error(
                f"Job '{job_name}' failed for tenant '{recipient.email}': {e}"
            )

        end_time = datetime.now(timezone.utc)
        result["duration_ms"] = int((end_time - start_time).total_seconds() * 1000)
        result["completed_at"] = end_time.isoformat()

        return result

    async def run_job(self, job_name: str, today: Optional[date] = None) -> dict:
        """
        Run a job across all opted-in tenants.

        Args:
            job_name: Name of the registered job
            today: Run date, defaults to the current local date

        Returns:
            Summary dictionary with results per tenant
        """
        if job_name not in _tenant_jobs:
            raise ValueError(f"Unknown job: {job_name}. Registered: {registered_jobs()}")

        kind, job_func = _tenant_jobs[job_name]
        start_time = datetime.now(timezone.utc)
        context = JobContext(email_service=self.email_service, today=today or date.today())

        logger.info(f"Starting tenant job: {job_name}")

        recipients = await self.get_recipients(kind)

        if not recipients:
            logger.info(f"No tenants opted into '{job_name}'. Job skipped.")
            return {
                "job": job_name,
                "status": "skipped",
                "reason": "no_recipients",
                "tenant_count": 0,
                "processed": 0,
                "emails_sent": 0,
                "errors": [],
            }

        logger.info(f"Running '{job_name}' for {len(recipients)} tenants")

        tasks = [
            self.run_job_for_tenant(job_name, job_func, recipient, context)
            for recipient in recipients
        ]
        results = await asyncio.gather(*tasks)

        successful = sum(1 for r in results if r["status"] == "success")
        failed = sum(1 for r in results if r["status"] == "failed")
        emails_sent = sum(1 for r in results if r["outcome"] == OUTCOME_SENT)

        end_time = datetime.now(timezone.utc)
        total_duration = int((end_time - start_time).total_seconds() * 1000)

        summary = {
            "job": job_name,
            "status": "completed",
            "run_date": context.today.isoformat(),
            "started_at": start_time.isoformat(),
            "completed_at": end_time.isoformat(),
            "duration_ms": total_duration,
            "tenant_count": len(recipients),
            "processed": successful,
            "successful": successful,
            "failed": failed,
            "emails_sent": emails_sent,
            "errors": [
                {"user_id": r["user_id"], "email": r["email"], "error": r["error"]}
                for r in results if r["status"] == "failed"
            ],
            "results": list(results),
        }

        logger.info(
            f"Job '{job_name}' completed: {successful}/{len(recipients)} successful, "
            f"{emails_sent} emails sent in {total_duration}ms"
        )

        return summary


# Global runner instance
_runner: Optional[TenantJobRunner] = None


def get_tenant_job_runner() -> TenantJobRunner:
    """Get or create the global tenant job runner."""
    global _runner
    if _runner is None:
        _runner = TenantJobRunner()
    return _runner


async def run_tenant_job(job_name: str, runner: Optional[TenantJobRunner] = None) -> dict:
    """
    Convenience function to run a tenant job.

    Importing the job module registers the notification jobs.
    """
    from lifecycle.jobs import notification_jobs  # noqa: F401

    runner = runner or get_tenant_job_runner()
    return await runner.run_job(job_name)
