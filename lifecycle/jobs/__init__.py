"""
Background Jobs Module

Handles scheduled notification tasks:
- Daily expiry alerts
- Weekly inventory reports
"""

from lifecycle.jobs.scheduler import scheduler, start_scheduler, shutdown_scheduler, get_job_status
from lifecycle.jobs.tenant_job_runner import TenantJobRunner, run_tenant_job

__all__ = [
    "scheduler",
    "start_scheduler",
    "shutdown_scheduler",
    "get_job_status",
    "TenantJobRunner",
    "run_tenant_job",
]
