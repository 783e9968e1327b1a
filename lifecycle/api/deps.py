from typing import Annotated, Optional
import logging
import secrets

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from lifecycle.config import settings
from lifecycle.core.session_store import Subject
from lifecycle.database import get_db
from lifecycle.jobs.tenant_job_runner import TenantJobRunner, get_tenant_job_runner


logger = logging.getLogger(__name__)

# Bearer scheme for the cron endpoints; missing headers are handled below
cron_security = HTTPBearer(auto_error=False)


async def get_current_subject(request: Request) -> Subject:
    """
    Dependency returning the subject resolved by the access gateway.

    The gateway has already redirected anonymous callers away from protected
    pages; this guards routes reached any other way.
    """
    subject: Optional[Subject] = getattr(request.state, "subject", None)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return subject


async def get_current_admin(
    request: Request,
    subject: Annotated[Subject, Depends(get_current_subject)],
) -> Subject:
    """Dependency requiring the admin role."""
    from lifecycle.middleware.access_gateway import get_access_gateway

    gateway = get_access_gateway(request.app)
    if not await gateway.role_resolver.is_admin(subject.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return subject


async def verify_cron_secret(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(cron_security)],
) -> None:
    """
    Dependency validating `Authorization: Bearer <CRON_SECRET>`.
    With no CRON_SECRET configured every call is refused.
    """
    expected = settings.CRON_SECRET
    if (
        not expected
        or credentials is None
        or not secrets.compare_digest(credentials.credentials.encode(), expected.encode())
    ):
        logger.warning("Unauthorized cron job request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_job_runner() -> TenantJobRunner:
    return get_tenant_job_runner()


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentSubject = Annotated[Subject, Depends(get_current_subject)]
CurrentAdmin = Annotated[Subject, Depends(get_current_admin)]
JobRunner = Annotated[TenantJobRunner, Depends(get_job_runner)]
