import uuid
from datetime import date, timedelta
from typing import Iterable, Optional

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lifecycle.api.deps import get_job_runner
from lifecycle.config import settings
from lifecycle.core.roles import RoleResolver, RoleStore, SqlRoleStore
from lifecycle.core.security import create_session_token
from lifecycle.core.session_store import CookieSessionStore, SessionStore, Subject
from lifecycle.database import Base, get_db
from lifecycle.jobs.tenant_job_runner import TenantJobRunner
from lifecycle.main import app
from lifecycle.middleware.access_gateway import AccessGateway
from lifecycle.models import (
    AppRole,
    NotificationPreference,
    Product,
    ProductBatch,
    Profile,
    UserRole,
)

TODAY = date(2026, 3, 10)


# ==================== Fakes ====================

class FakeSessionStore(SessionStore):
    """Returns a fixed subject; optionally records a renewal or raises."""

    def __init__(self, subject: Optional[Subject] = None, renew: bool = False, error: Exception = None):
        self.subject = subject
        self.renew = renew
        self.error = error
        self.calls = 0

    async def get_current_subject(self, cookies, jar):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.renew:
            jar.set_cookie("lc-session", "renewed-token", max_age=3600, httponly=True, path="/")
        return self.subject


class FakeRoleStore(RoleStore):
    def __init__(self, admins: Iterable[uuid.UUID] = (), error: Exception = None):
        self.admins = set(admins)
        self.error = error
        self.calls = 0

    async def has_role(self, subject_id, role):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return AppRole(role) == AppRole.ADMIN and subject_id in self.admins

    async def grant_role(self, subject_id, role):
        if subject_id in self.admins:
            return False
        self.admins.add(subject_id)
        return True

    async def revoke_role(self, subject_id, role):
        if subject_id not in self.admins:
            return False
        self.admins.discard(subject_id)
        return True


class FakeEmailService:
    """Records sends instead of talking to SMTP."""

    def __init__(self, fail_for: Iterable[str] = ()):
        self.fail_for = set(fail_for)
        self.daily = []
        self.weekly = []

    def send_daily_expiry_alert(self, to_email, business_name, alerts, alert_threshold):
        if to_email in self.fail_for:
            return False
        self.daily.append((to_email, list(alerts), alert_threshold))
        return True

    def send_weekly_report(self, to_email, business_name, report):
        if to_email in self.fail_for:
            return False
        self.weekly.append((to_email, report))
        return True


# ==================== Database ====================

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def create_profile(
    session: AsyncSession,
    email: str,
    business_name: str = "Corner Pharmacy",
    is_active: bool = True,
    admin: bool = False,
    daily: bool = True,
    weekly: bool = False,
    threshold: int = 7,
) -> Profile:
    profile = Profile(email=email, business_name=business_name, is_active=is_active)
    session.add(profile)
    await session.flush()

    session.add(
        NotificationPreference(
            user_id=profile.id,
            daily_expiry_alerts_enabled=daily,
            weekly_report=weekly,
            alert_threshold=threshold,
        )
    )
    if admin:
        session.add(UserRole(user_id=profile.id, role=AppRole.ADMIN.value))
    await session.commit()
    return profile


async def create_product(
    session: AsyncSession,
    owner: Profile,
    name: str,
    category: str,
    expiries: Iterable[date],
    quantity: int = 10,
) -> Product:
    product = Product(user_id=owner.id, name=name, category=category)
    product.batches = [
        ProductBatch(batch_number=f"{name[:3].upper()}-{i}", expiry_date=expiry, quantity=quantity)
        for i, expiry in enumerate(expiries, start=1)
    ]
    session.add(product)
    await session.commit()
    return product


def days(n: int, today: date = TODAY) -> date:
    return today + timedelta(days=n)


# ==================== HTTP ====================

@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
async def client(session_factory, email_service):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    runner = TenantJobRunner(max_concurrent=1, session_factory=session_factory, email_service=email_service)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_job_runner] = lambda: runner
    app.state.access_gateway = AccessGateway(
        CookieSessionStore(session_factory),
        RoleResolver(SqlRoleStore(session_factory)),
    )

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()
    app.state.access_gateway = None


def sign_in(client, profile, lifetime=timedelta(hours=12)):
    client.cookies.clear()
    client.cookies.set(settings.SESSION_COOKIE_NAME, create_session_token(profile.id, lifetime))
