"""
Session Store Adapter.

Wraps the identity provider's session cookie. The gateway asks it for the
current subject on every request; while answering, the adapter may need to
renew or clear the session cookie. Those writes are recorded on a
request-scoped CookieJar and only reach the client once the gateway has
decided what to do with the request.

Usage:
    jar = CookieJar()
    subject = await store.get_current_subject(request.cookies, jar)
    ...
    jar.apply(response)
"""
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker
from starlette.responses import Response

from lifecycle.config import settings
from lifecycle.core.security import (
    create_session_token,
    token_expires_within,
    verify_session_token,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subject:
    """An authenticated identity as seen by the gateway."""
    id: uuid.UUID
    email: str
    business_name: str = ""


@dataclass
class CookieMutation:
    """A pending Set-Cookie instruction."""
    name: str
    value: str = ""
    max_age: Optional[int] = None
    delete: bool = False
    options: Dict[str, Any] = field(default_factory=dict)


class CookieJar:
    """Request-scoped buffer of cookie writes produced while resolving a subject."""

    def __init__(self):
        self._mutations: List[CookieMutation] = []

    @property
    def mutations(self) -> List[CookieMutation]:
        return list(self._mutations)

    def __len__(self) -> int:
        return len(self._mutations)

    def set_cookie(self, name: str, value: str, max_age: Optional[int] = None, **options) -> None:
        self._mutations.append(CookieMutation(name=name, value=value, max_age=max_age, options=options))

    def delete_cookie(self, name: str, **options) -> None:
        self._mutations.append(CookieMutation(name=name, delete=True, options=options))

    def apply(self, response: Response) -> Response:
        """Replay every recorded mutation onto an outgoing response, in order."""
        for mutation in self._mutations:
            if mutation.delete:
                response.delete_cookie(mutation.name, **mutation.options)
            else:
                response.set_cookie(
                    mutation.name,
                    mutation.value,
                    max_age=mutation.max_age,
                    **mutation.options,
                )
        return response


class SessionStore(ABC):
    """Identity provider session primitives consumed by the gateway."""

    @abstractmethod
    async def get_current_subject(
        self,
        cookies: Mapping[str, str],
        jar: CookieJar,
    ) -> Optional[Subject]:
        """
        Resolve the subject from the transport credential.

        Must re-verify the credential on every call. May record cookie
        writes (renewal, removal) on the jar.
        """
        pass


class CookieSessionStore(SessionStore):
    """
    Session store backed by a signed JWT cookie and the profiles table.

    A valid token close to expiry is re-issued (sliding session). A cookie
    that fails verification, or whose profile is gone or deactivated, is
    cleared.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        cookie_name: Optional[str] = None,
        expire_minutes: Optional[int] = None,
        renew_within_minutes: Optional[int] = None,
        secure: Optional[bool] = None,
    ):
        self.session_factory = session_factory
        self.cookie_name = cookie_name or settings.SESSION_COOKIE_NAME
        self.expire_minutes = expire_minutes or settings.SESSION_EXPIRE_MINUTES
        self.renew_window = timedelta(
            minutes=renew_within_minutes if renew_within_minutes is not None
            else settings.SESSION_RENEW_WITHIN_MINUTES
        )
        self.secure = settings.COOKIE_SECURE if secure is None else secure

    def cookie_options(self) -> Dict[str, Any]:
        return {"httponly": True, "samesite": "lax", "secure": self.secure, "path": "/"}

    def issue(self, jar: CookieJar, subject_id: uuid.UUID) -> None:
        """Record a fresh session cookie for the subject."""
        token = create_session_token(subject_id, timedelta(minutes=self.expire_minutes))
        jar.set_cookie(
            self.cookie_name,
            token,
            max_age=self.expire_minutes * 60,
            **self.cookie_options(),
        )

    def clear(self, jar: CookieJar) -> None:
        options = self.cookie_options()
        jar.delete_cookie(self.cookie_name, path=options["path"])

    async def get_current_subject(
        self,
        cookies: Mapping[str, str],
        jar: CookieJar,
    ) -> Optional[Subject]:
        token = cookies.get(self.cookie_name)
        if not token:
            return None

        payload = verify_session_token(token)
        if payload is None:
            logger.info("Session cookie failed verification, clearing it")
            self.clear(jar)
            return None

        try:
            subject_id = uuid.UUID(payload["sub"])
        except ValueError:
            logger.warning(f"Invalid subject in session token: {payload['sub']}")
            self.clear(jar)
            return None

        subject = await self._load_subject(subject_id)
        if subject is None:
            self.clear(jar)
            return None

        if token_expires_within(payload, self.renew_window):
            logger.debug(f"Renewing session cookie for {subject.email}")
            self.issue(jar, subject.id)

        return subject

    async def _load_subject(self, subject_id: uuid.UUID) -> Optional[Subject]:
        from lifecycle.models.profile import Profile

        async with self.session_factory() as session:
            result = await session.execute(
                select(Profile).where(Profile.id == subject_id)
            )
            profile = result.scalar_one_or_none()

        if profile is None:
            logger.info(f"No profile for session subject {subject_id}")
            return None

        if not profile.is_active:
            logger.info(f"Session subject {profile.email} is deactivated")
            return None

        return Subject(id=profile.id, email=profile.email, business_name=profile.business_name)
