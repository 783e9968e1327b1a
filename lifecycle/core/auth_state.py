"""
Client-side auth state holder.

An explicit observable replacing a process-wide auth hook: it is created,
started once, fed identity provider events, and disposed by its owner.

Usage:
    state = AuthState(session_store, role_resolver)
    unsubscribe = state.subscribe(lambda s: print(s.subject, s.is_admin))
    await state.start(request.cookies)
    await state.handle_auth_event(AuthEvent.SIGNED_OUT)
    unsubscribe()
    state.dispose()
"""
import asyncio
import logging
from enum import Enum
from typing import Callable, List, Mapping, Optional

from lifecycle.core.roles import RoleResolver
from lifecycle.core.session_store import CookieJar, SessionStore, Subject

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


Listener = Callable[["AuthState"], None]


class AuthState:
    """
    Current subject, admin flag and loading flag, with change notification.

    loading is True until the first start() completes. is_admin is
    recomputed through the RoleResolver whenever the subject changes, so a
    failed lookup reads as not admin.
    """

    def __init__(self, session_store: SessionStore, role_resolver: RoleResolver):
        self._session_store = session_store
        self._role_resolver = role_resolver
        self._subject: Optional[Subject] = None
        self._is_admin = False
        self._loading = True
        self._start_task: Optional[asyncio.Future] = None
        self._disposed = False
        self._listeners: List[Listener] = []
        self.cookie_jar = CookieJar()

    @property
    def subject(self) -> Optional[Subject]:
        return self._subject

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    @property
    def is_authenticated(self) -> bool:
        return self._subject is not None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _ensure_active(self) -> None:
        if self._disposed:
            raise RuntimeError("AuthState has been disposed")

    async def start(self, cookies: Mapping[str, str]) -> None:
        """
        Resolve the existing session. Only the first call does any work;
        concurrent and later callers wait for that same resolution.
        """
        self._ensure_active()
        if self._start_task is None:
            self._start_task = asyncio.ensure_future(self._resolve_initial(cookies))
        await asyncio.shield(self._start_task)

    async def _resolve_initial(self, cookies: Mapping[str, str]) -> None:
        try:
            subject = await self._session_store.get_current_subject(cookies, self.cookie_jar)
        except Exception as e:
            logger.warning(f"Initial session lookup failed: {e}")
            subject = None

        if self._disposed:
            return
        await self._set_subject(subject)
        self._loading = False
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._ensure_active()
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def handle_auth_event(self, event: AuthEvent, subject: Optional[Subject] = None) -> None:
        """Apply an identity provider event and notify listeners."""
        self._ensure_active()
        event = AuthEvent(event)

        if event == AuthEvent.SIGNED_OUT:
            await self._set_subject(None)
        else:
            await self._set_subject(subject)

        logger.debug(f"Auth event {event.value}: authenticated={self.is_authenticated}")
        self._notify()

    def dispose(self) -> None:
        """Drop listeners and state. Any later use raises RuntimeError."""
        self._listeners.clear()
        self._subject = None
        self._is_admin = False
        self._disposed = True

    async def _set_subject(self, subject: Optional[Subject]) -> None:
        self._subject = subject
        if subject is None:
            self._is_admin = False
        else:
            self._is_admin = await self._role_resolver.is_admin(subject.id)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Auth state listener failed: {e}")
