"""
Access gateway middleware.

Runs before any page logic on every navigation and decides whether the
caller may reach the requested route.

Evaluation order (first redirect wins):
1. Resolve the subject from the session cookie (re-verified every request)
2. Classify the path against the static route table
3. Rule A (gate): protected route without a subject -> /login?redirectTo=<path>
4. Rule B (reverse gate): login/signup with a subject -> redirectTo when
   deferred (Rule D), otherwise /admin for admins and /dashboard for others
5. Rule C (role gate): admin route with a non-admin subject -> /dashboard
6. Otherwise continue

Cookie writes produced while resolving the subject are buffered and attached
to whichever response is finally sent, redirect or not.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional
from urllib.parse import urlencode, urlsplit

from fastapi import FastAPI, Request
from starlette.responses import RedirectResponse, Response

from lifecycle.core.roles import RoleResolver, SqlRoleStore
from lifecycle.core.routes import (
    ADMIN_PATH,
    DASHBOARD_PATH,
    LOGIN_PATH,
    RouteClass,
    classify_path,
    is_excluded,
    requires_subject,
)
from lifecycle.core.session_store import CookieJar, CookieSessionStore, SessionStore, Subject

logger = logging.getLogger(__name__)

REDIRECT_PARAM = "redirectTo"
REDIRECT_STATUS_CODE = 307


class GatewayAction(str, Enum):
    CONTINUE = "continue"
    REDIRECT = "redirect"


@dataclass
class GatewayDecision:
    """Outcome of evaluating one request."""
    action: GatewayAction
    route_class: RouteClass
    subject: Optional[Subject] = None
    location: Optional[str] = None
    rule: Optional[str] = None
    cookie_jar: CookieJar = field(default_factory=CookieJar)

    @property
    def redirected(self) -> bool:
        return self.action == GatewayAction.REDIRECT

    def apply(self, response: Response) -> Response:
        """Attach the buffered cookie writes to the outgoing response."""
        return self.cookie_jar.apply(response)


def is_safe_redirect(target: Optional[str]) -> bool:
    """
    A deferred destination must be a site-relative path.
    Absolute and protocol-relative URLs are rejected, as are the auth forms
    themselves (which would bounce back through the reverse gate).
    """
    if not target or not target.startswith("/"):
        return False
    if target.startswith("//") or target.startswith("/\\"):
        return False
    parts = urlsplit(target)
    if parts.scheme or parts.netloc:
        return False
    return classify_path(parts.path) != RouteClass.PUBLIC


def login_redirect_location(path: str) -> str:
    """The original path is carried over; its query string is not."""
    return f"{LOGIN_PATH}?{urlencode({REDIRECT_PARAM: path})}"


class AccessGateway:
    """
    Request-time authorization state machine.

    Holds no per-request state; everything request-scoped lives in the
    GatewayDecision and its CookieJar.
    """

    def __init__(self, session_store: SessionStore, role_resolver: RoleResolver):
        self.session_store = session_store
        self.role_resolver = role_resolver

    async def resolve_subject(self, cookies: Mapping[str, str], jar: CookieJar) -> Optional[Subject]:
        """Resolution failures are treated as no subject."""
        try:
            return await self.session_store.get_current_subject(cookies, jar)
        except Exception as e:
            logger.warning(f"Subject resolution failed, continuing anonymously: {e}")
            return None

    async def evaluate(
        self,
        path: str,
        query_params: Mapping[str, str],
        cookies: Mapping[str, str],
    ) -> GatewayDecision:
        jar = CookieJar()
        subject = await self.resolve_subject(cookies, jar)
        route_class = classify_path(path)

        decision = GatewayDecision(
            action=GatewayAction.CONTINUE,
            route_class=route_class,
            subject=subject,
            cookie_jar=jar,
        )

        rules = (
            ("gate", self.rule_gate),
            ("reverse_gate", self.rule_reverse_gate),
            ("role_gate", self.rule_role_gate),
        )
        for name, rule in rules:
            location = await rule(path, query_params, route_class, subject)
            if location is not None:
                decision.action = GatewayAction.REDIRECT
                decision.location = location
                decision.rule = name
                logger.info(f"Gateway {name}: {path} -> {location}")
                break

        return decision

    async def rule_gate(
        self,
        path: str,
        query_params: Mapping[str, str],
        route_class: RouteClass,
        subject: Optional[Subject],
    ) -> Optional[str]:
        """Rule A: protected route without a subject goes to login."""
        if requires_subject(route_class) and subject is None:
            return login_redirect_location(path)
        return None

    async def rule_reverse_gate(
        self,
        path: str,
        query_params: Mapping[str, str],
        route_class: RouteClass,
        subject: Optional[Subject],
    ) -> Optional[str]:
        """Rule B: authenticated subjects never see the auth forms."""
        if route_class != RouteClass.PUBLIC or subject is None:
            return None

        deferred = self.deferred_destination(path, query_params, subject)
        if deferred is not None:
            return deferred

        if await self.role_resolver.is_admin(subject.id):
            return ADMIN_PATH
        return DASHBOARD_PATH

    async def rule_role_gate(
        self,
        path: str,
        query_params: Mapping[str, str],
        route_class: RouteClass,
        subject: Optional[Subject],
    ) -> Optional[str]:
        """Rule C: admin routes need the admin role."""
        if route_class != RouteClass.ADMIN_PROTECTED or subject is None:
            return None
        if await self.role_resolver.is_admin(subject.id):
            return None
        return DASHBOARD_PATH

    def deferred_destination(
        self,
        path: str,
        query_params: Mapping[str, str],
        subject: Optional[Subject],
    ) -> Optional[str]:
        """
        Rule D: an authenticated subject on exactly /login with a safe
        redirectTo is sent there. Evaluated inside Rule B.
        """
        if path != LOGIN_PATH or subject is None:
            return None
        target = query_params.get(REDIRECT_PARAM)
        if not target:
            return None
        if not is_safe_redirect(target):
            logger.warning(f"Ignoring unsafe {REDIRECT_PARAM} value: {target!r}")
            return None
        return target


def build_default_gateway() -> AccessGateway:
    """Gateway wired to the cookie session store and the user_roles table."""
    from lifecycle.database import async_session_factory

    return AccessGateway(
        session_store=CookieSessionStore(async_session_factory),
        role_resolver=RoleResolver(SqlRoleStore(async_session_factory)),
    )


def get_access_gateway(app: FastAPI) -> AccessGateway:
    """The gateway attached to the application, created on first use."""
    gateway = getattr(app.state, "access_gateway", None)
    if gateway is None:
        gateway = build_default_gateway()
        app.state.access_gateway = gateway
    return gateway


async def access_gateway_middleware(request: Request, call_next):
    """
    HTTP middleware applying the access gateway.

    API, docs and static paths skip the gateway.
    """
    path = request.url.path
    if is_excluded(path):
        return await call_next(request)

    gateway = get_access_gateway(request.app)
    decision = await gateway.evaluate(path, request.query_params, request.cookies)

    request.state.subject = decision.subject
    request.state.route_class = decision.route_class

    if decision.redirected:
        response = RedirectResponse(url=decision.location, status_code=REDIRECT_STATUS_CODE)
    else:
        response = await call_next(request)

    return decision.apply(response)
