"""
Static route classification for the access gateway.

The prefix table is fixed; it is not read from settings or the environment.
Matching is plain string-prefix (a path "starts with" the prefix), longest
prefix first.
"""
from enum import Enum
from typing import Optional, Tuple


class RouteClass(str, Enum):
    """Access class of a requested path."""
    PUBLIC = "public"  # login / signup forms
    PROTECTED = "protected"  # requires a subject
    ADMIN_PROTECTED = "admin_protected"  # requires a subject holding admin
    UNCLASSIFIED = "unclassified"  # passes through untouched


LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
DASHBOARD_PATH = "/dashboard"
ADMIN_PATH = "/admin"

PROTECTED_PREFIXES: Tuple[str, ...] = ("/dashboard", "/admin", "/products", "/settings")
ADMIN_PREFIXES: Tuple[str, ...] = ("/admin",)
PUBLIC_PREFIXES: Tuple[str, ...] = (LOGIN_PATH, SIGNUP_PATH)

# Paths the gateway never sees
EXCLUDED_PREFIXES: Tuple[str, ...] = (
    "/api",
    "/static",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/health",
    "/favicon.ico",
)

# Longest prefix first; ADMIN is checked before the shorter PROTECTED entry for the same prefix
_ROUTE_TABLE: Tuple[Tuple[str, RouteClass], ...] = tuple(
    sorted(
        [(prefix, RouteClass.ADMIN_PROTECTED) for prefix in ADMIN_PREFIXES]
        + [(prefix, RouteClass.PROTECTED) for prefix in PROTECTED_PREFIXES if prefix not in ADMIN_PREFIXES]
        + [(prefix, RouteClass.PUBLIC) for prefix in PUBLIC_PREFIXES],
        key=lambda entry: len(entry[0]),
        reverse=True,
    )
)


def match_prefix(path: str) -> Optional[Tuple[str, RouteClass]]:
    """Return the longest (prefix, class) entry the path starts with, if any."""
    for prefix, route_class in _ROUTE_TABLE:
        if path.startswith(prefix):
            return prefix, route_class
    return None


def classify_path(path: str) -> RouteClass:
    """Classify a request path into its RouteClass."""
    match = match_prefix(path)
    if match is None:
        return RouteClass.UNCLASSIFIED
    return match[1]


def requires_subject(route_class: RouteClass) -> bool:
    """Admin-protected routes are also protected routes."""
    return route_class in (RouteClass.PROTECTED, RouteClass.ADMIN_PROTECTED)


def is_excluded(path: str) -> bool:
    """Paths outside the gateway's reach (API, docs, static assets)."""
    return any(path == prefix or path.startswith(prefix.rstrip("/") + "/") for prefix in EXCLUDED_PREFIXES)
