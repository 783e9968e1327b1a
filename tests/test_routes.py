import pytest

from lifecycle.core.routes import (
    RouteClass,
    classify_path,
    is_excluded,
    match_prefix,
    requires_subject,
)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/dashboard", RouteClass.PROTECTED),
        ("/dashboard/stats", RouteClass.PROTECTED),
        ("/products", RouteClass.PROTECTED),
        ("/products/new", RouteClass.PROTECTED),
        ("/settings", RouteClass.PROTECTED),
        ("/admin", RouteClass.ADMIN_PROTECTED),
        ("/admin/analytics", RouteClass.ADMIN_PROTECTED),
        ("/login", RouteClass.PUBLIC),
        ("/signup", RouteClass.PUBLIC),
        ("/", RouteClass.UNCLASSIFIED),
        ("/forgot-password", RouteClass.UNCLASSIFIED),
        ("/about", RouteClass.UNCLASSIFIED),
    ],
)
def test_classify_path(path, expected):
    assert classify_path(path) == expected


def test_prefix_matching_is_plain_string_prefix():
    # "/administrator" starts with "/admin"
    assert classify_path("/administrator") == RouteClass.ADMIN_PROTECTED
    assert classify_path("/login-help") == RouteClass.PUBLIC


def test_admin_prefix_wins_over_protected():
    assert match_prefix("/admin/users") == ("/admin", RouteClass.ADMIN_PROTECTED)
    assert match_prefix("/nowhere") is None


def test_requires_subject():
    assert requires_subject(RouteClass.PROTECTED)
    assert requires_subject(RouteClass.ADMIN_PROTECTED)
    assert not requires_subject(RouteClass.PUBLIC)
    assert not requires_subject(RouteClass.UNCLASSIFIED)


@pytest.mark.parametrize(
    "path", ["/api/cron/daily-summary", "/api", "/static/logo.png", "/docs", "/openapi.json", "/health", "/favicon.ico"]
)
def test_excluded_paths(path):
    assert is_excluded(path)


@pytest.mark.parametrize("path", ["/dashboard", "/apiary", "/login", "/healthcheck"])
def test_not_excluded_paths(path):
    assert not is_excluded(path)
