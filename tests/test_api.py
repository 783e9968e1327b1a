from datetime import date, timedelta

import pytest

from lifecycle.config import settings
from tests.conftest import create_product, create_profile, days, sign_in

COOKIE = settings.SESSION_COOKIE_NAME
CRON_SECRET = "cron-test-secret"


def set_cookie_headers(response):
    return [h for h in response.headers.get_list("set-cookie") if h.startswith(f"{COOKIE}=")]


# ==================== Gateway ====================

async def test_anonymous_dashboard_redirects_to_login(client):
    response = await client.get("/dashboard")
    assert response.status_code == 307
    assert response.headers["location"] == "/login?redirectTo=%2Fdashboard"


async def test_anonymous_login_page_is_served(client):
    response = await client.get("/login", params={"redirectTo": "/products"})
    assert response.status_code == 200
    assert response.json() == {"page": "login", "redirect_to": "/products"}


async def test_signed_in_user_leaves_auth_forms(client, db):
    sign_in(client, await create_profile(db, "owner@shop.test"))

    assert (await client.get("/signup")).headers["location"] == "/dashboard"
    response = await client.get("/login", params={"redirectTo": "/products"})
    assert response.headers["location"] == "/products"
    response = await client.get("/login", params={"redirectTo": "https://evil.test"})
    assert response.headers["location"] == "/dashboard"


async def test_signed_in_admin_leaves_auth_forms_for_admin(client, db):
    sign_in(client, await create_profile(db, "admin@hq.test", admin=True))
    response = await client.get("/login")
    assert response.status_code == 307
    assert response.headers["location"] == "/admin"


async def test_user_is_kept_out_of_admin(client, db):
    sign_in(client, await create_profile(db, "owner@shop.test"))
    response = await client.get("/admin")
    assert response.status_code == 307
    assert response.headers["location"] == "/dashboard"


async def test_invalid_cookie_is_cleared_on_redirect(client):
    client.cookies.set(COOKIE, "tampered")
    response = await client.get("/dashboard")
    assert response.status_code == 307
    [header] = set_cookie_headers(response)
    assert "Max-Age=0" in header


async def test_renewal_cookie_on_redirect_and_on_continue(client, db):
    owner = await create_profile(db, "owner@shop.test")

    sign_in(client, owner, lifetime=timedelta(minutes=10))
    redirected = await client.get("/admin")
    assert redirected.status_code == 307
    assert set_cookie_headers(redirected)

    sign_in(client, owner, lifetime=timedelta(minutes=10))
    served = await client.get("/dashboard")
    assert served.status_code == 200
    assert set_cookie_headers(served)


async def test_gateway_redirect_carries_cors_headers(client):
    origin = settings.CORS_ORIGINS[0]
    response = await client.get("/dashboard", headers={"Origin": origin})
    assert response.status_code == 307
    assert response.headers["access-control-allow-origin"] == origin
    assert response.headers["access-control-allow-credentials"] == "true"


async def test_unclassified_paths_bypass_gateway(client):
    response = await client.get("/no-such-page")
    assert response.status_code == 404


# ==================== Pages ====================

async def test_dashboard_lists_batches_with_status(client, db):
    owner = await create_profile(db, "owner@shop.test", business_name="Shop")
    today = date.today()
    await create_product(db, owner, "Milk", "Dairy", [days(-1, today), days(3, today)])
    await create_product(db, owner, "Rice", "Pantry", [days(200, today)])
    other = await create_profile(db, "other@shop.test")
    await create_product(db, other, "Secret", "Hidden", [days(1, today)])

    sign_in(client, owner)
    response = await client.get("/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["subject"]["email"] == "owner@shop.test"
    assert body["subject"]["is_admin"] is False
    assert body["summary"] == {
        "total_products": 2,
        "total_batches": 3,
        "expired": 1,
        "urgent": 1,
        "warning": 0,
        "ok": 1,
    }
    assert [b["status"] for b in body["batches"]] == ["expired", "urgent", "ok"]
    assert all(b["product_name"] != "Secret" for b in body["batches"])


async def test_admin_overview(client, db):
    admin = await create_profile(db, "admin@hq.test", admin=True)
    owner = await create_profile(db, "owner@shop.test")
    await create_profile(db, "inactive@shop.test", is_active=False)
    await create_product(db, owner, "Milk", "Dairy", [days(-1, date.today())])

    sign_in(client, admin)
    response = await client.get("/admin")

    assert response.status_code == 200
    stats = response.json()
    assert stats["total_users"] == 3
    assert stats["active_users"] == 2
    assert stats["admin_count"] == 1
    assert stats["total_products"] == 1
    assert stats["total_batches"] == 1
    assert stats["batches_by_status"]["expired"] == 1


# ==================== Cron ====================

@pytest.fixture
def cron_secret(monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", CRON_SECRET)
    return CRON_SECRET


@pytest.mark.parametrize("path", ["/api/cron/daily-summary", "/api/cron/weekly-report"])
async def test_cron_requires_bearer(client, cron_secret, path):
    assert (await client.get(path)).status_code == 401
    wrong = await client.get(path, headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401


async def test_cron_refuses_everything_without_configured_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", None)
    response = await client.get("/api/cron/daily-summary", headers={"Authorization": "Bearer anything"})
    assert response.status_code == 401


async def test_cron_daily_summary_runs_job(client, cron_secret, email_service, db):
    owner = await create_profile(db, "owner@shop.test")
    await create_product(db, owner, "Milk", "Dairy", [days(2, date.today())])

    response = await client.get(
        "/api/cron/daily-summary", headers={"Authorization": f"Bearer {cron_secret}"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["job"] == "daily_expiry_alert"
    assert body["emails_sent"] == 1
    assert body["errors"] == []
    assert [sent[0] for sent in email_service.daily] == ["owner@shop.test"]


async def test_cron_weekly_report_runs_job(client, cron_secret, email_service, db):
    await create_profile(db, "owner@shop.test", daily=False, weekly=True)

    response = await client.get(
        "/api/cron/weekly-report", headers={"Authorization": f"Bearer {cron_secret}"}
    )

    assert response.status_code == 200
    assert response.json()["emails_sent"] == 1
    assert len(email_service.weekly) == 1
