import pytest
from sqlalchemy import select

from lifecycle.models import NotificationPreference
from tests.conftest import create_profile, sign_in


async def test_anonymous_settings_redirect_to_login(client):
    response = await client.get("/settings")
    assert response.status_code == 307
    assert response.headers["location"] == "/login?redirectTo=%2Fsettings"


async def test_settings_page_shows_profile_and_preferences(client, db):
    sign_in(client, await create_profile(db, "owner@shop.test", business_name="Shop", weekly=True, threshold=14))

    response = await client.get("/settings")

    assert response.status_code == 200
    body = response.json()
    assert body["profile"]["email"] == "owner@shop.test"
    assert body["profile"]["business_name"] == "Shop"
    assert body["notifications"]["alert_threshold"] == 14
    assert body["notifications"]["weekly_report"] is True


async def test_update_notification_preferences(client, db, session_factory):
    owner = await create_profile(db, "owner@shop.test")
    sign_in(client, owner)

    response = await client.put("/settings/notifications", json={
        "daily_expiry_alerts_enabled": False,
        "alert_threshold": 30,
        "weekly_report": True,
    })

    assert response.status_code == 200
    assert response.json()["alert_threshold"] == 30

    async with session_factory() as session:
        preference = (await session.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == owner.id)
        )).scalar_one()
    assert preference.daily_expiry_alerts_enabled is False
    assert preference.alert_threshold == 30
    assert preference.weekly_report is True

    fetched = await client.get("/settings/notifications")
    assert fetched.json()["weekly_report"] is True


@pytest.mark.parametrize("threshold", [0, 366, -5])
async def test_alert_threshold_out_of_bounds_is_rejected(client, db, session_factory, threshold):
    owner = await create_profile(db, "owner@shop.test", threshold=7)
    sign_in(client, owner)

    response = await client.put("/settings/notifications", json={
        "daily_expiry_alerts_enabled": True,
        "alert_threshold": threshold,
        "weekly_report": False,
    })

    assert response.status_code == 422
    async with session_factory() as session:
        preference = (await session.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == owner.id)
        )).scalar_one()
    assert preference.alert_threshold == 7


@pytest.mark.parametrize("threshold", [1, 365])
async def test_alert_threshold_bounds_are_inclusive(client, db, threshold):
    sign_in(client, await create_profile(db, "owner@shop.test"))
    response = await client.put("/settings/notifications", json={
        "daily_expiry_alerts_enabled": True,
        "alert_threshold": threshold,
        "weekly_report": False,
    })
    assert response.status_code == 200
    assert response.json()["alert_threshold"] == threshold


async def test_update_profile(client, db):
    sign_in(client, await create_profile(db, "owner@shop.test", business_name="Old Name"))

    response = await client.put("/settings/profile", json={"business_name": "New Name", "phone": "555-0100"})

    assert response.status_code == 200
    body = response.json()
    assert body["business_name"] == "New Name"
    assert body["phone"] == "555-0100"
    assert body["email"] == "owner@shop.test"

    empty = await client.put("/settings/profile", json={"business_name": ""})
    assert empty.status_code == 422
