import uuid
from datetime import date

from tests.conftest import create_product, create_profile, days, sign_in


async def test_user_is_kept_out_of_account_management(client, db):
    user = await create_profile(db, "owner@shop.test")
    sign_in(client, user)

    response = await client.get("/admin/users")
    assert response.status_code == 307
    assert response.headers["location"] == "/dashboard"


async def test_list_users_with_stats(client, db):
    today = date.today()
    admin = await create_profile(db, "admin@hq.test", admin=True)
    owner = await create_profile(db, "owner@shop.test")
    await create_product(db, owner, "Milk", "Dairy", [days(-1, today), days(0, today), days(5, today)])
    await create_product(db, owner, "Bread", "Bakery", [days(-3, today)])

    sign_in(client, admin)
    response = await client.get("/admin/users")

    assert response.status_code == 200
    users = {u["email"]: u for u in response.json()}
    assert set(users) == {"admin@hq.test", "owner@shop.test"}
    assert users["owner@shop.test"]["total_products"] == 2
    assert users["owner@shop.test"]["active_batches"] == 2
    assert users["owner@shop.test"]["is_admin"] is False
    assert users["admin@hq.test"]["is_admin"] is True
    assert users["admin@hq.test"]["total_products"] == 0


async def test_deactivated_user_loses_access(client, db):
    admin = await create_profile(db, "admin@hq.test", admin=True)
    owner = await create_profile(db, "owner@shop.test")

    sign_in(client, admin)
    response = await client.patch(f"/admin/users/{owner.id}/status", json={"is_active": False})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "User deactivated successfully"}

    sign_in(client, owner)
    blocked = await client.get("/dashboard")
    assert blocked.status_code == 307
    assert blocked.headers["location"].startswith("/login")

    sign_in(client, admin)
    reactivated = await client.patch(f"/admin/users/{owner.id}/status", json={"is_active": True})
    assert reactivated.json()["message"] == "User activated successfully"

    sign_in(client, owner)
    assert (await client.get("/dashboard")).status_code == 200


async def test_status_of_unknown_user_is_not_found(client, db):
    sign_in(client, await create_profile(db, "admin@hq.test", admin=True))
    response = await client.patch(f"/admin/users/{uuid.uuid4()}/status", json={"is_active": False})
    assert response.status_code == 404


async def test_grant_and_revoke_admin_role(client, db):
    admin = await create_profile(db, "admin@hq.test", admin=True)
    owner = await create_profile(db, "owner@shop.test")
    sign_in(client, admin)

    granted = await client.put(f"/admin/users/{owner.id}/roles/admin")
    assert granted.status_code == 200
    assert granted.json()["has_role"] is True
    assert granted.json()["changed"] is True

    again = await client.put(f"/admin/users/{owner.id}/roles/admin")
    assert again.json()["changed"] is False

    sign_in(client, owner)
    assert (await client.get("/admin")).status_code == 200

    sign_in(client, admin)
    revoked = await client.delete(f"/admin/users/{owner.id}/roles/admin")
    assert revoked.json() == {
        "user_id": str(owner.id),
        "role": "admin",
        "has_role": False,
        "changed": True,
    }

    sign_in(client, owner)
    assert (await client.get("/admin")).headers["location"] == "/dashboard"


async def test_admin_cannot_revoke_own_role(client, db):
    admin = await create_profile(db, "admin@hq.test", admin=True)
    sign_in(client, admin)
    response = await client.delete(f"/admin/users/{admin.id}/roles/admin")
    assert response.status_code == 400


async def test_role_change_for_unknown_user_is_not_found(client, db):
    sign_in(client, await create_profile(db, "admin@hq.test", admin=True))
    response = await client.put(f"/admin/users/{uuid.uuid4()}/roles/admin")
    assert response.status_code == 404
