"""Admin pages: platform statistics and account management."""
from typing import List
import uuid

from fastapi import APIRouter, HTTPException, Request, status

from lifecycle.api.deps import DB, CurrentAdmin
from lifecycle.middleware.access_gateway import get_access_gateway
from lifecycle.models.role import AppRole
from lifecycle.schemas.admin import (
    AdminStatsResponse,
    AdminUserResponse,
    RoleChangeResponse,
    UserStatusResponse,
    UserStatusUpdate,
)
from lifecycle.services.inventory_store import InventoryStore
from lifecycle.services.settings_service import SettingsService

router = APIRouter()


@router.get("", response_model=AdminStatsResponse)
async def admin_overview(db: DB, admin: CurrentAdmin):
    """Platform-wide statistics."""
    stats = await InventoryStore(db).get_admin_stats()
    return AdminStatsResponse(**stats)


@router.get("/users", response_model=List[AdminUserResponse])
async def list_users(db: DB, admin: CurrentAdmin):
    """Every account, newest first, with product and active batch counts."""
    users = await InventoryStore(db).list_users_with_stats()
    return [AdminUserResponse(**user) for user in users]


@router.patch("/users/{user_id}/status", response_model=UserStatusResponse)
async def set_user_status(
    user_id: uuid.UUID,
    data: UserStatusUpdate,
    db: DB,
    admin: CurrentAdmin,
):
    """Activate or deactivate an account."""
    profile = await InventoryStore(db).set_user_status(user_id, data.is_active)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return UserStatusResponse(
        success=True,
        message=f"User {'activated' if data.is_active else 'deactivated'} successfully",
    )


async def _change_admin_role(request: Request, db, user_id: uuid.UUID, grant: bool) -> RoleChangeResponse:
    if not await SettingsService(db).get_profile(user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    store = get_access_gateway(request.app).role_resolver.store
    if grant:
        changed = await store.grant_role(user_id, AppRole.ADMIN)
    else:
        changed = await store.revoke_role(user_id, AppRole.ADMIN)

    return RoleChangeResponse(user_id=user_id, role=AppRole.ADMIN, has_role=grant, changed=changed)


@router.put("/users/{user_id}/roles/admin", response_model=RoleChangeResponse)
async def grant_admin_role(user_id: uuid.UUID, request: Request, db: DB, admin: CurrentAdmin):
    """Grant the admin role. Granting it twice is a no-op."""
    return await _change_admin_role(request, db, user_id, grant=True)


@router.delete("/users/{user_id}/roles/admin", response_model=RoleChangeResponse)
async def revoke_admin_role(user_id: uuid.UUID, request: Request, db: DB, admin: CurrentAdmin):
    """Revoke the admin role. Admins cannot revoke their own."""
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot revoke your own admin role"
        )
    return await _change_admin_role(request, db, user_id, grant=False)
