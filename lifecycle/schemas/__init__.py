from lifecycle.schemas.admin import (
    AdminStatsResponse,
    AdminUserResponse,
    RoleChangeResponse,
    UserStatusResponse,
    UserStatusUpdate,
)
from lifecycle.schemas.cron import CronRunResponse, TenantError
from lifecycle.schemas.pages import (
    AuthPageResponse,
    BatchStatusResponse,
    DashboardResponse,
    DashboardSummary,
    SubjectResponse,
)
from lifecycle.schemas.products import (
    BatchCreate,
    BatchResponse,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from lifecycle.schemas.settings import (
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    SettingsResponse,
)

__all__ = [
    "AdminStatsResponse",
    "AdminUserResponse",
    "RoleChangeResponse",
    "UserStatusResponse",
    "UserStatusUpdate",
    "CronRunResponse",
    "TenantError",
    "AuthPageResponse",
    "BatchStatusResponse",
    "DashboardResponse",
    "DashboardSummary",
    "SubjectResponse",
    "BatchCreate",
    "BatchResponse",
    "ProductCreate",
    "ProductListResponse",
    "ProductResponse",
    "ProductUpdate",
    "NotificationPreferencesResponse",
    "NotificationPreferencesUpdate",
    "ProfileResponse",
    "ProfileUpdate",
    "SettingsResponse",
]
