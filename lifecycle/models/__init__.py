# Models package
from lifecycle.models.profile import Profile
from lifecycle.models.role import UserRole, AppRole
from lifecycle.models.product import Product, ProductBatch
from lifecycle.models.settings import NotificationPreference
from lifecycle.models.notification_log import NotificationLog, NotificationKind

__all__ = [
    "Profile",
    "UserRole",
    "AppRole",
    "Product",
    "ProductBatch",
    "NotificationPreference",
    "NotificationLog",
    "NotificationKind",
]
