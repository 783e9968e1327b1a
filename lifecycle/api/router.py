from fastapi import APIRouter

from lifecycle.api.endpoints import admin, cron, pages, products, settings


api_router = APIRouter()

# Cron triggers (bearer secret, outside the access gateway)
api_router.include_router(cron.router, prefix="/api/cron", tags=["Cron"])

# Pages (behind the access gateway)
api_router.include_router(pages.router, tags=["Pages"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
