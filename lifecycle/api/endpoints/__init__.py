from lifecycle.api.endpoints import admin, cron, pages, products, settings

__all__ = ["admin", "cron", "pages", "products", "settings"]
