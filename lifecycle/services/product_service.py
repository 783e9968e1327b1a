"""Tenant-scoped product and batch management.

Every query filters on the owning tenant, so one tenant can never read or
change another tenant's inventory.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lifecycle.models.product import Product, ProductBatch

logger = logging.getLogger(__name__)

# Placeholder category written by older imports
UNSET_CATEGORY = "-"


class ProductService:
    """Service for a tenant's products and their batches."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_products(self, user_id: uuid.UUID, category: Optional[str] = None) -> List[Product]:
        """All products of a tenant with batches, optionally for one category."""
        stmt = (
            select(Product)
            .options(selectinload(Product.batches))
            .where(Product.user_id == user_id)
            .order_by(Product.name)
        )
        if category:
            stmt = stmt.where(Product.category == category)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_product(self, user_id: uuid.UUID, product_id: uuid.UUID) -> Optional[Product]:
        stmt = (
            select(Product)
            .options(selectinload(Product.batches))
            .where(Product.id == product_id, Product.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_product(self, user_id: uuid.UUID, data: dict) -> Product:
        """Create a product together with its initial batches."""
        batches = data.pop("batches", None) or []

        product = Product(user_id=user_id, **data)
        product.batches = [ProductBatch(**batch) for batch in batches]
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product, attribute_names=["batches"])

        logger.info(f"Created product '{product.name}' with {len(batches)} batches for {user_id}")
        return product

    async def update_product(
        self,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        data: dict,
    ) -> Optional[Product]:
        """
        Update master attributes. When `batches` is given it replaces the
        product's batches; batches left out are deleted.
        """
        product = await self.get_product(user_id, product_id)
        if not product:
            return None

        batches = data.pop("batches", None)

        for key, value in data.items():
            if value is not None:
                setattr(product, key, value)

        if batches is not None:
            product.batches = [ProductBatch(**batch) for batch in batches]

        await self.db.commit()
        await self.db.refresh(product, attribute_names=["batches"])
        return product

    async def delete_product(self, user_id: uuid.UUID, product_id: uuid.UUID) -> bool:
        """Delete a product; its batches go with it."""
        product = await self.get_product(user_id, product_id)
        if not product:
            return False

        await self.db.delete(product)
        await self.db.commit()
        logger.info(f"Deleted product {product_id} for {user_id}")
        return True

    async def get_categories(self, user_id: uuid.UUID) -> List[str]:
        """Distinct, non-blank categories in use by the tenant, sorted."""
        result = await self.db.execute(
            select(Product.category).where(Product.user_id == user_id).distinct()
        )
        categories = {
            category for category in result.scalars().all()
            if category and category.strip() and category != UNSET_CATEGORY
        }
        return sorted(categories)
