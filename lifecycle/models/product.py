import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import String, Text, Date, DateTime, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lifecycle.database import Base
from lifecycle.db_types import UUIDType

if TYPE_CHECKING:
    from lifecycle.models.profile import Profile


class Product(Base):
    """
    Tenant-owned inventory item.
    Expiry dates and quantities live on the product's batches.
    """
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Master attributes
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    supplier: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    added_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    owner: Mapped["Profile"] = relationship("Profile", back_populates="products")
    batches: Mapped[List["ProductBatch"]] = relationship(
        "ProductBatch",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductBatch.expiry_date"
    )

    def __repr__(self) -> str:
        return f"<Product(name='{self.name}', category='{self.category}')>"


class ProductBatch(Base):
    """
    A batch of a product with its own expiry date and quantity.
    Deleted together with its product.
    """
    __tablename__ = "product_batches"
    __table_args__ = (
        CheckConstraint("quantity IS NULL OR quantity >= 0", name="ck_product_batches_quantity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    batch_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    added_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    product: Mapped["Product"] = relationship("Product", back_populates="batches")

    def __repr__(self) -> str:
        return f"<ProductBatch(batch_number='{self.batch_number}', expiry_date='{self.expiry_date}')>"
