"""Tenant product and batch management, behind the access gateway."""
from datetime import date
from typing import List, Optional
import uuid

from fastapi import APIRouter, HTTPException, status, Query

from lifecycle.api.deps import DB, CurrentSubject
from lifecycle.models.product import Product
from lifecycle.schemas.products import (
    BatchResponse,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from lifecycle.services.expiry import evaluate_expiry, sort_by_expiry, total_quantity
from lifecycle.services.product_service import ProductService

router = APIRouter()


def to_product_response(product: Product, today: Optional[date] = None) -> ProductResponse:
    """Product with its batches soonest expiry first, each with a computed status."""
    today = today or date.today()
    batches = []
    for batch in sort_by_expiry(product.batches):
        result = evaluate_expiry(batch.expiry_date, today)
        batches.append(
            BatchResponse(
                id=batch.id,
                batch_number=batch.batch_number,
                expiry_date=batch.expiry_date,
                quantity=batch.quantity,
                days_until_expiry=result.days_until_expiry,
                status=result.status,
            )
        )

    return ProductResponse(
        id=product.id,
        name=product.name,
        category=product.category,
        supplier=product.supplier,
        location=product.location,
        notes=product.notes,
        barcode=product.barcode,
        added_date=product.added_date,
        total_quantity=total_quantity(product),
        batches=batches,
    )


@router.get("", response_model=ProductListResponse)
async def list_products(
    db: DB,
    subject: CurrentSubject,
    category: Optional[str] = Query(None),
):
    """The current tenant's products with their batches."""
    products = await ProductService(db).get_products(subject.id, category=category)
    return ProductListResponse(
        items=[to_product_response(p) for p in products],
        total=len(products),
    )


@router.get("/categories", response_model=List[str])
async def list_categories(db: DB, subject: CurrentSubject):
    """Categories in use by the current tenant."""
    return await ProductService(db).get_categories(subject.id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(data: ProductCreate, db: DB, subject: CurrentSubject):
    """Create a product with its batches."""
    product = await ProductService(db).create_product(subject.id, data.model_dump())
    return to_product_response(product)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: uuid.UUID, db: DB, subject: CurrentSubject):
    product = await ProductService(db).get_product(subject.id, product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    return to_product_response(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    data: ProductUpdate,
    db: DB,
    subject: CurrentSubject,
):
    """Update a product. A `batches` list replaces the existing batches."""
    product = await ProductService(db).update_product(
        subject.id,
        product_id,
        data.model_dump(exclude_unset=True),
    )
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    return to_product_response(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: uuid.UUID, db: DB, subject: CurrentSubject):
    """Delete a product and all of its batches."""
    if not await ProductService(db).delete_product(subject.id, product_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
