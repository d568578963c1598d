"""Product management API"""

import logging
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.api.utils import paginate, page_payload
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import ProductType
from shiv_accounts.models.product import Product
from shiv_accounts.models.purchase import PurchaseOrderItem, VendorBillItem
from shiv_accounts.models.sales import SalesOrderItem, CustomerInvoiceItem
from shiv_accounts.models.stock import StockMovement
from shiv_accounts.models.user import User
from shiv_accounts.schemas.product import (
    ProductCreate, ProductUpdate, ProductBulkUpdate, ProductResponse, ProductListResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()

DECIMAL_FIELDS = ("sales_price", "purchase_price", "sales_tax_percent", "purchase_tax_percent")


def _to_columns(data: dict) -> dict:
    """Float inputs become Decimal column values"""
    for field in DECIMAL_FIELDS:
        if data.get(field) is not None:
            data[field] = Decimal(str(data[field]))
    return data


async def get_product_or_404(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(Product.id).where(func.lower(Product.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail="Product with this name already exists")


async def is_product_used(db: AsyncSession, product_id: int) -> bool:
    for model in (PurchaseOrderItem, SalesOrderItem, VendorBillItem, CustomerInvoiceItem, StockMovement):
        result = await db.execute(select(model.id).where(model.product_id == product_id).limit(1))
        if result.first():
            return True
    return False


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[str] = Query(None, description="GOODS / SERVICE"),
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(Product)

    if type:
        query = query.where(Product.type == type)
    if category:
        query = query.where(Product.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Product.name.ilike(pattern),
            Product.hsn_code.ilike(pattern),
            Product.category.ilike(pattern),
        ))

    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    products, total = await paginate(db, query, page, limit)
    return page_payload([ProductResponse.model_validate(p) for p in products], total, page, limit)


@router.get("/categories")
async def list_categories(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Distinct product categories in alphabetical order"""
    result = await db.execute(
        select(Product.category)
        .where(Product.category.isnot(None), Product.category != "")
        .distinct()
        .order_by(Product.category)
    )
    return {"data": list(result.scalars().all())}


@router.get("/stats")
async def product_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(select(Product.type, func.count(Product.id)).group_by(Product.type))
    counts = dict(result.all())
    return {
        "total": sum(counts.values()),
        "goods": counts.get(ProductType.GOODS, 0),
        "services": counts.get(ProductType.SERVICE, 0),
    }


@router.put("/bulk-update")
async def bulk_update_products(
    data: ProductBulkUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Apply the same changes to several products in one transaction"""
    update_data = _to_columns(data.updates.model_dump(exclude_unset=True))
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    result = await db.execute(select(Product).where(Product.id.in_(data.product_ids)))
    products = result.scalars().all()
    found = {p.id for p in products}
    missing = [pid for pid in data.product_ids if pid not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"Products not found: {missing}")

    for product in products:
        for field, value in update_data.items():
            setattr(product, field, value)

    await db.commit()
    logger.info(f"Bulk updated {len(products)} products: {sorted(update_data)}")
    return {"message": f"{len(products)} products updated", "updated": len(products)}


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return await get_product_or_404(db, product_id)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    data: ProductCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await ensure_name_free(db, data.name)

    product = Product(**_to_columns(data.model_dump()), created_by_id=current_user.id)
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info(f"Created product {product.id}: {product.name}")
    return product


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    product = await get_product_or_404(db, product_id)
    update_data = _to_columns(data.model_dump(exclude_unset=True))

    if update_data.get("name"):
        await ensure_name_free(db, update_data["name"], exclude_id=product_id)
    for required in ("name", "type", "sales_price", "purchase_price"):
        if required in update_data and update_data[required] is None:
            raise HTTPException(status_code=400, detail=f"{required} cannot be empty")

    for field, value in update_data.items():
        setattr(product, field, value)

    await db.commit()
    await db.refresh(product)
    return product


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    product = await get_product_or_404(db, product_id)

    if await is_product_used(db, product_id):
        raise HTTPException(status_code=400, detail="Cannot delete product that is used in transactions")

    await db.delete(product)
    await db.commit()
    logger.info(f"Deleted product {product_id}")
    return {"message": "Product deleted successfully"}
