"""Tax rate management API"""

import logging
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.api.utils import paginate, page_payload
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import TaxMethod
from shiv_accounts.models.tax import Tax
from shiv_accounts.models.purchase import PurchaseOrderItem, VendorBillItem
from shiv_accounts.models.sales import SalesOrderItem, CustomerInvoiceItem
from shiv_accounts.models.user import User
from shiv_accounts.schemas.tax import (
    TaxCreate, TaxUpdate, TaxResponse, TaxListResponse, TaxCalculateRequest, TaxCalculateResponse
)
from shiv_accounts.services.calculations import calculate_tax, calculate_total, money

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_tax_or_404(db: AsyncSession, tax_id: int) -> Tax:
    tax = await db.get(Tax, tax_id)
    if not tax:
        raise HTTPException(status_code=404, detail="Tax not found")
    return tax


async def ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(Tax.id).where(func.lower(Tax.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Tax.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail="Tax with this name already exists")


async def is_tax_used(db: AsyncSession, tax_id: int) -> bool:
    for model in (PurchaseOrderItem, SalesOrderItem, VendorBillItem, CustomerInvoiceItem):
        result = await db.execute(select(model.id).where(model.tax_id == tax_id).limit(1))
        if result.first():
            return True
    return False


@router.get("", response_model=TaxListResponse)
async def list_taxes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    computation_method: Optional[str] = Query(None, description="PERCENTAGE / FIXED_VALUE"),
    applicable_on_sales: Optional[bool] = None,
    applicable_on_purchase: Optional[bool] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(Tax)

    if computation_method:
        query = query.where(Tax.computation_method == computation_method)
    if applicable_on_sales is not None:
        query = query.where(Tax.applicable_on_sales == applicable_on_sales)
    if applicable_on_purchase is not None:
        query = query.where(Tax.applicable_on_purchase == applicable_on_purchase)
    if search:
        query = query.where(Tax.name.ilike(f"%{search}%"))

    query = query.order_by(Tax.rate, Tax.name)
    taxes, total = await paginate(db, query, page, limit)
    return page_payload([TaxResponse.model_validate(t) for t in taxes], total, page, limit)


@router.get("/by-type/{tax_type}")
async def taxes_by_type(
    tax_type: str,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Taxes usable on sales or on purchases"""
    if tax_type == "sales":
        query = select(Tax).where(Tax.applicable_on_sales.is_(True))
    elif tax_type == "purchase":
        query = select(Tax).where(Tax.applicable_on_purchase.is_(True))
    else:
        raise HTTPException(status_code=400, detail="Tax type must be 'sales' or 'purchase'")

    result = await db.execute(query.order_by(Tax.rate, Tax.name))
    return {"data": [TaxResponse.model_validate(t) for t in result.scalars().all()]}


@router.get("/stats")
async def tax_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    total = (await db.execute(select(func.count(Tax.id)))).scalar() or 0
    percentage = (await db.execute(
        select(func.count(Tax.id)).where(Tax.computation_method == TaxMethod.PERCENTAGE)
    )).scalar() or 0
    sales = (await db.execute(select(func.count(Tax.id)).where(Tax.applicable_on_sales.is_(True)))).scalar() or 0
    purchase = (await db.execute(select(func.count(Tax.id)).where(Tax.applicable_on_purchase.is_(True)))).scalar() or 0
    return {
        "total": total,
        "percentage": percentage,
        "fixed_value": total - percentage,
        "sales_applicable": sales,
        "purchase_applicable": purchase,
    }


@router.post("/calculate", response_model=TaxCalculateResponse)
async def calculate(
    data: TaxCalculateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Tax and total for an amount under a given tax"""
    tax = await get_tax_or_404(db, data.tax_id)
    amount = money(data.amount)
    tax_amount = calculate_tax(amount, tax.rate, tax.computation_method)
    return TaxCalculateResponse(
        original_amount=float(amount),
        tax_amount=float(tax_amount),
        total=float(calculate_total(amount, tax_amount)),
        tax=TaxResponse.model_validate(tax),
    )


@router.get("/{tax_id}", response_model=TaxResponse)
async def get_tax(
    tax_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return await get_tax_or_404(db, tax_id)


@router.post("", response_model=TaxResponse, status_code=201)
async def create_tax(
    data: TaxCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    await ensure_name_free(db, data.name)

    values = data.model_dump()
    values["rate"] = Decimal(str(values["rate"]))
    tax = Tax(**values)
    db.add(tax)
    await db.commit()
    await db.refresh(tax)
    logger.info(f"Created tax {tax.name}")
    return tax


@router.put("/{tax_id}", response_model=TaxResponse)
async def update_tax(
    tax_id: int,
    data: TaxUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    tax = await get_tax_or_404(db, tax_id)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    if "name" in update_data:
        await ensure_name_free(db, update_data["name"], exclude_id=tax_id)
    if "rate" in update_data:
        update_data["rate"] = Decimal(str(update_data["rate"]))

    method = update_data.get("computation_method", tax.computation_method)
    rate = update_data.get("rate", tax.rate)
    if method == TaxMethod.PERCENTAGE and rate > 100:
        raise HTTPException(status_code=400, detail="Percentage rate cannot exceed 100")

    for field, value in update_data.items():
        setattr(tax, field, value)

    await db.commit()
    await db.refresh(tax)
    return tax


@router.delete("/{tax_id}")
async def delete_tax(
    tax_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    tax = await get_tax_or_404(db, tax_id)

    if await is_tax_used(db, tax_id):
        raise HTTPException(status_code=400, detail="Cannot delete tax that is used in transactions")

    await db.delete(tax)
    await db.commit()
    logger.info(f"Deleted tax {tax_id}")
    return {"message": "Tax deleted successfully"}
