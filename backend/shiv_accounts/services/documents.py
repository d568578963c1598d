"""
Shared helpers for orders, bills and invoices

- contact checks (exists, right side of the trade)
- line pricing through the calculation engine
- line item responses
"""

from datetime import datetime
from typing import Dict, List, Tuple

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.core.constants import PaymentStatus
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.product import Product
from shiv_accounts.models.tax import Tax
from shiv_accounts.schemas.line_item import LineItemIn, LineItemResponse
from shiv_accounts.services.calculations import ZERO, DocumentTotals, money, price_line, sum_lines


async def get_vendor(db: AsyncSession, vendor_id: int) -> Contact:
    vendor = await db.get(Contact, vendor_id)
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found")
    if not vendor.is_vendor:
        raise HTTPException(status_code=400, detail="Contact is not a vendor")
    return vendor


async def get_customer(db: AsyncSession, customer_id: int) -> Contact:
    customer = await db.get(Contact, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    if not customer.is_customer:
        raise HTTPException(status_code=400, detail="Contact is not a customer")
    return customer


async def _fetch_by_ids(db: AsyncSession, model, ids: List[int]) -> Dict[int, object]:
    if not ids:
        return {}
    result = await db.execute(select(model).where(model.id.in_(set(ids))))
    return {row.id: row for row in result.scalars().all()}


async def build_line_items(db: AsyncSession, lines: List[LineItemIn], item_model) -> Tuple[list, DocumentTotals]:
    """
    Price the requested lines and build unsaved item rows

    Every product and tax must exist (404). The rows carry their `product`
    and `tax` objects so posting can read them before a reload. Quantity and
    unit price are rounded to 2 places before pricing; a quantity that rounds
    to 0 is a 400.
    """
    products = await _fetch_by_ids(db, Product, [l.product_id for l in lines])
    taxes = await _fetch_by_ids(db, Tax, [l.tax_id for l in lines if l.tax_id is not None])

    items = []
    amounts = []
    for line in lines:
        product = products.get(line.product_id)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {line.product_id} not found")
        tax = None
        if line.tax_id is not None:
            tax = taxes.get(line.tax_id)
            if not tax:
                raise HTTPException(status_code=404, detail=f"Tax {line.tax_id} not found")

        # Price exactly what is stored
        quantity = money(line.quantity)
        unit_price = money(line.unit_price)
        if quantity <= ZERO:
            raise HTTPException(status_code=400, detail=f"Quantity for product {product.id} must be at least 0.01")

        priced = price_line(quantity, unit_price, tax)
        amounts.append(priced)
        items.append(item_model(
            product=product,
            product_id=product.id,
            tax=tax,
            tax_id=tax.id if tax else None,
            quantity=quantity,
            unit_price=unit_price,
            tax_amount=priced.tax_amount,
            total=priced.total,
        ))

    return items, sum_lines(amounts)


def copy_line_items(source_items: list, item_model) -> list:
    """Copy priced lines from an order onto a bill or invoice"""
    return [
        item_model(
            product=item.product,
            product_id=item.product_id,
            tax=item.tax,
            tax_id=item.tax_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            tax_amount=item.tax_amount,
            total=item.total,
        )
        for item in source_items
    ]


def apply_totals(document, totals: DocumentTotals) -> None:
    document.subtotal = totals.subtotal
    document.tax_amount = totals.tax_amount
    document.total = totals.total


def build_line_response(item) -> LineItemResponse:
    return LineItemResponse(
        id=item.id,
        product_id=item.product_id,
        product_name=item.product.name if item.product else "",
        product_type=item.product.type if item.product else "",
        hsn_code=item.product.hsn_code if item.product else None,
        tax_id=item.tax_id,
        tax_name=item.tax.name if item.tax else None,
        quantity=float(item.quantity),
        unit_price=float(item.unit_price),
        subtotal=float(money(item.quantity * item.unit_price)),
        tax_amount=float(item.tax_amount),
        total=float(item.total),
    )


def is_overdue(due_date: datetime, payment_status: str) -> bool:
    return payment_status != PaymentStatus.PAID and due_date is not None and due_date < datetime.utcnow()


def totals_from_items(items: list) -> DocumentTotals:
    """Document totals from already priced item rows"""
    tax_amount = sum((i.tax_amount for i in items), ZERO)
    total = sum((i.total for i in items), ZERO)
    return DocumentTotals(subtotal=total - tax_amount, tax_amount=tax_amount, total=total)
