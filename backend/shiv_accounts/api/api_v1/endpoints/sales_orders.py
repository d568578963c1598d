"""Sales order API

Status flow: DRAFT → CONFIRMED → CONVERTED (by convert-to-invoice), or CANCELLED.
A converted order can no longer be edited or deleted.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shiv_accounts.api.utils import paginate, page_payload, unique_document_number
from shiv_accounts.api.api_v1.endpoints.customer_invoices import (
    build_customer_invoice_response, create_invoice_record, load_customer_invoice
)
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import OrderStatus, PREFIX_SALES_ORDER
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.sales import SalesOrder, SalesOrderItem, CustomerInvoiceItem
from shiv_accounts.models.user import User
from shiv_accounts.schemas.sales import (
    SalesOrderCreate, SalesOrderUpdate, SalesOrderResponse, SalesOrderListResponse,
    ConvertToInvoiceRequest, CustomerInvoiceResponse
)
from shiv_accounts.services.documents import (
    apply_totals, build_line_items, build_line_response, copy_line_items, get_customer
)

logger = logging.getLogger(__name__)

router = APIRouter()

ORDER_OPTIONS = (
    selectinload(SalesOrder.customer),
    selectinload(SalesOrder.items).selectinload(SalesOrderItem.product),
    selectinload(SalesOrder.items).selectinload(SalesOrderItem.tax),
    selectinload(SalesOrder.customer_invoices),
)


def build_sales_order_response(order: SalesOrder) -> SalesOrderResponse:
    return SalesOrderResponse(
        id=order.id,
        so_number=order.so_number,
        so_date=order.so_date,
        customer_id=order.customer_id,
        customer_name=order.customer.name if order.customer else "",
        so_ref=order.so_ref,
        status=order.status,
        subtotal=float(order.subtotal),
        tax_amount=float(order.tax_amount),
        total=float(order.total),
        items=[build_line_response(i) for i in order.items],
        invoice_ids=[b.id for b in order.customer_invoices],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


async def load_sales_order(db: AsyncSession, order_id: int) -> SalesOrder:
    result = await db.execute(
        select(SalesOrder)
        .options(*ORDER_OPTIONS)
        .where(SalesOrder.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Sales order not found")
    return order


@router.get("", response_model=SalesOrderListResponse)
async def list_sales_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, description="DRAFT / CONFIRMED / CANCELLED / CONVERTED"),
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(SalesOrder)

    if status:
        query = query.where(SalesOrder.status == status)
    if customer_id:
        query = query.where(SalesOrder.customer_id == customer_id)
    if search:
        pattern = f"%{search}%"
        query = query.join(Contact, SalesOrder.customer_id == Contact.id).where(or_(
            SalesOrder.so_number.ilike(pattern),
            SalesOrder.so_ref.ilike(pattern),
            Contact.name.ilike(pattern),
        ))

    query = query.order_by(SalesOrder.created_at.desc(), SalesOrder.id.desc())
    orders, total = await paginate(db, query, page, limit, options=ORDER_OPTIONS)
    return page_payload([build_sales_order_response(o) for o in orders], total, page, limit)


@router.get("/stats")
async def sales_order_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(
        select(
            SalesOrder.status,
            func.count(SalesOrder.id),
            func.coalesce(func.sum(SalesOrder.total), 0),
        ).group_by(SalesOrder.status)
    )
    counts = {}
    total_value = Decimal("0")
    for status, count, value in result.all():
        counts[status] = count
        if status != OrderStatus.CANCELLED:
            total_value += Decimal(str(value))

    return {
        "total_sos": sum(counts.values()),
        "draft_sos": counts.get(OrderStatus.DRAFT, 0),
        "confirmed_sos": counts.get(OrderStatus.CONFIRMED, 0),
        "cancelled_sos": counts.get(OrderStatus.CANCELLED, 0),
        "converted_sos": counts.get(OrderStatus.CONVERTED, 0),
        "total_value": float(total_value),
    }


@router.get("/{order_id}", response_model=SalesOrderResponse)
async def get_sales_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return build_sales_order_response(await load_sales_order(db, order_id))


@router.post("", response_model=SalesOrderResponse, status_code=201)
async def create_sales_order(
    data: SalesOrderCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await get_customer(db, data.customer_id)
    items, totals = await build_line_items(db, data.items, SalesOrderItem)

    order = SalesOrder(
        so_number=await unique_document_number(db, SalesOrder.so_number, PREFIX_SALES_ORDER),
        so_date=data.so_date or datetime.utcnow(),
        customer_id=data.customer_id,
        so_ref=data.so_ref,
        status=data.status,
        created_by_id=current_user.id,
    )
    order.items = items
    apply_totals(order, totals)
    db.add(order)
    await db.commit()

    logger.info(f"📝 Created sales order {order.so_number}: {order.total}")
    return build_sales_order_response(await load_sales_order(db, order.id))


@router.put("/{order_id}", response_model=SalesOrderResponse)
async def update_sales_order(
    order_id: int,
    data: SalesOrderUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Edit header fields or replace the lines; totals are recomputed"""
    order = await load_sales_order(db, order_id)
    if order.status == OrderStatus.CONVERTED:
        raise HTTPException(status_code=400, detail="Cannot update converted sales order")

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    if "customer_id" in update_data:
        await get_customer(db, data.customer_id)
        order.customer_id = data.customer_id
    if "items" in update_data:
        items, totals = await build_line_items(db, data.items, SalesOrderItem)
        order.items = items
        apply_totals(order, totals)
    for field in ("so_date", "so_ref", "status"):
        if field in update_data:
            setattr(order, field, update_data[field])

    await db.commit()
    return build_sales_order_response(await load_sales_order(db, order_id))


@router.delete("/{order_id}")
async def delete_sales_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    order = await load_sales_order(db, order_id)
    if order.status == OrderStatus.CONVERTED:
        raise HTTPException(status_code=400, detail="Cannot delete converted sales order")
    if order.customer_invoices:
        raise HTTPException(status_code=400, detail="Cannot delete sales order with customer invoices")

    await db.delete(order)
    await db.commit()
    logger.info(f"Deleted sales order {order_id}")
    return {"message": "Sales order deleted successfully"}


@router.post("/{order_id}/convert-to-invoice", response_model=CustomerInvoiceResponse, status_code=201)
async def convert_to_invoice(
    order_id: int,
    data: ConvertToInvoiceRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a customer invoice from the order lines and mark the order CONVERTED"""
    order = await load_sales_order(db, order_id)
    if order.status == OrderStatus.CONVERTED:
        raise HTTPException(status_code=400, detail="Sales order already converted")
    if order.status == OrderStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cannot convert a cancelled sales order")

    invoice_date = data.invoice_date or datetime.utcnow()
    if data.due_date < invoice_date.replace(hour=0, minute=0, second=0, microsecond=0):
        raise HTTPException(status_code=400, detail="due_date cannot be before invoice_date")

    try:
        invoice = await create_invoice_record(
            db,
            customer_id=order.customer_id,
            items=copy_line_items(order.items, CustomerInvoiceItem),
            due_date=data.due_date,
            invoice_date=invoice_date,
            invoice_reference=data.invoice_reference,
            sales_order_id=order.id,
            created_by_id=current_user.id,
        )
        order.status = OrderStatus.CONVERTED
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"🔄 Converted {order.so_number} into invoice {invoice.invoice_number}")
    return build_customer_invoice_response(await load_customer_invoice(db, invoice.id))
