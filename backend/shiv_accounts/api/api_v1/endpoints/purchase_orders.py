"""Purchase order API

Status flow: DRAFT → CONFIRMED → CONVERTED (by convert-to-bill), or CANCELLED.
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
from shiv_accounts.api.api_v1.endpoints.vendor_bills import (
    build_vendor_bill_response, create_bill_record, load_vendor_bill
)
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import OrderStatus, PREFIX_PURCHASE_ORDER
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.purchase import PurchaseOrder, PurchaseOrderItem, VendorBillItem
from shiv_accounts.models.user import User
from shiv_accounts.schemas.purchase import (
    PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderResponse, PurchaseOrderListResponse,
    ConvertToBillRequest, VendorBillResponse
)
from shiv_accounts.services.documents import (
    apply_totals, build_line_items, build_line_response, copy_line_items, get_vendor
)

logger = logging.getLogger(__name__)

router = APIRouter()

ORDER_OPTIONS = (
    selectinload(PurchaseOrder.vendor),
    selectinload(PurchaseOrder.items).selectinload(PurchaseOrderItem.product),
    selectinload(PurchaseOrder.items).selectinload(PurchaseOrderItem.tax),
    selectinload(PurchaseOrder.vendor_bills),
)


def build_purchase_order_response(order: PurchaseOrder) -> PurchaseOrderResponse:
    return PurchaseOrderResponse(
        id=order.id,
        po_number=order.po_number,
        po_date=order.po_date,
        vendor_id=order.vendor_id,
        vendor_name=order.vendor.name if order.vendor else "",
        vendor_ref=order.vendor_ref,
        status=order.status,
        subtotal=float(order.subtotal),
        tax_amount=float(order.tax_amount),
        total=float(order.total),
        items=[build_line_response(i) for i in order.items],
        bill_ids=[b.id for b in order.vendor_bills],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


async def load_purchase_order(db: AsyncSession, order_id: int) -> PurchaseOrder:
    result = await db.execute(
        select(PurchaseOrder)
        .options(*ORDER_OPTIONS)
        .where(PurchaseOrder.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return order


@router.get("", response_model=PurchaseOrderListResponse)
async def list_purchase_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, description="DRAFT / CONFIRMED / CANCELLED / CONVERTED"),
    vendor_id: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(PurchaseOrder)

    if status:
        query = query.where(PurchaseOrder.status == status)
    if vendor_id:
        query = query.where(PurchaseOrder.vendor_id == vendor_id)
    if search:
        pattern = f"%{search}%"
        query = query.join(Contact, PurchaseOrder.vendor_id == Contact.id).where(or_(
            PurchaseOrder.po_number.ilike(pattern),
            PurchaseOrder.vendor_ref.ilike(pattern),
            Contact.name.ilike(pattern),
        ))

    query = query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
    orders, total = await paginate(db, query, page, limit, options=ORDER_OPTIONS)
    return page_payload([build_purchase_order_response(o) for o in orders], total, page, limit)


@router.get("/stats")
async def purchase_order_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(
        select(
            PurchaseOrder.status,
            func.count(PurchaseOrder.id),
            func.coalesce(func.sum(PurchaseOrder.total), 0),
        ).group_by(PurchaseOrder.status)
    )
    counts = {}
    total_value = Decimal("0")
    for status, count, value in result.all():
        counts[status] = count
        if status != OrderStatus.CANCELLED:
            total_value += Decimal(str(value))

    return {
        "total_pos": sum(counts.values()),
        "draft_pos": counts.get(OrderStatus.DRAFT, 0),
        "confirmed_pos": counts.get(OrderStatus.CONFIRMED, 0),
        "cancelled_pos": counts.get(OrderStatus.CANCELLED, 0),
        "converted_pos": counts.get(OrderStatus.CONVERTED, 0),
        "total_value": float(total_value),
    }


@router.get("/{order_id}", response_model=PurchaseOrderResponse)
async def get_purchase_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return build_purchase_order_response(await load_purchase_order(db, order_id))


@router.post("", response_model=PurchaseOrderResponse, status_code=201)
async def create_purchase_order(
    data: PurchaseOrderCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await get_vendor(db, data.vendor_id)
    items, totals = await build_line_items(db, data.items, PurchaseOrderItem)

    order = PurchaseOrder(
        po_number=await unique_document_number(db, PurchaseOrder.po_number, PREFIX_PURCHASE_ORDER),
        po_date=data.po_date or datetime.utcnow(),
        vendor_id=data.vendor_id,
        vendor_ref=data.vendor_ref,
        status=data.status,
        created_by_id=current_user.id,
    )
    order.items = items
    apply_totals(order, totals)
    db.add(order)
    await db.commit()

    logger.info(f"📝 Created purchase order {order.po_number}: {order.total}")
    return build_purchase_order_response(await load_purchase_order(db, order.id))


@router.put("/{order_id}", response_model=PurchaseOrderResponse)
async def update_purchase_order(
    order_id: int,
    data: PurchaseOrderUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Edit header fields or replace the lines; totals are recomputed"""
    order = await load_purchase_order(db, order_id)
    if order.status == OrderStatus.CONVERTED:
        raise HTTPException(status_code=400, detail="Cannot update converted purchase order")

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    if "vendor_id" in update_data:
        await get_vendor(db, data.vendor_id)
        order.vendor_id = data.vendor_id
    if "items" in update_data:
        items, totals = await build_line_items(db, data.items, PurchaseOrderItem)
        order.items = items
        apply_totals(order, totals)
    for field in ("po_date", "vendor_ref", "status"):
        if field in update_data:
            setattr(order, field, update_data[field])

    await db.commit()
    return build_purchase_order_response(await load_purchase_order(db, order_id))


@router.delete("/{order_id}")
async def delete_purchase_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    order = await load_purchase_order(db, order_id)
    if order.status == OrderStatus.CONVERTED:
        raise HTTPException(status_code=400, detail="Cannot delete converted purchase order")
    if order.vendor_bills:
        raise HTTPException(status_code=400, detail="Cannot delete purchase order with vendor bills")

    await db.delete(order)
    await db.commit()
    logger.info(f"Deleted purchase order {order_id}")
    return {"message": "Purchase order deleted successfully"}


@router.post("/{order_id}/convert-to-bill", response_model=VendorBillResponse, status_code=201)
async def convert_to_bill(
    order_id: int,
    data: ConvertToBillRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a vendor bill from the order lines and mark the order CONVERTED"""
    order = await load_purchase_order(db, order_id)
    if order.status == OrderStatus.CONVERTED:
        raise HTTPException(status_code=400, detail="Purchase order already converted")
    if order.status == OrderStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cannot convert a cancelled purchase order")

    bill_date = data.bill_date or datetime.utcnow()
    if data.due_date < bill_date.replace(hour=0, minute=0, second=0, microsecond=0):
        raise HTTPException(status_code=400, detail="due_date cannot be before bill_date")

    try:
        bill = await create_bill_record(
            db,
            vendor_id=order.vendor_id,
            items=copy_line_items(order.items, VendorBillItem),
            due_date=data.due_date,
            bill_date=bill_date,
            bill_reference=data.bill_reference,
            purchase_order_id=order.id,
            created_by_id=current_user.id,
        )
        order.status = OrderStatus.CONVERTED
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"🔄 Converted {order.po_number} into bill {bill.bill_number}")
    return build_vendor_bill_response(await load_vendor_bill(db, bill.id))
