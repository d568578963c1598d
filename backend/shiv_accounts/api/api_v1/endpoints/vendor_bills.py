"""Vendor bill API - amounts payable to vendors"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shiv_accounts.api.utils import paginate, page_payload, unique_document_number
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import (
    OrderStatus, PaymentStatus, ReferenceType, PREFIX_VENDOR_BILL
)
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.purchase import PurchaseOrder, VendorBill, VendorBillItem
from shiv_accounts.models.user import User
from shiv_accounts.schemas.purchase import (
    VendorBillCreate, VendorBillUpdate, VendorBillResponse, VendorBillListResponse, BillPaymentBrief
)
from shiv_accounts.services.calculations import ZERO
from shiv_accounts.services.documents import (
    apply_totals, build_line_items, build_line_response, get_vendor, is_overdue, totals_from_items
)
from shiv_accounts.services.posting import post_vendor_bill, remove_postings

logger = logging.getLogger(__name__)

router = APIRouter()

BILL_OPTIONS = (
    selectinload(VendorBill.vendor),
    selectinload(VendorBill.purchase_order),
    selectinload(VendorBill.items).selectinload(VendorBillItem.product),
    selectinload(VendorBill.items).selectinload(VendorBillItem.tax),
    selectinload(VendorBill.payments),
)


def build_vendor_bill_response(bill: VendorBill) -> VendorBillResponse:
    return VendorBillResponse(
        id=bill.id,
        bill_number=bill.bill_number,
        bill_date=bill.bill_date,
        due_date=bill.due_date,
        vendor_id=bill.vendor_id,
        vendor_name=bill.vendor.name if bill.vendor else "",
        purchase_order_id=bill.purchase_order_id,
        po_number=bill.purchase_order.po_number if bill.purchase_order else None,
        bill_reference=bill.bill_reference,
        payment_status=bill.payment_status,
        subtotal=float(bill.subtotal),
        tax_amount=float(bill.tax_amount),
        total=float(bill.total),
        paid_amount=float(bill.paid_amount),
        remaining_amount=float(bill.remaining_amount),
        is_overdue=is_overdue(bill.due_date, bill.payment_status),
        items=[build_line_response(i) for i in bill.items],
        payments=[
            BillPaymentBrief(
                id=p.id,
                payment_number=p.payment_number,
                payment_date=p.payment_date,
                payment_method=p.payment_method,
                amount=float(p.amount),
                reference=p.reference,
            )
            for p in bill.payments
        ],
        created_at=bill.created_at,
        updated_at=bill.updated_at,
    )


async def load_vendor_bill(db: AsyncSession, bill_id: int) -> VendorBill:
    """Bill with vendor, lines and payments loaded"""
    result = await db.execute(
        select(VendorBill)
        .options(*BILL_OPTIONS)
        .where(VendorBill.id == bill_id)
        .execution_options(populate_existing=True)
    )
    bill = result.scalar_one_or_none()
    if not bill:
        raise HTTPException(status_code=404, detail="Vendor bill not found")
    return bill


async def create_bill_record(
    db: AsyncSession,
    vendor_id: int,
    items: list,
    due_date: datetime,
    bill_date: Optional[datetime] = None,
    bill_reference: Optional[str] = None,
    purchase_order_id: Optional[int] = None,
    created_by_id: Optional[int] = None) -> VendorBill:
    """Insert a bill with its priced lines and post it; the caller commits"""
    bill = VendorBill(
        bill_number=await unique_document_number(db, VendorBill.bill_number, PREFIX_VENDOR_BILL),
        bill_date=bill_date or datetime.utcnow(),
        due_date=due_date,
        vendor_id=vendor_id,
        purchase_order_id=purchase_order_id,
        bill_reference=bill_reference,
        payment_status=PaymentStatus.UNPAID,
        paid_amount=ZERO,
        created_by_id=created_by_id,
    )
    bill.items = items
    apply_totals(bill, totals_from_items(items))
    db.add(bill)
    await db.flush()

    await post_vendor_bill(db, bill)
    return bill


@router.get("", response_model=VendorBillListResponse)
async def list_vendor_bills(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    payment_status: Optional[str] = Query(None, description="UNPAID / PARTIAL / PAID"),
    vendor_id: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(VendorBill)

    if payment_status:
        query = query.where(VendorBill.payment_status == payment_status)
    if vendor_id:
        query = query.where(VendorBill.vendor_id == vendor_id)
    if search:
        pattern = f"%{search}%"
        query = query.join(Contact, VendorBill.vendor_id == Contact.id).where(or_(
            VendorBill.bill_number.ilike(pattern),
            VendorBill.bill_reference.ilike(pattern),
            Contact.name.ilike(pattern),
        ))

    query = query.order_by(VendorBill.created_at.desc(), VendorBill.id.desc())
    bills, total = await paginate(db, query, page, limit, options=BILL_OPTIONS)
    return page_payload([build_vendor_bill_response(b) for b in bills], total, page, limit)


@router.get("/stats")
async def vendor_bill_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(
        select(
            VendorBill.payment_status,
            func.count(VendorBill.id),
            func.coalesce(func.sum(VendorBill.total), 0),
            func.coalesce(func.sum(VendorBill.paid_amount), 0),
        ).group_by(VendorBill.payment_status)
    )
    counts = {}
    total_value = paid_value = Decimal("0")
    for status, count, total, paid in result.all():
        counts[status] = count
        total_value += Decimal(str(total))
        paid_value += Decimal(str(paid))

    return {
        "total_bills": sum(counts.values()),
        "paid_bills": counts.get(PaymentStatus.PAID, 0),
        "unpaid_bills": counts.get(PaymentStatus.UNPAID, 0),
        "partial_bills": counts.get(PaymentStatus.PARTIAL, 0),
        "total_value": float(total_value),
        "paid_value": float(paid_value),
        "pending_value": float(total_value - paid_value),
    }


@router.get("/{bill_id}", response_model=VendorBillResponse)
async def get_vendor_bill(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return build_vendor_bill_response(await load_vendor_bill(db, bill_id))


@router.post("", response_model=VendorBillResponse, status_code=201)
async def create_vendor_bill(
    data: VendorBillCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Record a vendor bill

    A linked purchase order must belong to the same vendor and not be
    cancelled; it is marked CONVERTED.
    """
    await get_vendor(db, data.vendor_id)

    order = None
    if data.purchase_order_id is not None:
        order = await db.get(PurchaseOrder, data.purchase_order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Purchase order not found")
        if order.vendor_id != data.vendor_id:
            raise HTTPException(status_code=400, detail="Purchase order belongs to a different vendor")
        if order.status == OrderStatus.CANCELLED:
            raise HTTPException(status_code=400, detail="Cannot bill a cancelled purchase order")

    items, _ = await build_line_items(db, data.items, VendorBillItem)

    try:
        bill = await create_bill_record(
            db,
            vendor_id=data.vendor_id,
            items=items,
            due_date=data.due_date,
            bill_date=data.bill_date,
            bill_reference=data.bill_reference,
            purchase_order_id=data.purchase_order_id,
            created_by_id=current_user.id,
        )
        if order is not None:
            order.status = OrderStatus.CONVERTED
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"🧾 Created vendor bill {bill.bill_number}: {bill.total}")
    return build_vendor_bill_response(await load_vendor_bill(db, bill.id))


@router.put("/{bill_id}", response_model=VendorBillResponse)
async def update_vendor_bill(
    bill_id: int,
    data: VendorBillUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Dates and reference can always change; lines only while nothing is paid"""
    bill = await load_vendor_bill(db, bill_id)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    repost = False
    if "items" in update_data:
        if bill.paid_amount > ZERO:
            raise HTTPException(status_code=400, detail="Cannot change lines of a bill with payments")
        items, totals = await build_line_items(db, data.items, VendorBillItem)
        bill.items = items
        apply_totals(bill, totals)
        repost = True

    if "bill_date" in update_data:
        bill.bill_date = data.bill_date
        repost = True
    if "due_date" in update_data:
        bill.due_date = data.due_date
    if "bill_reference" in update_data:
        bill.bill_reference = data.bill_reference

    if bill.due_date < bill.bill_date:
        raise HTTPException(status_code=400, detail="due_date cannot be before bill_date")

    try:
        if repost:
            await db.flush()
            await remove_postings(db, ReferenceType.VENDOR_BILL, bill.id)
            await post_vendor_bill(db, bill)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return build_vendor_bill_response(await load_vendor_bill(db, bill_id))


@router.delete("/{bill_id}")
async def delete_vendor_bill(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Delete an unpaid bill, its postings, and reopen its purchase order"""
    bill = await load_vendor_bill(db, bill_id)

    if bill.paid_amount > ZERO:
        raise HTTPException(status_code=400, detail="Cannot delete bill with payments")

    order_id = bill.purchase_order_id
    try:
        await remove_postings(db, ReferenceType.VENDOR_BILL, bill.id)
        await db.delete(bill)
        await db.flush()

        if order_id is not None:
            remaining = await db.execute(
                select(VendorBill.id).where(VendorBill.purchase_order_id == order_id).limit(1)
            )
            order = await db.get(PurchaseOrder, order_id)
            if order and order.status == OrderStatus.CONVERTED and not remaining.first():
                order.status = OrderStatus.CONFIRMED
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Deleted vendor bill {bill_id}")
    return {"message": "Vendor bill deleted successfully"}
