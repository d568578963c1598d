"""Customer invoice API - amounts receivable from customers"""

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
    OrderStatus, PaymentStatus, ReferenceType, PREFIX_CUSTOMER_INVOICE
)
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.sales import SalesOrder, CustomerInvoice, CustomerInvoiceItem
from shiv_accounts.models.user import User
from shiv_accounts.schemas.sales import (
    CustomerInvoiceCreate, CustomerInvoiceUpdate, CustomerInvoiceResponse, CustomerInvoiceListResponse, InvoicePaymentBrief
)
from shiv_accounts.services.calculations import ZERO
from shiv_accounts.services.documents import (
    apply_totals, build_line_items, build_line_response, get_customer, is_overdue, totals_from_items
)
from shiv_accounts.services.posting import post_customer_invoice, remove_postings

logger = logging.getLogger(__name__)

router = APIRouter()

INVOICE_OPTIONS = (
    selectinload(CustomerInvoice.customer),
    selectinload(CustomerInvoice.sales_order),
    selectinload(CustomerInvoice.items).selectinload(CustomerInvoiceItem.product),
    selectinload(CustomerInvoice.items).selectinload(CustomerInvoiceItem.tax),
    selectinload(CustomerInvoice.payments),
)


def build_customer_invoice_response(invoice: CustomerInvoice) -> CustomerInvoiceResponse:
    return CustomerInvoiceResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
        customer_id=invoice.customer_id,
        customer_name=invoice.customer.name if invoice.customer else "",
        sales_order_id=invoice.sales_order_id,
        so_number=invoice.sales_order.so_number if invoice.sales_order else None,
        invoice_reference=invoice.invoice_reference,
        payment_status=invoice.payment_status,
        subtotal=float(invoice.subtotal),
        tax_amount=float(invoice.tax_amount),
        total=float(invoice.total),
        paid_amount=float(invoice.paid_amount),
        remaining_amount=float(invoice.remaining_amount),
        is_overdue=is_overdue(invoice.due_date, invoice.payment_status),
        items=[build_line_response(i) for i in invoice.items],
        payments=[
            InvoicePaymentBrief(
                id=p.id,
                payment_number=p.payment_number,
                payment_date=p.payment_date,
                payment_method=p.payment_method,
                amount=float(p.amount),
                reference=p.reference,
            )
            for p in invoice.payments
        ],
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
    )


async def load_customer_invoice(db: AsyncSession, invoice_id: int) -> CustomerInvoice:
    """Invoice with customer, lines and payments loaded"""
    result = await db.execute(
        select(CustomerInvoice)
        .options(*INVOICE_OPTIONS)
        .where(CustomerInvoice.id == invoice_id)
        .execution_options(populate_existing=True)
    )
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise HTTPException(status_code=404, detail="Customer invoice not found")
    return invoice


async def create_invoice_record(
    db: AsyncSession,
    customer_id: int,
    items: list,
    due_date: datetime,
    invoice_date: Optional[datetime] = None,
    invoice_reference: Optional[str] = None,
    sales_order_id: Optional[int] = None,
    created_by_id: Optional[int] = None) -> CustomerInvoice:
    """Insert an invoice with its priced lines and post it; the caller commits"""
    invoice = CustomerInvoice(
        invoice_number=await unique_document_number(db, CustomerInvoice.invoice_number, PREFIX_CUSTOMER_INVOICE),
        invoice_date=invoice_date or datetime.utcnow(),
        due_date=due_date,
        customer_id=customer_id,
        sales_order_id=sales_order_id,
        invoice_reference=invoice_reference,
        payment_status=PaymentStatus.UNPAID,
        paid_amount=ZERO,
        created_by_id=created_by_id,
    )
    invoice.items = items
    apply_totals(invoice, totals_from_items(items))
    db.add(invoice)
    await db.flush()

    await post_customer_invoice(db, invoice)
    return invoice


@router.get("", response_model=CustomerInvoiceListResponse)
async def list_customer_invoices(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    payment_status: Optional[str] = Query(None, description="UNPAID / PARTIAL / PAID"),
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(CustomerInvoice)

    if payment_status:
        query = query.where(CustomerInvoice.payment_status == payment_status)
    if customer_id:
        query = query.where(CustomerInvoice.customer_id == customer_id)
    if search:
        pattern = f"%{search}%"
        query = query.join(Contact, CustomerInvoice.customer_id == Contact.id).where(or_(
            CustomerInvoice.invoice_number.ilike(pattern),
            CustomerInvoice.invoice_reference.ilike(pattern),
            Contact.name.ilike(pattern),
        ))

    query = query.order_by(CustomerInvoice.created_at.desc(), CustomerInvoice.id.desc())
    invoices, total = await paginate(db, query, page, limit, options=INVOICE_OPTIONS)
    return page_payload([build_customer_invoice_response(b) for b in invoices], total, page, limit)


@router.get("/stats")
async def customer_invoice_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(
        select(
            CustomerInvoice.payment_status,
            func.count(CustomerInvoice.id),
            func.coalesce(func.sum(CustomerInvoice.total), 0),
            func.coalesce(func.sum(CustomerInvoice.paid_amount), 0),
        ).group_by(CustomerInvoice.payment_status)
    )
    counts = {}
    total_value = paid_value = Decimal("0")
    for status, count, total, paid in result.all():
        counts[status] = count
        total_value += Decimal(str(total))
        paid_value += Decimal(str(paid))

    return {
        "total_invoices": sum(counts.values()),
        "paid_invoices": counts.get(PaymentStatus.PAID, 0),
        "unpaid_invoices": counts.get(PaymentStatus.UNPAID, 0),
        "partial_invoices": counts.get(PaymentStatus.PARTIAL, 0),
        "total_value": float(total_value),
        "paid_value": float(paid_value),
        "pending_value": float(total_value - paid_value),
    }


@router.get("/{invoice_id}", response_model=CustomerInvoiceResponse)
async def get_customer_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return build_customer_invoice_response(await load_customer_invoice(db, invoice_id))


@router.post("", response_model=CustomerInvoiceResponse, status_code=201)
async def create_customer_invoice(
    data: CustomerInvoiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Record a customer invoice

    A linked sales order must belong to the same customer and not be
    cancelled; it is marked CONVERTED.
    """
    await get_customer(db, data.customer_id)

    order = None
    if data.sales_order_id is not None:
        order = await db.get(SalesOrder, data.sales_order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Sales order not found")
        if order.customer_id != data.customer_id:
            raise HTTPException(status_code=400, detail="Sales order belongs to a different customer")
        if order.status == OrderStatus.CANCELLED:
            raise HTTPException(status_code=400, detail="Cannot invoice a cancelled sales order")

    items, _ = await build_line_items(db, data.items, CustomerInvoiceItem)

    try:
        invoice = await create_invoice_record(
            db,
            customer_id=data.customer_id,
            items=items,
            due_date=data.due_date,
            invoice_date=data.invoice_date,
            invoice_reference=data.invoice_reference,
            sales_order_id=data.sales_order_id,
            created_by_id=current_user.id,
        )
        if order is not None:
            order.status = OrderStatus.CONVERTED
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"🧾 Created customer invoice {invoice.invoice_number}: {invoice.total}")
    return build_customer_invoice_response(await load_customer_invoice(db, invoice.id))


@router.put("/{invoice_id}", response_model=CustomerInvoiceResponse)
async def update_customer_invoice(
    invoice_id: int,
    data: CustomerInvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Dates and reference can always change; lines only while nothing is paid"""
    invoice = await load_customer_invoice(db, invoice_id)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    repost = False
    if "items" in update_data:
        if invoice.paid_amount > ZERO:
            raise HTTPException(status_code=400, detail="Cannot change lines of an invoice with payments")
        items, totals = await build_line_items(db, data.items, CustomerInvoiceItem)
        invoice.items = items
        apply_totals(invoice, totals)
        repost = True

    if "invoice_date" in update_data:
        invoice.invoice_date = data.invoice_date
        repost = True
    if "due_date" in update_data:
        invoice.due_date = data.due_date
    if "invoice_reference" in update_data:
        invoice.invoice_reference = data.invoice_reference

    if invoice.due_date < invoice.invoice_date:
        raise HTTPException(status_code=400, detail="due_date cannot be before invoice_date")

    try:
        if repost:
            await db.flush()
            await remove_postings(db, ReferenceType.CUSTOMER_INVOICE, invoice.id)
            await post_customer_invoice(db, invoice)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return build_customer_invoice_response(await load_customer_invoice(db, invoice_id))


@router.delete("/{invoice_id}")
async def delete_customer_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Delete an unpaid invoice, its postings, and reopen its sales order"""
    invoice = await load_customer_invoice(db, invoice_id)

    if invoice.paid_amount > ZERO:
        raise HTTPException(status_code=400, detail="Cannot delete invoice with payments")

    order_id = invoice.sales_order_id
    try:
        await remove_postings(db, ReferenceType.CUSTOMER_INVOICE, invoice.id)
        await db.delete(invoice)
        await db.flush()

        if order_id is not None:
            remaining = await db.execute(
                select(CustomerInvoice.id).where(CustomerInvoice.sales_order_id == order_id).limit(1)
            )
            order = await db.get(SalesOrder, order_id)
            if order and order.status == OrderStatus.CONVERTED and not remaining.first():
                order.status = OrderStatus.CONFIRMED
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Deleted customer invoice {invoice_id}")
    return {"message": "Customer invoice deleted successfully"}
