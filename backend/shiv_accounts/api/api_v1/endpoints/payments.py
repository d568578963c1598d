"""Payments API - vendor bill payments and customer invoice receipts"""

import logging
from decimal import Decimal
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shiv_accounts.api.utils import paginate, page_payload, parse_date_param, unique_document_number
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import (
    ReferenceType, PREFIX_BILL_PAYMENT, PREFIX_INVOICE_PAYMENT
)
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.purchase import VendorBill
from shiv_accounts.models.sales import CustomerInvoice
from shiv_accounts.models.payment import BillPayment, InvoicePayment
from shiv_accounts.models.user import User
from shiv_accounts.schemas.payment import (
    BillPaymentCreate, BillPaymentResponse, BillPaymentListResponse,
    InvoicePaymentCreate, InvoicePaymentResponse, InvoicePaymentListResponse, PaymentStats
)
from shiv_accounts.services.calculations import ZERO, money, payment_status_for
from shiv_accounts.services.posting import post_bill_payment, post_invoice_payment, remove_postings

logger = logging.getLogger(__name__)

router = APIRouter()

BILL_PAYMENT_OPTIONS = (selectinload(BillPayment.vendor), selectinload(BillPayment.vendor_bill))
INVOICE_PAYMENT_OPTIONS = (selectinload(InvoicePayment.customer), selectinload(InvoicePayment.customer_invoice))


def build_bill_payment_response(payment: BillPayment) -> BillPaymentResponse:
    return BillPaymentResponse(
        id=payment.id,
        payment_number=payment.payment_number,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        vendor_id=payment.vendor_id,
        vendor_name=payment.vendor.name if payment.vendor else "",
        vendor_bill_id=payment.vendor_bill_id,
        bill_number=payment.vendor_bill.bill_number if payment.vendor_bill else "",
        amount=float(payment.amount),
        reference=payment.reference,
        created_at=payment.created_at,
    )


def build_invoice_payment_response(payment: InvoicePayment) -> InvoicePaymentResponse:
    return InvoicePaymentResponse(
        id=payment.id,
        payment_number=payment.payment_number,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        customer_id=payment.customer_id,
        customer_name=payment.customer.name if payment.customer else "",
        customer_invoice_id=payment.customer_invoice_id,
        invoice_number=payment.customer_invoice.invoice_number if payment.customer_invoice else "",
        amount=float(payment.amount),
        reference=payment.reference,
        created_at=payment.created_at,
    )


async def _load(db: AsyncSession, model, options, payment_id: int):
    result = await db.execute(
        select(model)
        .options(*options)
        .where(model.id == payment_id)
        .execution_options(populate_existing=True)
    )
    payment = result.scalar_one_or_none()
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


def check_amount(amount: Decimal, total: Decimal, paid: Decimal) -> None:
    """A payment must be positive after rounding and may settle at most the remaining balance"""
    if amount <= ZERO:
        raise HTTPException(status_code=400, detail="Payment amount must be greater than 0")
    remaining = total - paid
    if remaining <= ZERO:
        raise HTTPException(status_code=400, detail="Document is already fully paid")
    if amount > remaining:
        raise HTTPException(
            status_code=400,
            detail=f"Payment amount ({amount}) exceeds remaining amount ({remaining})"
        )


def _date_filters(query, column, start_date: Optional[str], end_date: Optional[str]):
    start = parse_date_param(start_date, "start_date")
    end = parse_date_param(end_date, "end_date", end_of_day=True)
    if start:
        query = query.where(column >= start)
    if end:
        query = query.where(column <= end)
    return query


# ============================================================
# Bill payments
# ============================================================

@router.get("/bill-payments", response_model=BillPaymentListResponse)
async def list_bill_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    vendor_id: Optional[int] = None,
    vendor_bill_id: Optional[int] = None,
    payment_method: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(BillPayment)
    if vendor_id:
        query = query.where(BillPayment.vendor_id == vendor_id)
    if vendor_bill_id:
        query = query.where(BillPayment.vendor_bill_id == vendor_bill_id)
    if payment_method:
        query = query.where(BillPayment.payment_method == payment_method)
    query = _date_filters(query, BillPayment.payment_date, start_date, end_date)

    query = query.order_by(BillPayment.payment_date.desc(), BillPayment.id.desc())
    payments, total = await paginate(db, query, page, limit, options=BILL_PAYMENT_OPTIONS)
    return page_payload([build_bill_payment_response(p) for p in payments], total, page, limit)


@router.post("/bill-payments", response_model=BillPaymentResponse, status_code=201)
async def create_bill_payment(
    data: BillPaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Pay a vendor bill

    The bill must belong to the vendor and the amount may not exceed what
    is still owed. The bill moves to PARTIAL or PAID.
    """
    vendor = await db.get(Contact, data.vendor_id)
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found")
    bill = await db.get(VendorBill, data.vendor_bill_id)
    if not bill:
        raise HTTPException(status_code=404, detail="Vendor bill not found")
    if bill.vendor_id != vendor.id:
        raise HTTPException(status_code=400, detail="Vendor bill does not belong to this vendor")

    amount = money(data.amount)
    check_amount(amount, bill.total, bill.paid_amount)

    try:
        payment = BillPayment(
            payment_number=await unique_document_number(db, BillPayment.payment_number, PREFIX_BILL_PAYMENT),
            payment_date=data.payment_date or datetime.utcnow(),
            payment_method=data.payment_method,
            vendor_id=vendor.id,
            vendor_bill_id=bill.id,
            amount=amount,
            reference=data.reference,
            created_by_id=current_user.id,
        )
        db.add(payment)
        bill.paid_amount = bill.paid_amount + amount
        bill.payment_status = payment_status_for(bill.paid_amount, bill.total)
        await db.flush()

        await post_bill_payment(db, payment, bill)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"💸 Paid {amount} on bill {bill.bill_number} ({bill.payment_status})")
    return build_bill_payment_response(await _load(db, BillPayment, BILL_PAYMENT_OPTIONS, payment.id))


@router.delete("/bill-payments/{payment_id}")
async def delete_bill_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Reverse a bill payment and its ledger lines"""
    payment = await _load(db, BillPayment, BILL_PAYMENT_OPTIONS, payment_id)
    bill = payment.vendor_bill

    try:
        bill.paid_amount = max(bill.paid_amount - payment.amount, ZERO)
        bill.payment_status = payment_status_for(bill.paid_amount, bill.total)
        await remove_postings(db, ReferenceType.BILL_PAYMENT, payment.id)
        await db.delete(payment)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Reversed bill payment {payment_id}")
    return {"message": "Payment deleted successfully"}


# ============================================================
# Invoice payments
# ============================================================

@router.get("/invoice-payments", response_model=InvoicePaymentListResponse)
async def list_invoice_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    customer_id: Optional[int] = None,
    customer_invoice_id: Optional[int] = None,
    payment_method: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(InvoicePayment)
    if customer_id:
        query = query.where(InvoicePayment.customer_id == customer_id)
    if customer_invoice_id:
        query = query.where(InvoicePayment.customer_invoice_id == customer_invoice_id)
    if payment_method:
        query = query.where(InvoicePayment.payment_method == payment_method)
    query = _date_filters(query, InvoicePayment.payment_date, start_date, end_date)

    query = query.order_by(InvoicePayment.payment_date.desc(), InvoicePayment.id.desc())
    payments, total = await paginate(db, query, page, limit, options=INVOICE_PAYMENT_OPTIONS)
    return page_payload([build_invoice_payment_response(p) for p in payments], total, page, limit)


@router.post("/invoice-payments", response_model=InvoicePaymentResponse, status_code=201)
async def create_invoice_payment(
    data: InvoicePaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Receive a customer payment

    The invoice must belong to the customer and the amount may not exceed
    what is still due. The invoice moves to PARTIAL or PAID.
    """
    customer = await db.get(Contact, data.customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    invoice = await db.get(CustomerInvoice, data.customer_invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Customer invoice not found")
    if invoice.customer_id != customer.id:
        raise HTTPException(status_code=400, detail="Customer invoice does not belong to this customer")

    amount = money(data.amount)
    check_amount(amount, invoice.total, invoice.paid_amount)

    try:
        payment = InvoicePayment(
            payment_number=await unique_document_number(db, InvoicePayment.payment_number, PREFIX_INVOICE_PAYMENT),
            payment_date=data.payment_date or datetime.utcnow(),
            payment_method=data.payment_method,
            customer_id=customer.id,
            customer_invoice_id=invoice.id,
            amount=amount,
            reference=data.reference,
            created_by_id=current_user.id,
        )
        db.add(payment)
        invoice.paid_amount = invoice.paid_amount + amount
        invoice.payment_status = payment_status_for(invoice.paid_amount, invoice.total)
        await db.flush()

        await post_invoice_payment(db, payment, invoice)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"💰 Received {amount} on invoice {invoice.invoice_number} ({invoice.payment_status})")
    return build_invoice_payment_response(await _load(db, InvoicePayment, INVOICE_PAYMENT_OPTIONS, payment.id))


@router.delete("/invoice-payments/{payment_id}")
async def delete_invoice_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Reverse an invoice payment and its ledger lines"""
    payment = await _load(db, InvoicePayment, INVOICE_PAYMENT_OPTIONS, payment_id)
    invoice = payment.customer_invoice

    try:
        invoice.paid_amount = max(invoice.paid_amount - payment.amount, ZERO)
        invoice.payment_status = payment_status_for(invoice.paid_amount, invoice.total)
        await remove_postings(db, ReferenceType.INVOICE_PAYMENT, payment.id)
        await db.delete(payment)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Reversed invoice payment {payment_id}")
    return {"message": "Payment deleted successfully"}


# ============================================================
# Summaries
# ============================================================

@router.get("/stats", response_model=PaymentStats)
async def payment_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    bill_count, total_paid = (await db.execute(
        select(func.count(BillPayment.id), func.coalesce(func.sum(BillPayment.amount), 0))
    )).one()
    invoice_count, total_received = (await db.execute(
        select(func.count(InvoicePayment.id), func.coalesce(func.sum(InvoicePayment.amount), 0))
    )).one()

    paid = money(total_paid)
    received = money(total_received)
    return PaymentStats(
        bill_payment_count=bill_count,
        invoice_payment_count=invoice_count,
        total_paid=float(paid),
        total_received=float(received),
        net_cash_flow=float(received - paid),
    )


@router.get("/by-date-range")
async def payments_by_date_range(
    start_date: str = Query(..., description="YYYY-MM-DD"),
    end_date: str = Query(..., description="YYYY-MM-DD"),
    type: str = Query("all", description="bill / invoice / all"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Payments made and received within a date range"""
    if type not in ("bill", "invoice", "all"):
        raise HTTPException(status_code=400, detail="type must be bill, invoice or all")
    start = parse_date_param(start_date, "start_date", required=True)
    end = parse_date_param(end_date, "end_date", end_of_day=True, required=True)
    if start > end:
        raise HTTPException(status_code=400, detail="start_date must be before end_date")

    response = {"start_date": start.isoformat(), "end_date": end.isoformat()}

    if type in ("bill", "all"):
        result = await db.execute(
            select(BillPayment)
            .options(*BILL_PAYMENT_OPTIONS)
            .where(BillPayment.payment_date >= start, BillPayment.payment_date <= end)
            .order_by(BillPayment.payment_date.desc())
        )
        bill_payments = [build_bill_payment_response(p) for p in result.scalars().all()]
        response["bill_payments"] = bill_payments
        response["total_paid"] = float(sum((money(p.amount) for p in bill_payments), ZERO))

    if type in ("invoice", "all"):
        result = await db.execute(
            select(InvoicePayment)
            .options(*INVOICE_PAYMENT_OPTIONS)
            .where(InvoicePayment.payment_date >= start, InvoicePayment.payment_date <= end)
            .order_by(InvoicePayment.payment_date.desc())
        )
        invoice_payments = [build_invoice_payment_response(p) for p in result.scalars().all()]
        response["invoice_payments"] = invoice_payments
        response["total_received"] = float(sum((money(p.amount) for p in invoice_payments), ZERO))

    return response
