"""
Ledger and stock posting for bills, invoices and payments

Posting rules:
1. Customer invoice:
   - Dr Accounts Receivable (customer)   total
   - Cr Sales Income                      subtotal
   - Cr GST Payable                       tax
   - stock OUT for every GOODS line

2. Vendor bill:
   - Dr Purchases                         subtotal
   - Dr GST Payable (input credit)        tax
   - Cr Accounts Payable (vendor)         total
   - stock IN for every GOODS line

3. Invoice payment: Dr Cash (CASH) or Bank (other methods), Cr Accounts Receivable
4. Bill payment: Dr Accounts Payable, Cr Cash or Bank

Every row carries (reference_type, reference_id) of its source document so
the posting can be removed again when the document is deleted.
Callers must pass documents whose items have `product` set.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from fastapi import HTTPException
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.core.config import settings
from shiv_accounts.core.constants import EntryType, MovementType, PaymentMethod, ReferenceType
from shiv_accounts.models.account import ChartOfAccount
from shiv_accounts.models.ledger import LedgerEntry
from shiv_accounts.models.stock import StockMovement
from shiv_accounts.models.purchase import VendorBill
from shiv_accounts.models.sales import CustomerInvoice
from shiv_accounts.models.payment import BillPayment, InvoicePayment

logger = logging.getLogger(__name__)


async def get_account_by_code(db: AsyncSession, code: str) -> ChartOfAccount:
    """Posting account lookup; a missing account is a setup error reported as 400"""
    result = await db.execute(select(ChartOfAccount).where(ChartOfAccount.code == code))
    account = result.scalar_one_or_none()
    if not account:
        raise HTTPException(status_code=400, detail=f"Posting account {code} is not configured in the chart of accounts")
    return account


async def _accounts(db: AsyncSession, *codes: str) -> Dict[str, ChartOfAccount]:
    return {code: await get_account_by_code(db, code) for code in codes}


def _add_entry(
    db: AsyncSession,
    account: ChartOfAccount,
    entry_type: str,
    amount: Decimal,
    description: str,
    reference_type: str,
    reference_id: int,
    transaction_date: datetime,
    contact_id: Optional[int] = None) -> None:
    """Create one ledger row; zero amounts are skipped"""
    if amount <= Decimal("0"):
        return
    db.add(LedgerEntry(
        account_id=account.id,
        contact_id=contact_id,
        entry_type=entry_type,
        amount=amount,
        description=description,
        reference_type=reference_type,
        reference_id=reference_id,
        transaction_date=transaction_date,
    ))


def _add_movements(db: AsyncSession, document, movement_type: str, reference_type: str, description: str, movement_date: datetime) -> None:
    for item in document.items:
        if not item.product.is_goods:
            continue
        db.add(StockMovement(
            product_id=item.product_id,
            movement_type=movement_type,
            quantity=item.quantity,
            reference_type=reference_type,
            reference_id=document.id,
            description=description,
            movement_date=movement_date,
        ))


def _cash_or_bank_code(payment_method: str) -> str:
    return settings.ACCOUNT_CASH if payment_method == PaymentMethod.CASH else settings.ACCOUNT_BANK


async def post_customer_invoice(db: AsyncSession, invoice: CustomerInvoice) -> None:
    accounts = await _accounts(db, settings.ACCOUNT_RECEIVABLE, settings.ACCOUNT_SALES, settings.ACCOUNT_GST_PAYABLE)
    ref = ReferenceType.CUSTOMER_INVOICE
    narration = f"Customer invoice {invoice.invoice_number}"
    when = invoice.invoice_date

    _add_entry(db, accounts[settings.ACCOUNT_RECEIVABLE], EntryType.DEBIT, invoice.total,
               narration, ref, invoice.id, when, contact_id=invoice.customer_id)
    _add_entry(db, accounts[settings.ACCOUNT_SALES], EntryType.CREDIT, invoice.subtotal,
               narration, ref, invoice.id, when)
    _add_entry(db, accounts[settings.ACCOUNT_GST_PAYABLE], EntryType.CREDIT, invoice.tax_amount,
               f"Output GST on {invoice.invoice_number}", ref, invoice.id, when)
    _add_movements(db, invoice, MovementType.OUT, ref, narration, when)
    logger.info(f"📒 Posted invoice {invoice.invoice_number}: total {invoice.total}")


async def post_vendor_bill(db: AsyncSession, bill: VendorBill) -> None:
    accounts = await _accounts(db, settings.ACCOUNT_PAYABLE, settings.ACCOUNT_PURCHASES, settings.ACCOUNT_GST_PAYABLE)
    ref = ReferenceType.VENDOR_BILL
    narration = f"Vendor bill {bill.bill_number}"
    when = bill.bill_date

    _add_entry(db, accounts[settings.ACCOUNT_PURCHASES], EntryType.DEBIT, bill.subtotal,
               narration, ref, bill.id, when)
    _add_entry(db, accounts[settings.ACCOUNT_GST_PAYABLE], EntryType.DEBIT, bill.tax_amount,
               f"Input GST on {bill.bill_number}", ref, bill.id, when)
    _add_entry(db, accounts[settings.ACCOUNT_PAYABLE], EntryType.CREDIT, bill.total,
               narration, ref, bill.id, when, contact_id=bill.vendor_id)
    _add_movements(db, bill, MovementType.IN, ref, narration, when)
    logger.info(f"📒 Posted bill {bill.bill_number}: total {bill.total}")


async def post_invoice_payment(db: AsyncSession, payment: InvoicePayment, invoice: CustomerInvoice) -> None:
    cash_code = _cash_or_bank_code(payment.payment_method)
    accounts = await _accounts(db, cash_code, settings.ACCOUNT_RECEIVABLE)
    ref = ReferenceType.INVOICE_PAYMENT
    narration = f"Receipt {payment.payment_number} for {invoice.invoice_number}"

    _add_entry(db, accounts[cash_code], EntryType.DEBIT, payment.amount,
               narration, ref, payment.id, payment.payment_date)
    _add_entry(db, accounts[settings.ACCOUNT_RECEIVABLE], EntryType.CREDIT, payment.amount,
               narration, ref, payment.id, payment.payment_date, contact_id=payment.customer_id)


async def post_bill_payment(db: AsyncSession, payment: BillPayment, bill: VendorBill) -> None:
    cash_code = _cash_or_bank_code(payment.payment_method)
    accounts = await _accounts(db, cash_code, settings.ACCOUNT_PAYABLE)
    ref = ReferenceType.BILL_PAYMENT
    narration = f"Payment {payment.payment_number} for {bill.bill_number}"

    _add_entry(db, accounts[settings.ACCOUNT_PAYABLE], EntryType.DEBIT, payment.amount,
               narration, ref, payment.id, payment.payment_date, contact_id=payment.vendor_id)
    _add_entry(db, accounts[cash_code], EntryType.CREDIT, payment.amount,
               narration, ref, payment.id, payment.payment_date)


async def remove_postings(db: AsyncSession, reference_type: str, reference_id: int) -> None:
    """Delete every ledger row and stock movement created for a document"""
    await db.execute(
        delete(LedgerEntry).where(
            LedgerEntry.reference_type == reference_type,
            LedgerEntry.reference_id == reference_id,
        )
    )
    await db.execute(
        delete(StockMovement).where(
            StockMovement.reference_type == reference_type,
            StockMovement.reference_id == reference_id,
        )
    )
