"""Financial reports API

All figures are read from the ledger and stock movements written when
bills, invoices and payments are posted.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shiv_accounts.api.utils import parse_date_param
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import AccountType, EntryType, MovementType, PaymentStatus, ProductType
from shiv_accounts.models.account import ChartOfAccount
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.ledger import LedgerEntry
from shiv_accounts.models.payment import BillPayment, InvoicePayment
from shiv_accounts.models.product import Product
from shiv_accounts.models.purchase import VendorBill
from shiv_accounts.models.sales import CustomerInvoice
from shiv_accounts.models.stock import StockMovement
from shiv_accounts.models.user import User
from shiv_accounts.schemas.report import (
    AccountBalanceItem, ReportSection, ReportPeriod,
    BalanceSheetResponse, ProfitLossResponse,
    StockMovementLine, StockStatementItem, StockSummary, StockStatementResponse,
    PartnerInfo, PartnerTransaction, PartnerSummary, PartnerLedgerResponse,
    AmountCount, PeriodFigures, DashboardResponse
)
from shiv_accounts.services.balances import account_totals, normal_balance
from shiv_accounts.services.calculations import ZERO, money

logger = logging.getLogger(__name__)

router = APIRouter()

BALANCE_TOLERANCE = Decimal("0.01")


async def account_balances(db: AsyncSession, start: Optional[datetime] = None, end: Optional[datetime] = None):
    """(account, balance on its normal side) for every account with a non-zero balance"""
    totals = await account_totals(db, start=start, end=end)
    accounts = (await db.execute(select(ChartOfAccount).order_by(ChartOfAccount.code))).scalars().all()

    balances = []
    for account in accounts:
        debit, credit = totals.get(account.id, (ZERO, ZERO))
        balance = normal_balance(account.type, debit, credit)
        if balance != ZERO:
            balances.append((account, balance))
    return balances


def build_section(rows) -> ReportSection:
    items = [
        AccountBalanceItem(id=a.id, code=a.code, name=a.name, type=a.type, balance=float(b))
        for a, b in rows
    ]
    return ReportSection(items=items, total=float(sum((b for _, b in rows), ZERO)))


@router.get("/balance-sheet", response_model=BalanceSheetResponse)
async def balance_sheet(
    as_of_date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to now"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """
    Assets against liabilities and equity as of a date

    Income and expense accounts are not listed; their net (current
    earnings) is shown as a line of equity so the sheet balances.
    """
    as_of = parse_date_param(as_of_date, "as_of_date", end_of_day=True) or datetime.utcnow()
    balances = await account_balances(db, end=as_of)

    by_type = {t: [] for t in AccountType.ALL}
    for account, balance in balances:
        by_type[account.type].append((account, balance))

    earnings = (
        sum((b for _, b in by_type[AccountType.INCOME]), ZERO)
        - sum((b for _, b in by_type[AccountType.EXPENSE]), ZERO)
    )

    assets = build_section(by_type[AccountType.ASSET])
    liabilities = build_section(by_type[AccountType.LIABILITY])
    equity = build_section(by_type[AccountType.EQUITY])
    if earnings != ZERO:
        equity.items.append(AccountBalanceItem(name="Current Earnings", type=AccountType.EQUITY, balance=float(earnings)))
        equity.total = float(money(Decimal(str(equity.total)) + earnings))

    total_assets = Decimal(str(assets.total))
    total_le = money(Decimal(str(liabilities.total)) + Decimal(str(equity.total)))

    return BalanceSheetResponse(
        as_of_date=as_of,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        current_earnings=float(earnings),
        total_liabilities_and_equity=float(total_le),
        is_balanced=abs(total_assets - total_le) < BALANCE_TOLERANCE,
    )


@router.get("/profit-loss", response_model=ProfitLossResponse)
async def profit_loss(
    start_date: str = Query(..., description="YYYY-MM-DD"),
    end_date: str = Query(..., description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    start = parse_date_param(start_date, "start_date", required=True)
    end = parse_date_param(end_date, "end_date", end_of_day=True, required=True)
    if start > end:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")

    balances = await account_balances(db, start=start, end=end)
    income = build_section([(a, b) for a, b in balances if a.type == AccountType.INCOME])
    expenses = build_section([(a, b) for a, b in balances if a.type == AccountType.EXPENSE])
    net_profit = money(Decimal(str(income.total)) - Decimal(str(expenses.total)))

    return ProfitLossResponse(
        period=ReportPeriod(start_date=start, end_date=end),
        income=income,
        expenses=expenses,
        net_profit=float(net_profit),
        is_profit=net_profit >= ZERO,
    )


@router.get("/stock-statement", response_model=StockStatementResponse)
async def stock_statement(
    as_of_date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to now"),
    product_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Quantities in, out and adjusted per GOODS product, valued at purchase price"""
    as_of = parse_date_param(as_of_date, "as_of_date", end_of_day=True) or datetime.utcnow()

    product_query = select(Product).where(Product.type == ProductType.GOODS).order_by(Product.name)
    if product_id is not None:
        product = await db.get(Product, product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        product_query = product_query.where(Product.id == product_id)
    products = (await db.execute(product_query)).scalars().all()

    movement_query = (
        select(StockMovement)
        .where(StockMovement.movement_date <= as_of)
        .order_by(StockMovement.product_id, StockMovement.movement_date, StockMovement.id)
    )
    if product_id is not None:
        movement_query = movement_query.where(StockMovement.product_id == product_id)
    movements = (await db.execute(movement_query)).scalars().all()

    grouped = {}
    for movement in movements:
        grouped.setdefault(movement.product_id, []).append(movement)

    items = []
    total_quantity = total_value = ZERO
    for product in products:
        purchases = sales = adjustments = ZERO
        lines = []
        for m in grouped.get(product.id, []):
            if m.movement_type == MovementType.IN:
                purchases += m.quantity
            elif m.movement_type == MovementType.OUT:
                sales += m.quantity
            else:
                adjustments += m.quantity
            lines.append(StockMovementLine(
                id=m.id,
                movement_type=m.movement_type,
                quantity=float(m.quantity),
                movement_date=m.movement_date,
                reference_type=m.reference_type,
                reference_id=m.reference_id,
                description=m.description,
            ))

        closing = purchases - sales + adjustments
        value = money(closing * product.purchase_price)
        total_quantity += closing
        total_value += value
        items.append(StockStatementItem(
            product_id=product.id,
            product_name=product.name,
            purchase_price=float(product.purchase_price),
            purchases=float(purchases),
            sales=float(sales),
            adjustments=float(adjustments),
            closing_stock=float(closing),
            stock_value=float(value),
            movements=lines,
        ))

    return StockStatementResponse(
        as_of_date=as_of,
        items=items,
        summary=StockSummary(
            total_products=len(items),
            total_quantity=float(total_quantity),
            total_stock_value=float(total_value),
        ),
    )


@router.get("/partner-ledger", response_model=PartnerLedgerResponse)
async def partner_ledger(
    contact_id: int,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """
    Receivable and payable movements of one contact

    The running balance is debit minus credit: positive means the contact
    owes us, negative means we owe the contact.
    """
    contact = await db.get(Contact, contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")

    start = parse_date_param(start_date, "start_date")
    end = parse_date_param(end_date, "end_date", end_of_day=True)

    query = (
        select(LedgerEntry)
        .options(selectinload(LedgerEntry.account))
        .where(LedgerEntry.contact_id == contact_id)
        .order_by(LedgerEntry.transaction_date, LedgerEntry.id)
    )
    if start is not None:
        query = query.where(LedgerEntry.transaction_date >= start)
    if end is not None:
        query = query.where(LedgerEntry.transaction_date <= end)
    entries = (await db.execute(query)).scalars().all()

    running = total_debit = total_credit = ZERO
    transactions = []
    for entry in entries:
        debit = entry.amount if entry.entry_type == EntryType.DEBIT else ZERO
        credit = entry.amount if entry.entry_type == EntryType.CREDIT else ZERO
        running += debit - credit
        total_debit += debit
        total_credit += credit
        transactions.append(PartnerTransaction(
            id=entry.id,
            date=entry.transaction_date,
            account_code=entry.account.code,
            account_name=entry.account.name,
            description=entry.description,
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            debit=float(debit),
            credit=float(credit),
            balance=float(running),
        ))

    return PartnerLedgerResponse(
        contact=PartnerInfo(
            id=contact.id, name=contact.name, type=contact.type, email=contact.email, mobile=contact.mobile
        ),
        period=ReportPeriod(start_date=start, end_date=end),
        transactions=transactions,
        summary=PartnerSummary(
            total_debit=float(total_debit),
            total_credit=float(total_credit),
            final_balance=float(running),
            is_debit=running >= ZERO,
        ),
    )


async def sum_and_count(db: AsyncSession, amount_col, date_col, since: Optional[datetime] = None) -> AmountCount:
    query = select(func.coalesce(func.sum(amount_col), 0), func.count())
    if since is not None:
        query = query.where(date_col >= since)
    row = (await db.execute(query)).first()
    return AmountCount(amount=float(row[0] or 0), count=int(row[1] or 0))


async def period_figures(db: AsyncSession, amount_col, date_col, month_start, year_start) -> PeriodFigures:
    return PeriodFigures(
        monthly=await sum_and_count(db, amount_col, date_col, month_start),
        yearly=await sum_and_count(db, amount_col, date_col, year_start),
        total=await sum_and_count(db, amount_col, date_col),
    )


async def pending_amount(db: AsyncSession, model) -> float:
    result = await db.execute(
        select(func.coalesce(func.sum(model.total - model.paid_amount), 0))
        .where(model.payment_status != PaymentStatus.PAID)
    )
    return float(result.scalar() or 0)


async def overdue_count(db: AsyncSession, model, now: datetime) -> int:
    result = await db.execute(
        select(func.count(model.id))
        .where(model.payment_status != PaymentStatus.PAID, model.due_date < now)
    )
    return result.scalar() or 0


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    now = datetime.utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    year_start = month_start.replace(month=1)

    sales = await period_figures(db, CustomerInvoice.total, CustomerInvoice.invoice_date, month_start, year_start)
    purchases = await period_figures(db, VendorBill.total, VendorBill.bill_date, month_start, year_start)
    receipts = await period_figures(db, InvoicePayment.amount, InvoicePayment.payment_date, month_start, year_start)
    payments = await period_figures(db, BillPayment.amount, BillPayment.payment_date, month_start, year_start)

    contact_count = (await db.execute(select(func.count(Contact.id)))).scalar() or 0
    product_count = (await db.execute(select(func.count(Product.id)))).scalar() or 0

    return DashboardResponse(
        sales=sales,
        purchases=purchases,
        receipts=receipts,
        payments=payments,
        pending_receivables=await pending_amount(db, CustomerInvoice),
        pending_payables=await pending_amount(db, VendorBill),
        overdue_invoices=await overdue_count(db, CustomerInvoice, now),
        overdue_bills=await overdue_count(db, VendorBill, now),
        contact_count=contact_count,
        product_count=product_count,
        profit_monthly=round(sales.monthly.amount - purchases.monthly.amount, 2),
        profit_yearly=round(sales.yearly.amount - purchases.yearly.amount, 2),
        profit_total=round(sales.total.amount - purchases.total.amount, 2),
    )
