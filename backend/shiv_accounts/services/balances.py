"""
Ledger aggregation used by the chart of accounts and the reports
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.core.constants import AccountType, EntryType
from shiv_accounts.models.ledger import LedgerEntry
from shiv_accounts.services.calculations import money


async def account_totals(
    db: AsyncSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    account_id: Optional[int] = None) -> Dict[int, Tuple[Decimal, Decimal]]:
    """Debit and credit sums per account id within an optional date window"""
    debit = func.coalesce(func.sum(case((LedgerEntry.entry_type == EntryType.DEBIT, LedgerEntry.amount), else_=0)), 0)
    credit = func.coalesce(func.sum(case((LedgerEntry.entry_type == EntryType.CREDIT, LedgerEntry.amount), else_=0)), 0)

    query = select(LedgerEntry.account_id, debit, credit).group_by(LedgerEntry.account_id)
    if start is not None:
        query = query.where(LedgerEntry.transaction_date >= start)
    if end is not None:
        query = query.where(LedgerEntry.transaction_date <= end)
    if account_id is not None:
        query = query.where(LedgerEntry.account_id == account_id)

    result = await db.execute(query)
    return {row[0]: (money(row[1]), money(row[2])) for row in result.all()}


def normal_balance(account_type: str, debit: Decimal, credit: Decimal) -> Decimal:
    """Balance on the account's normal side (debit for assets and expenses, credit otherwise)"""
    if account_type in AccountType.DEBIT_NORMAL:
        return debit - credit
    return credit - debit
