"""Ledger entry API - posted lines and manual journals"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shiv_accounts.api.utils import paginate, page_payload, parse_date_param
from shiv_accounts.core.deps import get_db, get_current_user, require_admin
from shiv_accounts.core.constants import ReferenceType
from shiv_accounts.models.account import ChartOfAccount
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.ledger import LedgerEntry
from shiv_accounts.models.user import User
from shiv_accounts.schemas.ledger import (
    JournalEntryCreate, LedgerEntryResponse, LedgerEntryListResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()

ENTRY_OPTIONS = (selectinload(LedgerEntry.account), selectinload(LedgerEntry.contact))


def build_entry_response(entry: LedgerEntry) -> LedgerEntryResponse:
    return LedgerEntryResponse(
        id=entry.id,
        account_id=entry.account_id,
        account_code=entry.account.code if entry.account else "",
        account_name=entry.account.name if entry.account else "",
        contact_id=entry.contact_id,
        contact_name=entry.contact.name if entry.contact else None,
        entry_type=entry.entry_type,
        amount=float(entry.amount),
        description=entry.description,
        reference_type=entry.reference_type,
        reference_id=entry.reference_id,
        transaction_date=entry.transaction_date,
    )


@router.get("", response_model=LedgerEntryListResponse)
async def list_ledger_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    account_id: Optional[int] = None,
    contact_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(LedgerEntry)
    if account_id:
        query = query.where(LedgerEntry.account_id == account_id)
    if contact_id:
        query = query.where(LedgerEntry.contact_id == contact_id)
    if reference_type:
        query = query.where(LedgerEntry.reference_type == reference_type)
    if reference_id:
        query = query.where(LedgerEntry.reference_id == reference_id)
    start = parse_date_param(start_date, "start_date")
    end = parse_date_param(end_date, "end_date", end_of_day=True)
    if start:
        query = query.where(LedgerEntry.transaction_date >= start)
    if end:
        query = query.where(LedgerEntry.transaction_date <= end)

    query = query.order_by(LedgerEntry.transaction_date.desc(), LedgerEntry.id.desc())
    entries, total = await paginate(db, query, page, limit, options=ENTRY_OPTIONS)
    return page_payload([build_entry_response(e) for e in entries], total, page, limit)


@router.post("/journal", status_code=201)
async def create_journal(
    data: JournalEntryCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin)
):
    """
    Post a balanced manual journal (admin only)

    Used for opening balances, owner capital and expenses that do not come
    from a bill.
    """
    account_ids = {line.account_id for line in data.lines}
    found = set((await db.execute(
        select(ChartOfAccount.id).where(ChartOfAccount.id.in_(account_ids))
    )).scalars().all())
    missing = sorted(account_ids - found)
    if missing:
        raise HTTPException(status_code=404, detail=f"Accounts not found: {missing}")

    contact_ids = {line.contact_id for line in data.lines if line.contact_id is not None}
    if contact_ids:
        found_contacts = set((await db.execute(
            select(Contact.id).where(Contact.id.in_(contact_ids))
        )).scalars().all())
        if contact_ids - found_contacts:
            raise HTTPException(status_code=404, detail="Contact not found")

    when = data.transaction_date or datetime.utcnow()
    entries = [
        LedgerEntry(
            account_id=line.account_id,
            contact_id=line.contact_id,
            entry_type=line.entry_type,
            amount=Decimal(str(line.amount)),
            description=data.description,
            reference_type=ReferenceType.JOURNAL,
            transaction_date=when,
        )
        for line in data.lines
    ]
    db.add_all(entries)
    await db.commit()

    result = await db.execute(
        select(LedgerEntry).options(*ENTRY_OPTIONS).where(LedgerEntry.id.in_([e.id for e in entries]))
    )
    logger.info(f"📒 Manual journal posted with {len(entries)} lines")
    return {"data": [build_entry_response(e) for e in result.scalars().all()]}
