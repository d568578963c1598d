"""Chart of accounts API"""

import logging
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shiv_accounts.api.utils import paginate, page_payload
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import AccountType
from shiv_accounts.models.account import ChartOfAccount
from shiv_accounts.models.ledger import LedgerEntry
from shiv_accounts.models.user import User
from shiv_accounts.schemas.account import (
    AccountCreate, AccountUpdate, AccountResponse, AccountListResponse, AccountTreeNode
)
from shiv_accounts.services.balances import account_totals, normal_balance

logger = logging.getLogger(__name__)

router = APIRouter()

ACCOUNT_OPTIONS = (selectinload(ChartOfAccount.parent), selectinload(ChartOfAccount.children))


def build_account_response(account: ChartOfAccount, balance=None) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        name=account.name,
        code=account.code,
        type=account.type,
        parent_id=account.parent_id,
        parent_name=account.parent.name if account.parent else None,
        children_count=len(account.children),
        balance=float(balance) if balance is not None else None,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


async def load_account(db: AsyncSession, account_id: int) -> ChartOfAccount:
    result = await db.execute(
        select(ChartOfAccount)
        .options(*ACCOUNT_OPTIONS)
        .where(ChartOfAccount.id == account_id)
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


async def validate_account_fields(
    db: AsyncSession,
    name: str,
    code: str,
    account_type: str,
    parent_id: Optional[int],
    exclude_id: Optional[int] = None) -> None:
    """Unique name and code; the parent must exist and share the type"""
    dup = select(ChartOfAccount).where(or_(ChartOfAccount.name == name, ChartOfAccount.code == code))
    if exclude_id is not None:
        dup = dup.where(ChartOfAccount.id != exclude_id)
    for other in (await db.execute(dup)).scalars().all():
        if other.code == code:
            raise HTTPException(status_code=400, detail="Account with this code already exists")
        raise HTTPException(status_code=400, detail="Account with this name already exists")

    if parent_id is None:
        return
    if exclude_id is not None and parent_id == exclude_id:
        raise HTTPException(status_code=400, detail="Account cannot be its own parent")

    parent = await db.get(ChartOfAccount, parent_id)
    if not parent:
        raise HTTPException(status_code=404, detail="Parent account not found")
    if parent.type != account_type:
        raise HTTPException(status_code=400, detail="Parent account must be of the same type")

    # Walk up from the parent so an account never ends up beneath its own descendant
    if exclude_id is not None:
        ancestor = parent
        while ancestor.parent_id is not None:
            if ancestor.parent_id == exclude_id:
                raise HTTPException(status_code=400, detail="Account cannot be moved under its own descendant")
            ancestor = await db.get(ChartOfAccount, ancestor.parent_id)


def build_tree(accounts: List[ChartOfAccount]) -> List[AccountTreeNode]:
    nodes: Dict[int, AccountTreeNode] = {
        a.id: AccountTreeNode(id=a.id, name=a.name, code=a.code, type=a.type, parent_id=a.parent_id)
        for a in accounts
    }
    roots = []
    for account in accounts:
        node = nodes[account.id]
        if account.parent_id and account.parent_id in nodes:
            nodes[account.parent_id].children.append(node)
        else:
            roots.append(node)
    return roots


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[str] = Query(None, description="ASSET / LIABILITY / EQUITY / INCOME / EXPENSE"),
    parent_id: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(ChartOfAccount)

    if type:
        query = query.where(ChartOfAccount.type == type)
    if parent_id is not None:
        query = query.where(ChartOfAccount.parent_id == parent_id)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(ChartOfAccount.name.ilike(pattern), ChartOfAccount.code.ilike(pattern)))

    query = query.order_by(ChartOfAccount.code)
    accounts, total = await paginate(db, query, page, limit, options=ACCOUNT_OPTIONS)
    return page_payload([build_account_response(a) for a in accounts], total, page, limit)


@router.get("/by-type/{account_type}")
async def accounts_by_type(
    account_type: str,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    account_type = account_type.upper()
    if account_type not in AccountType.ALL:
        raise HTTPException(status_code=400, detail="Invalid account type")

    result = await db.execute(
        select(ChartOfAccount)
        .options(*ACCOUNT_OPTIONS)
        .where(ChartOfAccount.type == account_type)
        .order_by(ChartOfAccount.code)
    )
    return {"data": [build_account_response(a) for a in result.scalars().all()]}


@router.get("/hierarchy", response_model=List[AccountTreeNode])
async def account_hierarchy(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Root accounts with their nested children"""
    result = await db.execute(select(ChartOfAccount).order_by(ChartOfAccount.code))
    return build_tree(list(result.scalars().all()))


@router.get("/stats")
async def account_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(
        select(ChartOfAccount.type, func.count(ChartOfAccount.id)).group_by(ChartOfAccount.type)
    )
    counts = dict(result.all())
    stats = {"total": sum(counts.values())}
    for account_type in AccountType.ALL:
        stats[account_type.lower()] = counts.get(account_type, 0)
    return stats


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Account with its current balance on the normal side"""
    account = await load_account(db, account_id)
    totals = await account_totals(db, account_id=account_id)
    debit, credit = totals.get(account_id, (0, 0))
    return build_account_response(account, normal_balance(account.type, debit, credit))


@router.post("", response_model=AccountResponse, status_code=201)
async def create_account(
    data: AccountCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    await validate_account_fields(db, data.name, data.code, data.type, data.parent_id)

    account = ChartOfAccount(**data.model_dump())
    db.add(account)
    await db.commit()
    logger.info(f"Created account {account.code} {account.name}")
    return build_account_response(await load_account(db, account.id))


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: int,
    data: AccountUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    account = await load_account(db, account_id)
    update_data = data.model_dump(exclude_unset=True)

    name = update_data.get("name") or account.name
    code = update_data.get("code") or account.code
    account_type = update_data.get("type") or account.type
    parent_id = update_data["parent_id"] if "parent_id" in update_data else account.parent_id

    if account_type != account.type and account.children:
        raise HTTPException(status_code=400, detail="Cannot change the type of an account with children")
    await validate_account_fields(db, name, code, account_type, parent_id, exclude_id=account_id)

    account.name = name
    account.code = code
    account.type = account_type
    account.parent_id = parent_id

    await db.commit()
    return build_account_response(await load_account(db, account_id))


@router.delete("/{account_id}")
async def delete_account(
    account_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    account = await load_account(db, account_id)

    if account.children:
        raise HTTPException(status_code=400, detail="Cannot delete account with child accounts")
    used = await db.execute(select(LedgerEntry.id).where(LedgerEntry.account_id == account_id).limit(1))
    if used.first():
        raise HTTPException(status_code=400, detail="Cannot delete account with ledger entries")

    await db.delete(account)
    await db.commit()
    logger.info(f"Deleted account {account_id}")
    return {"message": "Account deleted successfully"}
