"""Contact management API - customers and vendors"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.api.utils import paginate, page_payload
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import ContactType
from shiv_accounts.models.contact import Contact
from shiv_accounts.models.purchase import PurchaseOrder, VendorBill
from shiv_accounts.models.sales import SalesOrder, CustomerInvoice
from shiv_accounts.models.payment import BillPayment, InvoicePayment
from shiv_accounts.models.user import User
from shiv_accounts.schemas.contact import (
    ContactCreate, ContactUpdate, ContactResponse, ContactListResponse, ContactStats
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_contact_or_404(db: AsyncSession, contact_id: int) -> Contact:
    contact = await db.get(Contact, contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


async def ensure_email_free(db: AsyncSession, email: Optional[str], exclude_id: Optional[int] = None) -> None:
    if not email:
        return
    query = select(Contact.id).where(func.lower(Contact.email) == email.lower())
    if exclude_id is not None:
        query = query.where(Contact.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail="Contact with this email already exists")


async def has_transactions(db: AsyncSession, contact_id: int) -> bool:
    """Whether any order, bill, invoice or payment references the contact"""
    checks = [
        select(PurchaseOrder.id).where(PurchaseOrder.vendor_id == contact_id),
        select(SalesOrder.id).where(SalesOrder.customer_id == contact_id),
        select(VendorBill.id).where(VendorBill.vendor_id == contact_id),
        select(CustomerInvoice.id).where(CustomerInvoice.customer_id == contact_id),
        select(BillPayment.id).where(BillPayment.vendor_id == contact_id),
        select(InvoicePayment.id).where(InvoicePayment.customer_id == contact_id),
    ]
    for query in checks:
        if (await db.execute(query.limit(1))).first():
            return True
    return False


@router.get("", response_model=ContactListResponse)
async def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[str] = Query(None, description="CUSTOMER / VENDOR / BOTH"),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """
    Contacts, newest first

    type=CUSTOMER or type=VENDOR also returns contacts of type BOTH.
    """
    query = select(Contact)

    if type:
        if type not in ContactType.ALL:
            raise HTTPException(status_code=400, detail="Invalid contact type")
        if type == ContactType.BOTH:
            query = query.where(Contact.type == ContactType.BOTH)
        else:
            query = query.where(Contact.type.in_([type, ContactType.BOTH]))

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Contact.name.ilike(pattern),
            Contact.email.ilike(pattern),
            Contact.mobile.ilike(pattern),
        ))

    query = query.order_by(Contact.created_at.desc(), Contact.id.desc())
    contacts, total = await paginate(db, query, page, limit)
    return page_payload([ContactResponse.model_validate(c) for c in contacts], total, page, limit)


@router.get("/stats", response_model=ContactStats)
async def contact_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(select(Contact.type, func.count(Contact.id)).group_by(Contact.type))
    counts = dict(result.all())
    return ContactStats(
        total=sum(counts.values()),
        customers=counts.get(ContactType.CUSTOMER, 0),
        vendors=counts.get(ContactType.VENDOR, 0),
        both=counts.get(ContactType.BOTH, 0),
    )


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return await get_contact_or_404(db, contact_id)


@router.post("", response_model=ContactResponse, status_code=201)
async def create_contact(
    data: ContactCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await ensure_email_free(db, data.email)

    contact = Contact(**data.model_dump(), created_by_id=current_user.id)
    db.add(contact)
    await db.commit()
    await db.refresh(contact)
    logger.info(f"Created contact {contact.id}: {contact.name} ({contact.type})")
    return contact


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: int,
    data: ContactUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    contact = await get_contact_or_404(db, contact_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("email"):
        await ensure_email_free(db, update_data["email"], exclude_id=contact_id)
    if "name" in update_data and update_data["name"] is None:
        raise HTTPException(status_code=400, detail="Name cannot be empty")
    if "type" in update_data and update_data["type"] is None:
        raise HTTPException(status_code=400, detail="Type cannot be empty")

    for field, value in update_data.items():
        setattr(contact, field, value)

    await db.commit()
    await db.refresh(contact)
    return contact


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    contact = await get_contact_or_404(db, contact_id)

    if await has_transactions(db, contact_id):
        raise HTTPException(status_code=400, detail="Cannot delete contact with existing transactions")

    await db.delete(contact)
    await db.commit()
    logger.info(f"Deleted contact {contact_id}")
    return {"message": "Contact deleted successfully"}
