"""Ledger entry and stock movement schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from decimal import Decimal

from shiv_accounts.schemas.common import to_naive_utc


class JournalLine(BaseModel):
    account_id: int
    entry_type: Literal["DEBIT", "CREDIT"]
    amount: float = Field(..., gt=0)
    contact_id: Optional[int] = None


class JournalEntryCreate(BaseModel):
    """Manual journal; debits must equal credits"""
    transaction_date: Optional[datetime] = None
    description: Optional[str] = None
    lines: List[JournalLine] = Field(..., min_length=2)

    @field_validator("transaction_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_balanced(self):
        debit = sum(Decimal(str(l.amount)) for l in self.lines if l.entry_type == "DEBIT")
        credit = sum(Decimal(str(l.amount)) for l in self.lines if l.entry_type == "CREDIT")
        if debit != credit:
            raise ValueError(f"Journal is not balanced: debit {debit} != credit {credit}")
        return self


class LedgerEntryResponse(BaseModel):
    id: int
    account_id: int
    account_code: str = ""
    account_name: str = ""
    contact_id: Optional[int] = None
    contact_name: Optional[str] = None
    entry_type: str
    amount: float
    description: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    transaction_date: datetime


class LedgerEntryListResponse(BaseModel):
    data: List[LedgerEntryResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class StockAdjustmentCreate(BaseModel):
    """Positive quantity adds stock, negative removes it"""
    product_id: int
    quantity: float
    description: Optional[str] = None
    movement_date: Optional[datetime] = None

    @field_validator("quantity")
    @classmethod
    def non_zero(cls, v):
        if v == 0:
            raise ValueError("quantity cannot be zero")
        return v

    @field_validator("movement_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    product_name: str = ""
    movement_type: str
    quantity: float
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    description: Optional[str] = None
    movement_date: datetime


class StockMovementListResponse(BaseModel):
    data: List[StockMovementResponse]
    total: int
    page: int
    limit: int
    total_pages: int
