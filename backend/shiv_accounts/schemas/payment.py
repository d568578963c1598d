"""Payment schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from shiv_accounts.schemas.common import to_naive_utc

PaymentMethodField = Literal["CASH", "BANK", "CHEQUE", "ONLINE"]


class BillPaymentCreate(BaseModel):
    vendor_id: int
    vendor_bill_id: int
    amount: float = Field(..., gt=0, description="Amount paid")
    payment_method: PaymentMethodField = "BANK"
    payment_date: Optional[datetime] = None
    reference: Optional[str] = Field(None, max_length=100)

    @field_validator("payment_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class InvoicePaymentCreate(BaseModel):
    customer_id: int
    customer_invoice_id: int
    amount: float = Field(..., gt=0, description="Amount received")
    payment_method: PaymentMethodField = "BANK"
    payment_date: Optional[datetime] = None
    reference: Optional[str] = Field(None, max_length=100)

    @field_validator("payment_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class BillPaymentResponse(BaseModel):
    id: int
    payment_number: str
    payment_date: datetime
    payment_method: str
    vendor_id: int
    vendor_name: str = ""
    vendor_bill_id: int
    bill_number: str = ""
    amount: float
    reference: Optional[str] = None
    created_at: datetime


class InvoicePaymentResponse(BaseModel):
    id: int
    payment_number: str
    payment_date: datetime
    payment_method: str
    customer_id: int
    customer_name: str = ""
    customer_invoice_id: int
    invoice_number: str = ""
    amount: float
    reference: Optional[str] = None
    created_at: datetime


class BillPaymentListResponse(BaseModel):
    data: List[BillPaymentResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class InvoicePaymentListResponse(BaseModel):
    data: List[InvoicePaymentResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class PaymentStats(BaseModel):
    bill_payment_count: int
    invoice_payment_count: int
    total_paid: float
    total_received: float
    net_cash_flow: float
