"""Sales order and customer invoice schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime

from shiv_accounts.schemas.common import to_naive_utc
from shiv_accounts.schemas.line_item import LineItemIn, LineItemResponse


class SalesOrderCreate(BaseModel):
    customer_id: int
    so_date: Optional[datetime] = None
    so_ref: Optional[str] = Field(None, max_length=100)
    status: Literal["DRAFT", "CONFIRMED"] = "DRAFT"
    items: List[LineItemIn] = Field(..., min_length=1)

    @field_validator("so_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class SalesOrderUpdate(BaseModel):
    customer_id: Optional[int] = None
    so_date: Optional[datetime] = None
    so_ref: Optional[str] = Field(None, max_length=100)
    status: Optional[Literal["DRAFT", "CONFIRMED", "CANCELLED"]] = None
    items: Optional[List[LineItemIn]] = Field(None, min_length=1)

    @field_validator("so_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class ConvertToInvoiceRequest(BaseModel):
    invoice_date: Optional[datetime] = None
    due_date: datetime
    invoice_reference: Optional[str] = Field(None, max_length=100)

    @field_validator("invoice_date", "due_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class SalesOrderResponse(BaseModel):
    id: int
    so_number: str
    so_date: datetime
    customer_id: int
    customer_name: str = ""
    so_ref: Optional[str] = None
    status: str
    subtotal: float
    tax_amount: float
    total: float
    items: List[LineItemResponse] = []
    invoice_ids: List[int] = []
    created_at: datetime
    updated_at: datetime


class SalesOrderListResponse(BaseModel):
    data: List[SalesOrderResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class CustomerInvoiceCreate(BaseModel):
    customer_id: int
    sales_order_id: Optional[int] = None
    invoice_date: Optional[datetime] = None
    due_date: datetime
    invoice_reference: Optional[str] = Field(None, max_length=100)
    items: List[LineItemIn] = Field(..., min_length=1)

    @field_validator("invoice_date", "due_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def due_after_invoice(self):
        if self.invoice_date and self.due_date < self.invoice_date:
            raise ValueError("due_date cannot be before invoice_date")
        return self


class CustomerInvoiceUpdate(BaseModel):
    invoice_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    invoice_reference: Optional[str] = Field(None, max_length=100)
    items: Optional[List[LineItemIn]] = Field(None, min_length=1)

    @field_validator("invoice_date", "due_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class InvoicePaymentBrief(BaseModel):
    id: int
    payment_number: str
    payment_date: datetime
    payment_method: str
    amount: float
    reference: Optional[str] = None


class CustomerInvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    invoice_date: datetime
    due_date: datetime
    customer_id: int
    customer_name: str = ""
    sales_order_id: Optional[int] = None
    so_number: Optional[str] = None
    invoice_reference: Optional[str] = None
    payment_status: str
    subtotal: float
    tax_amount: float
    total: float
    paid_amount: float
    remaining_amount: float
    is_overdue: bool = False
    items: List[LineItemResponse] = []
    payments: List[InvoicePaymentBrief] = []
    created_at: datetime
    updated_at: datetime


class CustomerInvoiceListResponse(BaseModel):
    data: List[CustomerInvoiceResponse]
    total: int
    page: int
    limit: int
    total_pages: int
