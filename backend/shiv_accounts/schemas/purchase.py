"""Purchase order and vendor bill schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime

from shiv_accounts.schemas.common import to_naive_utc
from shiv_accounts.schemas.line_item import LineItemIn, LineItemResponse


class PurchaseOrderCreate(BaseModel):
    vendor_id: int
    po_date: Optional[datetime] = None
    vendor_ref: Optional[str] = Field(None, max_length=100)
    status: Literal["DRAFT", "CONFIRMED"] = "DRAFT"
    items: List[LineItemIn] = Field(..., min_length=1)

    @field_validator("po_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class PurchaseOrderUpdate(BaseModel):
    vendor_id: Optional[int] = None
    po_date: Optional[datetime] = None
    vendor_ref: Optional[str] = Field(None, max_length=100)
    status: Optional[Literal["DRAFT", "CONFIRMED", "CANCELLED"]] = None
    items: Optional[List[LineItemIn]] = Field(None, min_length=1)

    @field_validator("po_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class ConvertToBillRequest(BaseModel):
    bill_date: Optional[datetime] = None
    due_date: datetime
    bill_reference: Optional[str] = Field(None, max_length=100)

    @field_validator("bill_date", "due_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class PurchaseOrderResponse(BaseModel):
    id: int
    po_number: str
    po_date: datetime
    vendor_id: int
    vendor_name: str = ""
    vendor_ref: Optional[str] = None
    status: str
    subtotal: float
    tax_amount: float
    total: float
    items: List[LineItemResponse] = []
    bill_ids: List[int] = []
    created_at: datetime
    updated_at: datetime


class PurchaseOrderListResponse(BaseModel):
    data: List[PurchaseOrderResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class VendorBillCreate(BaseModel):
    vendor_id: int
    purchase_order_id: Optional[int] = None
    bill_date: Optional[datetime] = None
    due_date: datetime
    bill_reference: Optional[str] = Field(None, max_length=100)
    items: List[LineItemIn] = Field(..., min_length=1)

    @field_validator("bill_date", "due_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def due_after_bill(self):
        if self.bill_date and self.due_date < self.bill_date:
            raise ValueError("due_date cannot be before bill_date")
        return self


class VendorBillUpdate(BaseModel):
    bill_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    bill_reference: Optional[str] = Field(None, max_length=100)
    items: Optional[List[LineItemIn]] = Field(None, min_length=1)

    @field_validator("bill_date", "due_date")
    @classmethod
    def naive_date(cls, v):
        return to_naive_utc(v)


class BillPaymentBrief(BaseModel):
    id: int
    payment_number: str
    payment_date: datetime
    payment_method: str
    amount: float
    reference: Optional[str] = None


class VendorBillResponse(BaseModel):
    id: int
    bill_number: str
    bill_date: datetime
    due_date: datetime
    vendor_id: int
    vendor_name: str = ""
    purchase_order_id: Optional[int] = None
    po_number: Optional[str] = None
    bill_reference: Optional[str] = None
    payment_status: str
    subtotal: float
    tax_amount: float
    total: float
    paid_amount: float
    remaining_amount: float
    is_overdue: bool = False
    items: List[LineItemResponse] = []
    payments: List[BillPaymentBrief] = []
    created_at: datetime
    updated_at: datetime


class VendorBillListResponse(BaseModel):
    data: List[VendorBillResponse]
    total: int
    page: int
    limit: int
    total_pages: int
