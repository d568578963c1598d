"""Order, bill and invoice line schemas"""
from typing import Optional
from pydantic import BaseModel, Field


class LineItemIn(BaseModel):
    product_id: int
    tax_id: Optional[int] = None
    quantity: float = Field(..., gt=0, description="Quantity")
    unit_price: float = Field(..., ge=0, description="Unit price")


class LineItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str = ""
    product_type: str = ""
    hsn_code: Optional[str] = None
    tax_id: Optional[int] = None
    tax_name: Optional[str] = None
    quantity: float
    unit_price: float
    subtotal: float
    tax_amount: float
    total: float
