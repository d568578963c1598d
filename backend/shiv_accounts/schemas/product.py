"""Product schemas"""
from typing import Optional, List, Literal, Any
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from shiv_accounts.schemas.common import to_float


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Product name")
    type: Literal["GOODS", "SERVICE"] = Field(default="GOODS", description="GOODS or SERVICE")
    sales_price: float = Field(..., ge=0, description="Sales price")
    purchase_price: float = Field(..., ge=0, description="Purchase price")
    sales_tax_percent: Optional[float] = Field(None, ge=0, le=100, description="Default sales GST %")
    purchase_tax_percent: Optional[float] = Field(None, ge=0, le=100, description="Default purchase GST %")
    hsn_code: Optional[str] = Field(None, max_length=20, description="HSN/SAC code")
    category: Optional[str] = Field(None, max_length=100, description="Category")


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[Literal["GOODS", "SERVICE"]] = None
    sales_price: Optional[float] = Field(None, ge=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    sales_tax_percent: Optional[float] = Field(None, ge=0, le=100)
    purchase_tax_percent: Optional[float] = Field(None, ge=0, le=100)
    hsn_code: Optional[str] = Field(None, max_length=20)
    category: Optional[str] = Field(None, max_length=100)


class ProductBulkUpdate(BaseModel):
    """Apply the same field changes to several products"""
    product_ids: List[int] = Field(..., min_length=1)
    updates: ProductUpdate

    @field_validator("updates")
    @classmethod
    def forbid_name(cls, v: ProductUpdate) -> ProductUpdate:
        if v.name is not None:
            raise ValueError("name cannot be bulk updated")
        return v


class ProductResponse(BaseModel):
    id: int
    name: str
    type: str
    sales_price: float
    purchase_price: float
    sales_tax_percent: Optional[float] = None
    purchase_tax_percent: Optional[float] = None
    hsn_code: Optional[str] = None
    category: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("sales_price", "purchase_price", mode="before")
    @classmethod
    def fix_null_price(cls, v: Any) -> float:
        return to_float(v)

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    data: List[ProductResponse]
    total: int
    page: int
    limit: int
    total_pages: int
