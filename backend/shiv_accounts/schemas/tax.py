"""Tax schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, model_validator
from datetime import datetime

TaxMethodField = Literal["PERCENTAGE", "FIXED_VALUE"]


class TaxBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Tax name")
    computation_method: TaxMethodField = Field(default="PERCENTAGE", description="PERCENTAGE or FIXED_VALUE")
    rate: float = Field(..., ge=0, description="Percent or fixed amount")
    applicable_on_sales: bool = True
    applicable_on_purchase: bool = True

    @model_validator(mode="after")
    def check_percentage(self):
        if self.computation_method == "PERCENTAGE" and self.rate > 100:
            raise ValueError("Percentage rate cannot exceed 100")
        return self


class TaxCreate(TaxBase):
    pass


class TaxUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    computation_method: Optional[TaxMethodField] = None
    rate: Optional[float] = Field(None, ge=0)
    applicable_on_sales: Optional[bool] = None
    applicable_on_purchase: Optional[bool] = None


class TaxResponse(BaseModel):
    id: int
    name: str
    computation_method: str
    rate: float
    applicable_on_sales: bool
    applicable_on_purchase: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TaxListResponse(BaseModel):
    data: List[TaxResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class TaxCalculateRequest(BaseModel):
    amount: float = Field(..., ge=0)
    tax_id: int


class TaxCalculateResponse(BaseModel):
    original_amount: float
    tax_amount: float
    total: float
    tax: TaxResponse
