"""Contact schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime

from shiv_accounts.services.calculations import is_valid_mobile, is_valid_pincode

ContactTypeField = Literal["CUSTOMER", "VENDOR", "BOTH"]


def _check_mobile(v: Optional[str]) -> Optional[str]:
    if v is not None and not is_valid_mobile(v):
        raise ValueError("Invalid mobile number")
    return v


def _check_pincode(v: Optional[str]) -> Optional[str]:
    if v is not None and not is_valid_pincode(v):
        raise ValueError("Invalid pincode")
    return v


class ContactBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Name")
    type: ContactTypeField = Field(..., description="CUSTOMER, VENDOR or BOTH")
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, description="10 digit Indian mobile")
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = None
    profile_image: Optional[str] = Field(None, max_length=500)

    @field_validator("mobile")
    @classmethod
    def validate_mobile(cls, v):
        return _check_mobile(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return _check_pincode(v)


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[ContactTypeField] = None
    email: Optional[EmailStr] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    profile_image: Optional[str] = None

    @field_validator("mobile")
    @classmethod
    def validate_mobile(cls, v):
        return _check_mobile(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return _check_pincode(v)


class ContactResponse(BaseModel):
    id: int
    name: str
    type: str
    email: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    profile_image: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ContactListResponse(BaseModel):
    data: List[ContactResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class ContactStats(BaseModel):
    total: int
    customers: int
    vendors: int
    both: int
