"""Chart of accounts schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from datetime import datetime

AccountTypeField = Literal["ASSET", "LIABILITY", "EQUITY", "INCOME", "EXPENSE"]


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    type: AccountTypeField
    parent_id: Optional[int] = None


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    type: Optional[AccountTypeField] = None
    parent_id: Optional[int] = None


class AccountResponse(BaseModel):
    id: int
    name: str
    code: str
    type: str
    parent_id: Optional[int] = None
    parent_name: Optional[str] = None
    children_count: int = 0
    balance: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class AccountListResponse(BaseModel):
    data: List[AccountResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class AccountTreeNode(BaseModel):
    id: int
    name: str
    code: str
    type: str
    parent_id: Optional[int] = None
    children: List["AccountTreeNode"] = []


AccountTreeNode.model_rebuild()
