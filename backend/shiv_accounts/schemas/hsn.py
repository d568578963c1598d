"""HSN code schemas"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime


class HsnCodeResponse(BaseModel):
    id: Optional[int] = None
    code: str
    description: str
    category: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HsnSearchResponse(BaseModel):
    source: str
    data: List[HsnCodeResponse]


class HsnCodeListResponse(BaseModel):
    data: List[HsnCodeResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class HsnValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)


class HsnValidateResponse(BaseModel):
    code: str
    description: Optional[str] = None
    category: Optional[str] = None
    is_valid: bool
    source: str
