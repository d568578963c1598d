"""User and authentication schemas"""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, EmailStr, Field, model_validator


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    login_id: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=6, max_length=128)
    # Admins are seeded; self-registration cannot grant ADMIN
    role: Literal["INVOICING_USER", "CONTACT"] = "INVOICING_USER"


class UserLogin(BaseModel):
    """Log in with either the login id or the email"""
    login_id: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.login_id and not self.email:
            raise ValueError("login_id or email is required")
        return self


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=128)


class UserStatusUpdate(BaseModel):
    status: Literal["ACTIVE", "INACTIVE", "SUSPENDED"]


class UserResponse(BaseModel):
    id: int
    email: str
    login_id: str
    name: str
    role: str
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
    refresh_token: str


class UserListResponse(BaseModel):
    data: List[UserResponse]
    total: int
    page: int
    limit: int
    total_pages: int
