"""Authentication and user management API"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.api.utils import paginate, page_payload
from shiv_accounts.core.deps import get_db, get_current_user, require_admin
from shiv_accounts.core.constants import UserStatus
from shiv_accounts.core.security import (
    REFRESH_TOKEN, create_access_token, create_refresh_token, decode_token,
    hash_password, verify_password,
)
from shiv_accounts.models.user import User
from shiv_accounts.schemas.user import (
    AuthResponse, PasswordChange, ProfileUpdate, RefreshRequest, UserListResponse,
    UserLogin, UserRegister, UserResponse, UserStatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def build_auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id, user.email, user.role),
        refresh_token=create_refresh_token(user.id, user.email, user.role),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    """Create a user account and log it in"""
    existing = await db.execute(
        select(User).where(or_(User.email == data.email, User.login_id == data.login_id))
    )
    for user in existing.scalars().all():
        if user.email == data.email:
            raise HTTPException(status_code=400, detail="User with this email already exists")
        raise HTTPException(status_code=400, detail="User with this login ID already exists")

    user = User(
        email=data.email,
        login_id=data.login_id,
        password=hash_password(data.password),
        name=data.name,
        role=data.role,
        status=UserStatus.ACTIVE,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"👤 Registered user {user.login_id} ({user.role})")
    return build_auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Log in with login id or email"""
    if data.login_id:
        query = select(User).where(User.login_id == data.login_id)
    else:
        query = select(User).where(User.email == data.email)
    user = (await db.execute(query)).scalar_one_or_none()

    if not user or not verify_password(data.password, user.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account is not active")

    return build_auth_response(user)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(data: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new token pair"""
    payload = decode_token(data.refresh_token, REFRESH_TOKEN)
    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")

    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid or inactive user")
    return build_auth_response(user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in update_data and update_data["email"] != current_user.email:
        taken = await db.execute(
            select(User).where(User.email == update_data["email"], User.id != current_user.id)
        )
        if taken.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="Email is already taken")

    for field, value in update_data.items():
        setattr(current_user, field, value)

    await db.commit()
    await db.refresh(current_user)
    return current_user


@router.put("/change-password")
async def change_password(
    data: PasswordChange,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not verify_password(data.current_password, current_user.password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.password = hash_password(data.new_password)
    await db.commit()
    logger.info(f"🔑 Password changed for {current_user.login_id}")
    return {"message": "Password changed successfully"}


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[str] = None,
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin)
):
    """All users (admin only)"""
    query = select(User)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            User.name.ilike(pattern),
            User.email.ilike(pattern),
            User.login_id.ilike(pattern),
        ))
    if role:
        query = query.where(User.role == role)
    if status:
        query = query.where(User.status == status)
    query = query.order_by(User.created_at.desc(), User.id.desc())

    users, total = await paginate(db, query, page, limit)
    return page_payload([UserResponse.model_validate(u) for u in users], total, page, limit)


@router.put("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: int,
    data: UserStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Activate, deactivate or suspend a user (admin only)"""
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot change your own status")

    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.status = data.status
    await db.commit()
    await db.refresh(user)
    logger.info(f"👤 User {user.login_id} status set to {user.status}")
    return user
