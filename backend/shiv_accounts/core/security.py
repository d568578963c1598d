"""
Password hashing and JWT tokens
"""
from datetime import datetime, timedelta
from typing import Any, Dict

import bcrypt
import jwt
from fastapi import HTTPException

from shiv_accounts.core.config import settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def _encode(user_id: int, email: str, role: str, token_type: str) -> str:
    if token_type == REFRESH_TOKEN:
        secret = settings.REFRESH_SECRET_KEY
        minutes = settings.REFRESH_TOKEN_EXPIRE_MINUTES
    else:
        secret = settings.SECRET_KEY
        minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.utcnow()
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "type": token_type,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int, email: str, role: str) -> str:
    return _encode(user_id, email, role, ACCESS_TOKEN)


def create_refresh_token(user_id: int, email: str, role: str) -> str:
    return _encode(user_id, email, role, REFRESH_TOKEN)


def decode_token(token: str, token_type: str = ACCESS_TOKEN) -> Dict[str, Any]:
    """Decode and verify a token, raising 401 when it is expired, invalid or of the wrong type"""
    secret = settings.REFRESH_SECRET_KEY if token_type == REFRESH_TOKEN else settings.SECRET_KEY
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != token_type:
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload
