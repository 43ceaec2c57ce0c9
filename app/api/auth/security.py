# app/api/auth/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from app.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """JWT carrying the principal the rest of the app needs: id, email, role, name."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.JWT_EXPIRE_DAYS))
    to_encode = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "name": user.name or "",
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    if not payload.get("id"):
        return None
    return {
        "id": payload["id"],
        "email": payload.get("email"),
        "role": payload.get("role", "user"),
        "name": payload.get("name", ""),
    }
