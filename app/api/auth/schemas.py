from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LoginBody(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class PrincipalOut(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str


class SessionResponse(BaseModel):
    user: Optional[PrincipalOut] = None


class LoginResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    createdAt: Optional[datetime] = None
