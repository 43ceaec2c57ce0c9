# app/api/user/models.py
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import SQLModel, Field, Column, JSON

USER_ROLES = ("user", "admin")


def utcnow() -> datetime:
    # columns are timestamp WITHOUT time zone: store naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_user_id() -> str:
    return uuid.uuid4().hex


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=new_user_id, primary_key=True, max_length=64)
    name: str = Field(max_length=100)
    email: str = Field(index=True, unique=True, max_length=255)
    password: str
    role: str = Field(default="user", max_length=16)
    created_at: datetime = Field(default_factory=utcnow)


class UserPreferences(SQLModel, table=True):
    __tablename__ = "user_preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, unique=True, max_length=64)
    interests: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    news_category: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    updated_at: datetime = Field(default_factory=utcnow)
