from __future__ import annotations
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---- Users ----
class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str  # plain str, EmailStr would pull in email-validator
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    createdAt: datetime | None = None


# ---- Preferences ----
class PreferencesBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # loose types: the store validates and answers 400, not 422
    user_id: Optional[Any] = Field(default=None, alias="userId")
    interests: Optional[Any] = None
    news_category: Optional[Any] = Field(default=None, alias="newsCategory")


class PreferencesResponse(BaseModel):
    userId: str
    interests: List[str]
    newsCategory: List[str]
    updatedAt: datetime | None = None
