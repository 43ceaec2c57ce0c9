# app/api/activity/models.py
from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from app.api.user.models import utcnow


class UserAnalytics(SQLModel, table=True):
    __tablename__ = "user_analytics"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, unique=True, max_length=64)
    last_active: datetime = Field(default_factory=utcnow)
    session_count: int = Field(default=0, ge=0)
    article_clicks: int = Field(default=0, ge=0)


class UserCategoryView(SQLModel, table=True):
    """One row per (user, category): the categoryViews map, key by key."""

    __tablename__ = "user_category_views"
    __table_args__ = (UniqueConstraint("user_id", "category", name="uq_user_category_views"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    category: str = Field(max_length=32)
    views: int = Field(default=0, ge=0)


class ArticleClick(SQLModel, table=True):
    __tablename__ = "article_clicks"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    title: str = "Unknown"
    url: str = ""
    category: str = Field(max_length=32)
    clicked_at: datetime = Field(default_factory=utcnow, index=True)
