from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---- Track ----
class TrackActivityBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # loose types: the recorder validates and answers 400, not 422
    user_id: Optional[Any] = Field(default=None, alias="userId")
    activity_type: Optional[Any] = Field(default=None, alias="activityType")
    category: Optional[Any] = None
    article_title: Optional[str] = Field(default=None, alias="articleTitle")
    article_url: Optional[str] = Field(default=None, alias="articleUrl")


class TrackActivityResponse(BaseModel):
    success: bool


# ---- Aggregate ----
class UserAnalyticsResponse(BaseModel):
    userId: str
    lastActive: datetime
    sessionCount: int
    articleClicks: int
    categoryViews: Dict[str, int]
