from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel


class SeedBody(BaseModel):
    secretKey: Optional[str] = None


class CategoryCount(BaseModel):
    category: str
    count: int
    percentage: int


class InterestCount(BaseModel):
    interest: str
    count: int
    percentage: int


class InterestCorrelation(BaseModel):
    interest: str
    userCount: int
    avgArticleClicks: float
    mostViewedCategory: str


class TopArticle(BaseModel):
    title: str
    url: str
    category: Optional[str] = None
    clickCount: int
    lastClicked: Optional[datetime] = None


class UserInfo(BaseModel):
    id: str
    name: str
    email: str
    role: str


class UserAnalyticsWithUser(BaseModel):
    userId: str
    lastActive: datetime
    sessionCount: int
    articleClicks: int
    categoryViews: Dict[str, int]
    user: Optional[UserInfo] = None


class ClickOut(BaseModel):
    id: Optional[int] = None
    userId: str
    title: str
    url: str
    category: str
    clickedAt: datetime


class AnalyticsSummary(BaseModel):
    userCount: int
    popularCategories: List[CategoryCount]
    interestPopularity: List[InterestCount]
    interestCorrelations: List[InterestCorrelation]
    topArticles: List[TopArticle]
    userAnalyticsWithUserInfo: List[UserAnalyticsWithUser]
    userArticleClicks: Dict[str, List[ClickOut]]
    mostActiveUsers: List[UserAnalyticsWithUser]
    totalArticleClicks: int
    averageSessionCount: float
