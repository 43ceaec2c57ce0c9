# app/api/news/schemas.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ArticleSource(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None


class ArticleOut(BaseModel):
    # NewsAPI article, passed through with whatever extra keys it carries
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    urlToImage: Optional[str] = None
    publishedAt: Optional[str] = None
    source: Optional[ArticleSource] = None
    category: Optional[str] = None
    recommendationReason: Optional[str] = None


class RecommendationInsights(BaseModel):
    method: str
    topCategories: List[str]
    explicitPreferences: List[str]
    categoriesUsed: List[str]
    articleCount: int
    reason: str
    error: Optional[str] = None


class ForYouResponse(BaseModel):
    recommendedCategories: List[str]
    articles: List[ArticleOut]
    recommendationInsights: RecommendationInsights


class HeadlinesResponse(BaseModel):
    category: str
    articles: List[Dict[str, Any]]
