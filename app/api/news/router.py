# app/api/news/router.py
from typing import Optional

from fastapi import APIRouter, Query

from app.db.session import SessionDep
from app.errors import ValidationError

from . import service
from .category_models import NEWS_CATEGORIES, is_known_category, normalize_category
from .dependencies import NewsSourceDep, RecommendationEngineDep
from .schemas import ForYouResponse, HeadlinesResponse

router = APIRouter(prefix="/news", tags=["news"])


# ------------------------------
# Interest feed
# ------------------------------
@router.get("", summary="News for the user's selected interests")
async def list_news(
    session: SessionDep,
    news_source: NewsSourceDep,
    user_id: Optional[str] = Query(None, alias="userId"),
):
    if not user_id or not user_id.strip():
        raise ValidationError("Invalid or missing user ID")
    return await service.interest_feed(session, news_source, user_id.strip())


# ------------------------------
# For You
# ------------------------------
@router.get(
    "/for-you",
    response_model=ForYouResponse,
    response_model_exclude_none=True,
    summary="Personalized feed",
    description="Reading history (top 3 categories) + selected interests + popular backfill, shuffled.",
)
async def for_you(
    engine: RecommendationEngineDep,
    user_id: Optional[str] = Query(None, alias="userId"),
):
    recommendation = await engine.recommend(user_id)
    return recommendation.to_response()


# ------------------------------
# Single category
# ------------------------------
@router.get("/categories", summary="Supported news categories")
async def list_categories():
    return {"categories": list(NEWS_CATEGORIES)}


@router.get("/category/{category}", response_model=HeadlinesResponse, summary="Top headlines of one category")
async def category_news(
    category: str,
    news_source: NewsSourceDep,
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
):
    if not is_known_category(category):
        raise ValidationError(f"unknown category: {category}")
    cat = normalize_category(category)
    articles = await service.category_headlines(news_source, cat, page_size)
    return {"category": cat, "articles": articles}
