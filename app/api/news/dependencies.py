import random
from typing import Annotated, Optional

from fastapi import Depends

from app.db.session import SessionDep

from .client import NewsApiClient
from .service import RecommendationEngine

"""
Annotated attaches metadata to a type:

  Annotated[Type, meta1, meta2, ...]

e.g. Annotated[AsyncSession, Depends(get_session)] lets every route declare
its session (or engine) with one short alias. Tests replace these providers
through app.dependency_overrides.
"""


def get_news_source() -> NewsApiClient:
    return NewsApiClient()


def get_random_source() -> Optional[random.Random]:
    # None -> the engine seeds its own Random()
    return None


NewsSourceDep = Annotated[NewsApiClient, Depends(get_news_source)]


async def get_recommendation_engine(
    session: SessionDep,
    news_source: NewsSourceDep,
    rng: Annotated[Optional[random.Random], Depends(get_random_source)],
) -> RecommendationEngine:
    """RecommendationEngine dependency injection"""
    return RecommendationEngine(session, news_source, rng=rng)


RecommendationEngineDep = Annotated[RecommendationEngine, Depends(get_recommendation_engine)]
