# app/api/news/service.py
import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.activity.service import ActivityRecorder
from app.api.user.service import PreferenceStore
from app.errors import NotFoundError, UpstreamError, ValidationError

from .category_models import BACKFILL_CATEGORIES, DEFAULT_CATEGORIES
from .client import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------------------ #
# Config
# ------------------------------------------------------------------------------ #
IMPLICIT_TOP_N = 3
MIN_CATEGORIES = 6
MAX_FETCH_CATEGORIES = 8
PER_CATEGORY = 3
MIN_FEED_SIZE = 12
FETCH_PAGE_SIZE = DEFAULT_PAGE_SIZE

REASON_HISTORY = "Based on your reading history"
REASON_INTERESTS = "Matches your selected interests"
REASON_POPULAR = "Popular topics we think you might enjoy"

METHOD_PERSONALIZED = "personalized"
METHOD_PREFERENCES = "preference-based"
METHOD_DEFAULT = "default"


# ------------------------------------------------------------------------------ #
# Category planning (pure)
# ------------------------------------------------------------------------------ #
@dataclass
class CategoryPlan:
    categories: List[str]
    reasons: Dict[str, str]
    top_categories: List[str] = field(default_factory=list)
    explicit: List[str] = field(default_factory=list)
    method: str = METHOD_DEFAULT


def rank_implicit(category_views: Dict[str, int], top_n: int = IMPLICIT_TOP_N) -> List[str]:
    # sorted() is stable: equal counts keep the mapping's own order
    ranked = sorted(category_views.items(), key=lambda kv: kv[1], reverse=True)
    return [category for category, views in ranked if views > 0][:top_n]


def default_plan() -> CategoryPlan:
    return CategoryPlan(
        categories=list(DEFAULT_CATEGORIES),
        reasons={c: REASON_POPULAR for c in DEFAULT_CATEGORIES},
        method=METHOD_DEFAULT,
    )


def plan_categories(
    category_views: Dict[str, int],
    interests: Sequence[str],
    *,
    min_categories: int = MIN_CATEGORIES,
    max_categories: int = MAX_FETCH_CATEGORIES,
) -> CategoryPlan:
    """Implicit top 3, then explicit interests, then backfill to ``min_categories``."""
    top = rank_implicit(category_views)
    categories: List[str] = list(top)

    explicit: List[str] = []
    for interest in interests:
        if interest not in explicit:
            explicit.append(interest)
        if interest not in categories:
            categories.append(interest)

    for category in BACKFILL_CATEGORIES:
        if len(categories) >= min_categories:
            break
        if category not in categories:
            categories.append(category)

    categories = categories[:max_categories]

    reasons: Dict[str, str] = {}
    for category in top:
        reasons[category] = REASON_HISTORY
    for interest in explicit:
        reasons.setdefault(interest, REASON_INTERESTS)
    for category in categories:
        reasons.setdefault(category, REASON_POPULAR)

    return CategoryPlan(
        categories=categories,
        reasons={c: reasons[c] for c in categories},
        top_categories=top,
        explicit=explicit,
        method=METHOD_PERSONALIZED if top else METHOD_PREFERENCES,
    )


def select_articles(
    fetched: Dict[str, List[Dict[str, Any]]],
    *,
    per_category: int = PER_CATEGORY,
    min_total: int = MIN_FEED_SIZE,
) -> Dict[str, List[Dict[str, Any]]]:
    """``per_category`` from each category, then one more per category per
    round until ``min_total`` is reached or every list is used up."""
    picked = {c: list(articles[:per_category]) for c, articles in fetched.items()}
    total = sum(len(v) for v in picked.values())

    level = per_category
    while total < min_total:
        progressed = False
        for category, articles in fetched.items():
            if total >= min_total:
                break
            if level < len(articles):
                picked[category].append(articles[level])
                total += 1
                progressed = True
        if not progressed:
            break
        level += 1
    return picked


# ------------------------------------------------------------------------------ #
# Recommendation engine
# ------------------------------------------------------------------------------ #
@dataclass
class Recommendation:
    categories: List[str]
    articles: List[Dict[str, Any]]
    insights: Dict[str, Any]

    def to_response(self) -> Dict[str, Any]:
        return {
            "recommendedCategories": self.categories,
            "articles": self.articles,
            "recommendationInsights": self.insights,
        }


class RecommendationEngine:
    """The "For You" feed.

    Reads the user's activity aggregate and explicit interests from the
    request session, fetches every planned category from ``news_source``
    concurrently and shuffles the merged result with ``rng``.
    """

    def __init__(self, session: AsyncSession, news_source, rng: Optional[random.Random] = None):
        self.activity = ActivityRecorder(session)
        self.preferences = PreferenceStore(session)
        self.news_source = news_source
        self.rng = rng or random.Random()

    async def recommend(self, user_id: Optional[str]) -> Recommendation:
        uid = str(user_id).strip() if user_id is not None else ""
        if not uid:
            raise ValidationError("User ID is required")

        analytics = await self.activity.get_analytics_row(uid)
        if analytics is None:
            # first visit: no behaviour to go on yet
            plan = default_plan()
        else:
            views = await self.activity.get_category_views(uid)
            interests = await self.preferences.get_interests(uid)
            plan = plan_categories(views, interests)

        fetched, failed = await self._fetch_all(plan.categories)
        picked = select_articles(fetched)

        articles: List[Dict[str, Any]] = []
        for category, items in picked.items():
            reason = plan.reasons[category]
            for article in items:
                articles.append({**article, "category": category, "recommendationReason": reason})
        self.rng.shuffle(articles)

        if plan.method == METHOD_DEFAULT:
            articles = articles[:MIN_FEED_SIZE]

        insights = self._insights(plan, len(articles))
        if plan.categories and len(failed) == len(plan.categories):
            insights["error"] = "News is temporarily unavailable. Please try again later."
            logger.warning("every category fetch failed for user %s", uid)

        logger.info(
            "recommendation for user %s: method=%s categories=%s articles=%d",
            uid, plan.method, plan.categories, len(articles),
        )
        return Recommendation(categories=plan.categories, articles=articles, insights=insights)

    async def _fetch_all(self, categories: List[str]):
        results = await asyncio.gather(
            *(self.news_source.fetch_by_category(c, FETCH_PAGE_SIZE) for c in categories),
            return_exceptions=True,
        )
        fetched: Dict[str, List[Dict[str, Any]]] = {}
        failed: List[str] = []
        for category, result in zip(categories, results):
            if isinstance(result, Exception):
                logger.warning("skipping category %s: %s", category, result)
                failed.append(category)
                continue
            if isinstance(result, BaseException):
                raise result
            fetched[category] = list(result)
        return fetched, failed

    @staticmethod
    def _insights(plan: CategoryPlan, article_count: int) -> Dict[str, Any]:
        if plan.method == METHOD_DEFAULT:
            reason = "Since this is your first visit, we're showing popular topics across various categories."
        elif plan.top_categories:
            reason = "Your recommendations are based on your reading history and preferences"
        else:
            reason = "Your recommendations are based on your selected interests"
        return {
            "method": plan.method,
            "topCategories": list(plan.top_categories),
            "explicitPreferences": list(plan.explicit),
            "categoriesUsed": list(plan.categories),
            "articleCount": article_count,
            "reason": reason,
        }


# ------------------------------------------------------------------------------ #
# Plain feeds
# ------------------------------------------------------------------------------ #
async def interest_feed(session: AsyncSession, news_source, user_id: str) -> List[Dict[str, Any]]:
    """Headlines for each explicit interest, in interest order."""
    prefs = await PreferenceStore(session).get(user_id)
    if prefs is None:
        raise NotFoundError("User preferences not found")

    interests = list(prefs.interests or [])
    results = await asyncio.gather(
        *(news_source.fetch_by_category(i, FETCH_PAGE_SIZE) for i in interests),
        return_exceptions=True,
    )
    articles: List[Dict[str, Any]] = []
    failures = 0
    for interest, result in zip(interests, results):
        if isinstance(result, Exception):
            logger.warning("skipping interest %s: %s", interest, result)
            failures += 1
            continue
        articles.extend({**a, "category": interest} for a in result)

    if interests and failures == len(interests):
        raise UpstreamError("Failed to fetch news")
    return articles


async def category_headlines(news_source, category: str, page_size: int = FETCH_PAGE_SIZE) -> List[Dict[str, Any]]:
    articles = await news_source.fetch_by_category(category, page_size)
    return [{**a, "category": category} for a in articles]
