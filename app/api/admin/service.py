# app/api/admin/service.py
import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.activity.models import ArticleClick, UserAnalytics, UserCategoryView
from app.api.activity.service import analytics_to_dict, click_to_dict
from app.api.user.models import User, UserPreferences
from app.api.user.service import PreferenceStore, UserService, preferences_to_dict, user_to_dict
from app.config import settings
from app.errors import AuthenticationError, PersistenceError, ServiceError

logger = logging.getLogger(__name__)

TOP_ARTICLES_LIMIT = 10
RECENT_CLICKS_PER_USER = 10
MOST_ACTIVE_LIMIT = 5
NO_CATEGORY = "none"

ADMIN_NAME = "Admin User"
ADMIN_INTERESTS = ["technology", "business", "politics"]


# ------------------------------------------------------------------------------ #
# Helpers (pure)
# ------------------------------------------------------------------------------ #
def percent(count: int, total: int) -> int:
    """count / total as a whole percentage, halves rounded up; 0 when total is 0."""
    if total <= 0:
        return 0
    return int(math.floor(count * 100.0 / total + 0.5))


def _sorted_counts(counts: Dict[str, int]) -> List[tuple]:
    # stable: equal counts keep first-seen order
    return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)


def _user_info(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role}


def _unique(values: Iterable[str]) -> List[str]:
    out: List[str] = []
    for v in values:
        if v and v not in out:
            out.append(v)
    return out


def popular_categories(views_by_user: Dict[str, Dict[str, int]]) -> List[Dict[str, Any]]:
    totals: Dict[str, int] = {}
    for views in views_by_user.values():
        for category, count in views.items():
            totals[category] = totals.get(category, 0) + int(count)
    grand_total = sum(totals.values())
    return [
        {"category": category, "count": count, "percentage": percent(count, grand_total)}
        for category, count in _sorted_counts(totals)
    ]


def interest_popularity(prefs: List[UserPreferences]) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    for p in prefs:
        for interest in _unique(p.interests or []):
            counts[interest] = counts.get(interest, 0) + 1
    return [
        {"interest": interest, "count": count, "percentage": percent(count, len(prefs))}
        for interest, count in _sorted_counts(counts)
    ]


def interest_correlations(
    prefs: List[UserPreferences],
    clicks_by_user: Dict[str, int],
    views_by_user: Dict[str, Dict[str, int]],
) -> List[Dict[str, Any]]:
    """Per interest: holders, their mean article clicks and their most viewed category.

    Holders without an analytics row count as 0 clicks.
    """
    holders: Dict[str, List[str]] = {}
    for p in prefs:
        for interest in _unique(p.interests or []):
            holders.setdefault(interest, []).append(p.user_id)

    out: List[Dict[str, Any]] = []
    for interest, user_ids in holders.items():
        clicks = [clicks_by_user.get(uid, 0) for uid in user_ids]
        merged: Dict[str, int] = {}
        for uid in user_ids:
            for category, count in views_by_user.get(uid, {}).items():
                merged[category] = merged.get(category, 0) + int(count)
        ranked = _sorted_counts(merged)
        out.append({
            "interest": interest,
            "userCount": len(user_ids),
            "avgArticleClicks": round(sum(clicks) / len(clicks), 1) if clicks else 0,
            "mostViewedCategory": ranked[0][0] if ranked else NO_CATEGORY,
        })
    out.sort(key=lambda r: r["userCount"], reverse=True)
    return out


def top_articles(clicks: List[ArticleClick], limit: int = TOP_ARTICLES_LIMIT) -> List[Dict[str, Any]]:
    groups: Dict[tuple, Dict[str, Any]] = {}
    for c in clicks:
        key = (c.title, c.url)
        g = groups.get(key)
        if g is None:
            groups[key] = {
                "title": c.title,
                "url": c.url,
                "category": c.category,
                "clickCount": 1,
                "lastClicked": c.clicked_at,
            }
            continue
        g["clickCount"] += 1
        if c.clicked_at and (g["lastClicked"] is None or c.clicked_at > g["lastClicked"]):
            g["lastClicked"] = c.clicked_at
    ranked = sorted(groups.values(), key=lambda g: g["clickCount"], reverse=True)
    return ranked[:limit]


def recent_clicks_by_user(clicks: List[ArticleClick], limit: int = RECENT_CLICKS_PER_USER) -> Dict[str, List[Dict[str, Any]]]:
    by_user: Dict[str, List[ArticleClick]] = {}
    for c in clicks:
        by_user.setdefault(c.user_id, []).append(c)
    out: Dict[str, List[Dict[str, Any]]] = {}
    for uid, rows in by_user.items():
        rows.sort(key=lambda c: (c.clicked_at, c.id or 0), reverse=True)
        out[uid] = [click_to_dict(c) for c in rows[:limit]]
    return out


# ------------------------------------------------------------------------------ #
# Analytics
# ------------------------------------------------------------------------------ #
class AnalyticsAggregator:
    """Admin statistics over every user, from one read of each table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _snapshot(self):
        users = list((await self.session.execute(select(User))).scalars().all())
        analytics = list((await self.session.execute(select(UserAnalytics))).scalars().all())
        views = (
            await self.session.execute(
                select(UserCategoryView.user_id, UserCategoryView.category, UserCategoryView.views)
                .order_by(UserCategoryView.id)
            )
        ).all()
        prefs = list((await self.session.execute(select(UserPreferences))).scalars().all())
        return users, analytics, views, prefs

    async def _load_clicks(self) -> Optional[List[ArticleClick]]:
        # read first: the rollback after a failure expires every loaded instance
        try:
            result = await self.session.execute(select(ArticleClick))
            return list(result.scalars().all())
        except SQLAlchemyError:
            logger.warning("article click log unavailable, skipping click statistics", exc_info=True)
            await self.session.rollback()
            return None

    async def compute_analytics(self) -> Dict[str, Any]:
        clicks = await self._load_clicks()
        try:
            users, analytics, view_rows, prefs = await self._snapshot()
        except SQLAlchemyError as e:
            logger.error("failed to read analytics snapshot", exc_info=True)
            raise PersistenceError("Failed to load analytics") from e

        views_by_user: Dict[str, Dict[str, int]] = {}
        for user_id, category, count in view_rows:
            views_by_user.setdefault(user_id, {})[category] = int(count)

        users_by_id = {u.id: u for u in users}
        with_info = []
        for row in sorted(analytics, key=lambda a: a.last_active, reverse=True):
            item = analytics_to_dict(row, views_by_user.get(row.user_id, {}))
            item["user"] = _user_info(users_by_id.get(row.user_id))
            with_info.append(item)

        clicks_by_user = {a.user_id: int(a.article_clicks or 0) for a in analytics}
        most_active = sorted(with_info, key=lambda a: a["sessionCount"], reverse=True)[:MOST_ACTIVE_LIMIT]
        total_sessions = sum(a["sessionCount"] for a in with_info)

        return {
            "userCount": len(users),
            "popularCategories": popular_categories(views_by_user),
            "interestPopularity": interest_popularity(prefs),
            "interestCorrelations": interest_correlations(prefs, clicks_by_user, views_by_user),
            "topArticles": top_articles(clicks) if clicks is not None else [],
            "userAnalyticsWithUserInfo": with_info,
            "userArticleClicks": recent_clicks_by_user(clicks) if clicks is not None else {},
            "mostActiveUsers": most_active,
            "totalArticleClicks": sum(clicks_by_user.values()),
            "averageSessionCount": round(total_sessions / len(with_info), 1) if with_info else 0,
        }


# ------------------------------------------------------------------------------ #
# Users overview / bootstrap
# ------------------------------------------------------------------------------ #
async def list_users_with_analytics(session: AsyncSession) -> List[Dict[str, Any]]:
    users = await UserService(session).get_users()
    prefs = {p.user_id: p for p in await PreferenceStore(session).list_all()}
    analytics = {a.user_id: a for a in (await session.execute(select(UserAnalytics))).scalars().all()}
    view_rows = (
        await session.execute(
            select(UserCategoryView.user_id, UserCategoryView.category, UserCategoryView.views)
            .order_by(UserCategoryView.id)
        )
    ).all()
    views_by_user: Dict[str, Dict[str, int]] = {}
    for user_id, category, count in view_rows:
        views_by_user.setdefault(user_id, {})[category] = int(count)

    out = []
    for u in users:
        item = user_to_dict(u)
        p = prefs.get(u.id)
        a = analytics.get(u.id)
        item["preferences"] = preferences_to_dict(p) if p else None
        item["analytics"] = analytics_to_dict(a, views_by_user.get(u.id, {})) if a else None
        out.append(item)
    return out


async def seed_admin(session: AsyncSession, secret_key: Optional[str]) -> Dict[str, Any]:
    """Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD once."""
    if not settings.ADMIN_SEED_KEY or secret_key != settings.ADMIN_SEED_KEY:
        raise AuthenticationError("Unauthorized")

    users = UserService(session)
    existing = await users.get_admin()
    if existing:
        return {"created": False, "message": "Admin user already exists", "email": existing.email}

    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        raise ServiceError("Admin credentials not configured in environment variables")

    admin = await users.create_user(ADMIN_NAME, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, role="admin")
    await PreferenceStore(session).upsert(admin.id, ADMIN_INTERESTS, ADMIN_INTERESTS)
    logger.info("seeded admin account %s", admin.id)
    return {"created": True, "message": "Admin user created successfully", "admin": user_to_dict(admin)}
