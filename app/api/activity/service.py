# app/api/activity/service.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.news.category_models import is_known_category, normalize_category
from app.api.user.models import utcnow
from app.db.session import dialect_insert
from app.errors import PersistenceError, ValidationError

from .models import ArticleClick, UserAnalytics, UserCategoryView

logger = logging.getLogger(__name__)

ACTIVITY_TYPES = ("session", "view", "click")
UNKNOWN_TITLE = "Unknown"


class ActivityRecorder:
    """Turns raw activity events into per-user aggregate counters.

    Every counter change is a single ``INSERT ... ON CONFLICT DO UPDATE``
    with ``col = col + n``, so two requests for the same user never lose an
    increment. The analytics upsert and the click-log insert share one
    commit, but nothing is rolled back for the caller beyond that.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- write ----------
    async def record(
        self,
        user_id: Optional[str],
        activity_type: Optional[str],
        *,
        category: Optional[str] = None,
        article_title: Optional[str] = None,
        article_url: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> None:
        uid = user_id.strip() if isinstance(user_id, str) else ""
        if not uid:
            raise ValidationError("User ID is required")
        if activity_type not in ACTIVITY_TYPES:
            raise ValidationError(f"activityType must be one of: {', '.join(ACTIVITY_TYPES)}")

        if category is not None and not isinstance(category, str):
            raise ValidationError(f"unknown category: {category}")
        cat = normalize_category(category)
        if activity_type in ("view", "click"):
            if not cat:
                raise ValidationError(f"category is required for '{activity_type}' events")
            if not is_known_category(cat):
                raise ValidationError(f"unknown category: {category}")

        now = at or utcnow()
        try:
            await self._bump_analytics(
                uid,
                now,
                sessions=1 if activity_type == "session" else 0,
                clicks=1 if activity_type == "click" else 0,
            )
            if activity_type in ("view", "click"):
                await self._bump_category_view(uid, cat)
            if activity_type == "click":
                self.session.add(
                    ArticleClick(
                        user_id=uid,
                        title=article_title or UNKNOWN_TITLE,
                        url=article_url or "",
                        category=cat,
                        clicked_at=now,
                    )
                )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("failed to record %s activity for user %s", activity_type, uid, exc_info=True)
            raise PersistenceError("Failed to track activity") from e

        logger.debug("recorded %s activity for user %s (category=%s)", activity_type, uid, cat or "-")

    async def _bump_analytics(self, user_id: str, now: datetime, *, sessions: int, clicks: int) -> None:
        table = UserAnalytics.__table__
        stmt = dialect_insert(self.session, table).values(
            user_id=user_id,
            last_active=now,
            session_count=sessions,
            article_clicks=clicks,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={
                "last_active": stmt.excluded.last_active,
                "session_count": table.c.session_count + stmt.excluded.session_count,
                "article_clicks": table.c.article_clicks + stmt.excluded.article_clicks,
            },
        )
        await self.session.execute(stmt)

    async def _bump_category_view(self, user_id: str, category: str) -> None:
        table = UserCategoryView.__table__
        stmt = dialect_insert(self.session, table).values(user_id=user_id, category=category, views=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "category"],
            set_={"views": table.c.views + stmt.excluded.views},
        )
        await self.session.execute(stmt)

    # ---------- read ----------
    async def get_analytics_row(self, user_id: str) -> Optional[UserAnalytics]:
        result = await self.session.execute(select(UserAnalytics).where(UserAnalytics.user_id == user_id))
        return result.scalars().one_or_none()

    async def get_category_views(self, user_id: str) -> Dict[str, int]:
        """categoryViews for one user; dict order is first-view order."""
        result = await self.session.execute(
            select(UserCategoryView.category, UserCategoryView.views)
            .where(UserCategoryView.user_id == user_id)
            .order_by(UserCategoryView.id)
        )
        return {category: int(views) for category, views in result.all()}

    async def get_user_analytics(self, user_id: str) -> Optional[Dict[str, Any]]:
        row = await self.get_analytics_row(user_id)
        if row is None:
            return None
        return analytics_to_dict(row, await self.get_category_views(user_id))

    async def list_recent_clicks(self, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        result = await self.session.execute(
            select(ArticleClick)
            .where(ArticleClick.user_id == user_id)
            .order_by(ArticleClick.clicked_at.desc(), ArticleClick.id.desc())
            .limit(limit)
        )
        return [click_to_dict(c) for c in result.scalars().all()]


def analytics_to_dict(row: UserAnalytics, category_views: Dict[str, int]) -> Dict[str, Any]:
    return {
        "userId": row.user_id,
        "lastActive": row.last_active,
        "sessionCount": int(row.session_count or 0),
        "articleClicks": int(row.article_clicks or 0),
        "categoryViews": dict(category_views),
    }


def click_to_dict(click: ArticleClick) -> Dict[str, Any]:
    return {
        "id": click.id,
        "userId": click.user_id,
        "title": click.title,
        "url": click.url,
        "category": click.category,
        "clickedAt": click.clicked_at,
    }
