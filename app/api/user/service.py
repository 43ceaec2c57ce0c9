from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth.security import get_password_hash, verify_password
from app.db.session import dialect_insert
from app.errors import ConflictError, PersistenceError, ValidationError

from .models import User, UserPreferences, utcnow

logger = logging.getLogger(__name__)


def user_to_dict(user: User) -> Dict[str, Any]:
    # never expose the password hash
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "createdAt": user.created_at,
    }


def preferences_to_dict(prefs: UserPreferences) -> Dict[str, Any]:
    return {
        "userId": prefs.user_id,
        "interests": list(prefs.interests or []),
        "newsCategory": list(prefs.news_category or []),
        "updatedAt": prefs.updated_at,
    }


def clean_interests(interests: Any) -> List[str]:
    """Validate an interest list: only non-empty strings, lower-cased, first occurrence kept."""
    if not isinstance(interests, (list, tuple)):
        raise ValidationError("Invalid interests")
    out: List[str] = []
    for interest in interests:
        if not isinstance(interest, str) or not interest.strip():
            raise ValidationError("Invalid interests")
        value = interest.strip().lower()
        if value not in out:
            out.append(value)
    return out


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- Users ----------
    async def create_user(self, name: str, email: str, password: str, role: str = "user") -> User:
        if not name or not email or not password:
            raise ValidationError("name, email and password are required")
        email = email.strip().lower()
        if await self.get_user_by_email(email):
            raise ConflictError("A user with this email already exists")

        user = User(name=name.strip(), email=email, password=get_password_hash(password), role=role)
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("A user with this email already exists") from e
        await self.session.refresh(user)
        logger.info("created %s account %s", role, user.id)
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return (await self.session.execute(select(User).where(User.id == user_id))).scalars().one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower())
        return (await self.session.execute(stmt)).scalars().one_or_none()

    async def get_users(self) -> List[User]:
        result = await self.session.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def get_admin(self) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.role == "admin").limit(1))
        return result.scalars().first()

    async def count_users(self) -> int:
        return int((await self.session.execute(select(func.count()).select_from(User))).scalar_one())

    # ---------- Auth ----------
    async def authenticate(self, email: str, password: str) -> Optional[User]:
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.password):
            return None
        return user


class PreferenceStore:
    """Explicit interests per user. Upsert by user_id, last write wins."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str, refresh: bool = False) -> Optional[UserPreferences]:
        stmt = select(UserPreferences).where(UserPreferences.user_id == user_id)
        if refresh:
            # the row may already sit in the identity map with pre-upsert values
            stmt = stmt.execution_options(populate_existing=True)
        return (await self.session.execute(stmt)).scalars().one_or_none()

    async def get_interests(self, user_id: str) -> List[str]:
        prefs = await self.get(user_id)
        return list(prefs.interests or []) if prefs else []

    async def list_all(self) -> List[UserPreferences]:
        return list((await self.session.execute(select(UserPreferences))).scalars().all())

    async def upsert(
        self,
        user_id: Optional[str],
        interests: Any,
        news_category: Any = None,
    ) -> UserPreferences:
        uid = user_id.strip() if isinstance(user_id, str) else ""
        if not uid:
            raise ValidationError("Invalid user ID")
        cleaned = clean_interests(interests)
        categories = clean_interests(news_category) if news_category is not None else None

        table = UserPreferences.__table__
        stmt = dialect_insert(self.session, table).values(
            user_id=uid,
            interests=cleaned,
            news_category=categories or [],
            updated_at=utcnow(),
        )
        # overwrite, no merge
        update = {"interests": stmt.excluded.interests, "updated_at": stmt.excluded.updated_at}
        if categories is not None:
            update["news_category"] = stmt.excluded.news_category
        stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_=update)

        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("failed to save preferences for user %s", uid, exc_info=True)
            raise PersistenceError("Failed to save preferences") from e

        return await self.get(uid, refresh=True)
