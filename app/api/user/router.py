from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session
from app.errors import NotFoundError

from .schemas import PreferencesBody, PreferencesResponse, UserCreate, UserResponse
from .service import PreferenceStore, UserService, preferences_to_dict, user_to_dict

router = APIRouter(prefix="/user", tags=["users"])

# ---------------- Users ----------------
@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: UserCreate, db: AsyncSession = Depends(get_session)):
    svc = UserService(db)
    u = await svc.create_user(body.name, body.email, body.password)
    return user_to_dict(u)

# ---------------- Preferences ----------------
@router.post("/preferences", response_model=PreferencesResponse)
async def save_preferences(body: PreferencesBody, db: AsyncSession = Depends(get_session)):
    prefs = await PreferenceStore(db).upsert(body.user_id, body.interests, body.news_category)
    return preferences_to_dict(prefs)

@router.get("/preferences/{user_id}", response_model=PreferencesResponse)
async def get_preferences(user_id: str, db: AsyncSession = Depends(get_session)):
    prefs = await PreferenceStore(db).get(user_id)
    if not prefs:
        raise NotFoundError("User preferences not found")
    return preferences_to_dict(prefs)

# ---------------- Single user ----------------
@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_session)):
    u = await UserService(db).get_user(user_id)
    if not u:
        raise NotFoundError("User not found")
    return user_to_dict(u)
