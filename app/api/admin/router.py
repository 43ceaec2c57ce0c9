# app/api/admin/router.py
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth.dependencies import AdminDep
from app.db.session import get_session

from . import service
from .schemas import AnalyticsSummary, SeedBody

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/auth", summary="Admin check for the current cookie")
async def admin_auth(admin: AdminDep):
    return {"authenticated": True, "user": admin}


@router.get("/analytics", response_model=AnalyticsSummary, summary="Usage analytics across all users")
async def analytics(admin: AdminDep, db: AsyncSession = Depends(get_session)):
    return await service.AnalyticsAggregator(db).compute_analytics()


@router.get("/users", summary="Users with their preferences and activity, newest first")
async def users(admin: AdminDep, db: AsyncSession = Depends(get_session)):
    return {"users": await service.list_users_with_analytics(db)}


@router.post("/seed", summary="Create the admin account from environment credentials")
async def seed(body: SeedBody, response: Response, db: AsyncSession = Depends(get_session)):
    result = await service.seed_admin(db, body.secretKey)
    if result.pop("created"):
        response.status_code = status.HTTP_201_CREATED
    return result
