# app/api/activity/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session
from app.errors import NotFoundError

from .schemas import TrackActivityBody, TrackActivityResponse, UserAnalyticsResponse
from .service import ActivityRecorder

router = APIRouter(prefix="/activity", tags=["activity"])


@router.post(
    "/track",
    response_model=TrackActivityResponse,
    summary="Record a user activity event",
    description="activityType: session | view | click. view/click need a category.",
)
async def track_activity(body: TrackActivityBody, db: AsyncSession = Depends(get_session)):
    recorder = ActivityRecorder(db)
    await recorder.record(
        body.user_id,
        body.activity_type,
        category=body.category,
        article_title=body.article_title,
        article_url=body.article_url,
    )
    return TrackActivityResponse(success=True)


@router.get("/{user_id}", response_model=UserAnalyticsResponse, summary="Per-user activity aggregate")
async def user_analytics(user_id: str, db: AsyncSession = Depends(get_session)):
    data = await ActivityRecorder(db).get_user_analytics(user_id)
    if data is None:
        raise NotFoundError("No activity recorded for this user")
    return data


@router.get("/{user_id}/clicks", summary="Most recent article clicks of a user")
async def user_clicks(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    return {"items": await ActivityRecorder(db).list_recent_clicks(user_id, limit=limit)}
