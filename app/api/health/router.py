import logging

from fastapi import APIRouter, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/z", summary="Database round trip")
async def healthz(db: SessionDep, response: Response):
    dialect = db.get_bind().dialect.name
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("database health check failed: %s", e)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"ok": False, "database": dialect, "error": "database unavailable"}
    return {"ok": True, "database": dialect}
