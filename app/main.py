# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.logging_setup import setup_logging
from app.errors import ServiceError, service_error_handler
from app.db.session import create_db_and_tables, dispose_engine
from app.api.activity.router import router as activity_router
from app.api.admin.router import router as admin_router
from app.api.auth.router import router as auth_router
from app.api.news.router import router as news_router
from app.api.user.router import router as user_router
from app.api.health.router import router as health_router  # /api/health

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Lifespan: create tables on boot, dispose the engine on shutdown
# ---------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.SKIP_DB_INIT:
        logger.info("Creating database and tables...")
        await create_db_and_tables()
        logger.info("Database tables created successfully")
    else:
        logger.info("SKIP_DB_INIT=1, skipping database initialisation")

    yield

    logger.info("Disposing database engine...")
    await dispose_engine()
    logger.info("Database engine disposed")


# ---------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------
app = FastAPI(
    title="News For You",
    description="Personalized news feed, activity tracking and admin analytics (FastAPI + SQLModel)",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(ServiceError, service_error_handler)

# ---------------------------------------------------------------------
# CORS
#   - local frontend always allowed
#   - FRONTEND_URL adds the deployed frontend
# ---------------------------------------------------------------------
allow_origins = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}
if settings.FRONTEND_URL:
    allow_origins.add(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------
app.include_router(auth_router, prefix="/api")
app.include_router(user_router, prefix="/api")
app.include_router(activity_router, prefix="/api")
app.include_router(news_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(health_router, prefix="/api/health", tags=["health"])

# simple health check for the load balancer
@app.get("/health")
async def health():
    return {"ok": True}

@app.get("/")
async def root():
    return {
        "message": "News For You API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
    }
