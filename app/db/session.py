# app/db/session.py
from typing import AsyncGenerator, Annotated

from fastapi import Depends
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from app.config import settings

# ---------------------------------------------------------------------
# ENV
# ---------------------------------------------------------------------
DATABASE_URL = settings.DATABASE_URL

# pgbouncer (supabase pooler) and sqlite files: no application-side pool
USE_NULLPOOL = (
    "pooler.supabase.com" in DATABASE_URL
    or DATABASE_URL.startswith("sqlite")
    or settings.DB_USE_NULLPOOL
)

# ---------------------------------------------------------------------
# ENGINE
# ---------------------------------------------------------------------
engine_kwargs = dict(
    echo=settings.SQL_ECHO,
    future=True,
    pool_pre_ping=True,
)

if USE_NULLPOOL:
    engine_kwargs["poolclass"] = NullPool
else:
    engine_kwargs["pool_recycle"] = settings.DB_POOL_RECYCLE

engine = create_async_engine(DATABASE_URL, **engine_kwargs)

# ---------------------------------------------------------------------
# SESSION FACTORY
# ---------------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

# ---------------------------------------------------------------------
# DEPENDENCY
# ---------------------------------------------------------------------
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise

SessionDep = Annotated[AsyncSession, Depends(get_session)]

# ---------------------------------------------------------------------
# UPSERT
#   INSERT ... ON CONFLICT DO UPDATE is dialect specific in SQLAlchemy.
#   Both postgresql.insert and sqlite.insert expose on_conflict_do_update()
#   and .excluded, so callers can build one statement for either backend.
# ---------------------------------------------------------------------
def dialect_insert(session: AsyncSession, table):
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise ValueError(f"upsert is not supported on dialect {name!r}")

# ---------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------
async def create_db_and_tables(bind=None) -> None:
    # table classes register themselves on SQLModel.metadata at import time
    import app.db.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

async def dispose_engine() -> None:
    await engine.dispose()
