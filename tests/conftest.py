import asyncio
import os
import random

# settings are read at import time: configure before the app is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./pytest-unused.db"
os.environ["SKIP_DB_INIT"] = "1"
os.environ["JWT_SECRET"] = "test-secret-with-more-than-32-characters"
os.environ["ADMIN_SEED_KEY"] = "test-seed-key"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "admin-pass"
os.environ["NEWS_API_KEY"] = "test-key"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.api.news.dependencies import get_news_source, get_random_source
from app.db.session import create_db_and_tables, get_session
from app.errors import UpstreamError
from app.main import app


class FakeNewsSource:
    """In-memory NewsSource: ``available`` headlines per category, some categories failing."""

    def __init__(self, available=5, per_category=None, failing=()):
        self.available = available
        self.per_category = dict(per_category or {})
        self.failing = set(failing)
        self.calls = []

    async def fetch_by_category(self, category, page_size=5):
        self.calls.append((category, page_size))
        if category in self.failing:
            raise UpstreamError(f"Failed to fetch news for category: {category}")
        count = min(page_size, self.per_category.get(category, self.available))
        return [
            {
                "title": f"{category} headline {i}",
                "description": f"about {category}",
                "url": f"https://news.example.com/{category}/{i}",
                "urlToImage": None,
                "publishedAt": "2024-05-01T08:00:00Z",
                "source": {"id": None, "name": "Example News"},
            }
            for i in range(count)
        ]


@pytest.fixture()
def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(create_db_and_tables(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture()
def session_maker(db_engine):
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture()
def news_source():
    return FakeNewsSource()


@pytest.fixture()
def client(session_maker, news_source):
    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_news_source] = lambda: news_source
    app.dependency_overrides[get_random_source] = lambda: random.Random(1234)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def track(client, user_id, activity_type, category=None, **extra):
    body = {"userId": user_id, "activityType": activity_type}
    if category is not None:
        body["category"] = category
    body.update(extra)
    return client.post("/api/activity/track", json=body)


def login_admin(client):
    assert client.post("/api/admin/seed", json={"secretKey": "test-seed-key"}).status_code in (200, 201)
    res = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "admin-pass"})
    assert res.status_code == 200
    return res.json()
