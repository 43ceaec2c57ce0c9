import asyncio
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select, text

from app.api.activity.models import ArticleClick, UserAnalytics
from app.api.activity.service import ActivityRecorder
from app.api.user.service import PreferenceStore
from app.db.session import dialect_insert
from app.errors import PersistenceError, ValidationError

from conftest import track


def test_clicks_accumulate(client):
    for _ in range(3):
        res = track(client, "u1", "click", "sports", articleTitle="Cup final", articleUrl="https://x/final")
        assert res.status_code == 200
        assert res.json() == {"success": True}

    body = client.get("/api/activity/u1").json()
    assert body["articleClicks"] == 3
    assert body["categoryViews"] == {"sports": 3}
    assert body["sessionCount"] == 0


def test_record_is_not_idempotent(client):
    track(client, "u2", "view", "technology")
    track(client, "u2", "view", "technology")
    track(client, "u2", "session")
    track(client, "u2", "session")

    body = client.get("/api/activity/u2").json()
    assert body["categoryViews"] == {"technology": 2}
    assert body["sessionCount"] == 2
    assert body["articleClicks"] == 0


def test_view_adds_to_prior_value(client):
    track(client, "u3", "view", "science")
    for _ in range(4):
        track(client, "u3", "click", "science")

    body = client.get("/api/activity/u3").json()
    assert body["categoryViews"]["science"] == 5
    assert body["articleClicks"] == 4


def test_click_log_defaults(client):
    track(client, "u4", "click", "health")
    items = client.get("/api/activity/u4/clicks").json()["items"]
    assert len(items) == 1
    assert items[0]["title"] == "Unknown"
    assert items[0]["url"] == ""
    assert items[0]["category"] == "health"


def test_missing_user_id_is_rejected_without_write(client, session_maker):
    res = client.post("/api/activity/track", json={"activityType": "click", "category": "sports"})
    assert res.status_code == 400
    assert res.json()["message"] == "User ID is required"

    async def count_rows():
        async with session_maker() as s:
            analytics = (await s.execute(select(func.count()).select_from(UserAnalytics))).scalar_one()
            clicks = (await s.execute(select(func.count()).select_from(ArticleClick))).scalar_one()
            return analytics, clicks

    assert asyncio.run(count_rows()) == (0, 0)


def test_invalid_events_are_rejected(client):
    assert track(client, "u5", "scroll").status_code == 400
    assert track(client, "u5", "view").status_code == 400
    assert track(client, "u5", "click", "gardening").status_code == 400
    assert client.get("/api/activity/u5").status_code == 404


def test_unknown_user_has_no_aggregate(client):
    res = client.get("/api/activity/nobody")
    assert res.status_code == 404


def test_concurrent_clicks_do_not_lose_updates(session_maker):
    async def one_click():
        async with session_maker() as s:
            await ActivityRecorder(s).record("busy", "click", category="business")

    async def scenario():
        await asyncio.gather(*(one_click() for _ in range(5)))
        async with session_maker() as s:
            return await ActivityRecorder(s).get_user_analytics("busy")

    data = asyncio.run(scenario())
    assert data["articleClicks"] == 5
    assert data["categoryViews"] == {"business": 5}


def test_recorder_validation_error_type(session_maker):
    async def scenario():
        async with session_maker() as s:
            await ActivityRecorder(s).record("", "session")

    with pytest.raises(ValidationError, match="User ID"):
        asyncio.run(scenario())


def test_last_active_follows_event_time(session_maker):
    first = datetime(2024, 5, 1, 8, 0, 0)
    later = datetime(2024, 5, 2, 9, 30, 0)

    async def scenario():
        async with session_maker() as s:
            recorder = ActivityRecorder(s)
            await recorder.record("timed", "session", at=first)
            await recorder.record("timed", "view", category="science", at=later)
        async with session_maker() as s:
            return await ActivityRecorder(s).get_user_analytics("timed")

    data = asyncio.run(scenario())
    assert data["lastActive"] == later
    assert data["sessionCount"] == 1


def test_store_failure_returns_500(client, db_engine):
    async def drop():
        async with db_engine.begin() as conn:
            await conn.execute(text("DROP TABLE user_analytics"))

    asyncio.run(drop())
    res = track(client, "u6", "click", "sports")
    assert res.status_code == 500
    assert res.json() == {"message": "Failed to track activity"}
    # other writes still go through
    ok = client.post("/api/user/preferences", json={"userId": "u6", "interests": ["sports"]})
    assert ok.status_code == 200


def test_session_is_usable_after_store_failure(db_engine, session_maker):
    async def scenario():
        async with db_engine.begin() as conn:
            await conn.execute(text("DROP TABLE user_analytics"))
        async with session_maker() as s:
            with pytest.raises(PersistenceError):
                await ActivityRecorder(s).record("u7", "session")
            prefs = await PreferenceStore(s).upsert("u7", ["health"])
            clicks = (await s.execute(select(func.count()).select_from(ArticleClick))).scalar_one()
            return prefs.interests, clicks

    assert asyncio.run(scenario()) == (["health"], 0)


def test_non_string_fields_get_the_same_error_shape(client):
    res = client.post("/api/activity/track", json={"userId": 42, "activityType": "session"})
    assert res.status_code == 400
    assert res.json() == {"message": "User ID is required"}
    res = client.post("/api/activity/track", json={"userId": "u8", "activityType": "view", "category": 7})
    assert res.status_code == 400
    assert "message" in res.json()


def test_upsert_needs_a_supported_dialect():
    bind = SimpleNamespace(dialect=SimpleNamespace(name="mysql"))
    session = SimpleNamespace(get_bind=lambda: bind)
    with pytest.raises(ValueError, match="mysql"):
        dialect_insert(session, UserAnalytics.__table__)
