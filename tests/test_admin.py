import asyncio
from datetime import datetime, timedelta

from sqlalchemy import text

from app.api.activity.models import ArticleClick
from app.api.activity.service import ActivityRecorder
from app.api.admin.service import (
    AnalyticsAggregator,
    interest_correlations,
    percent,
    popular_categories,
    top_articles,
)
from app.api.user.models import UserPreferences

from conftest import login_admin, track


# ---------------- helpers ----------------
def test_percent_rounds_half_up_and_handles_zero_total():
    assert percent(1, 8) == 13
    assert percent(1, 3) == 33
    assert percent(3, 3) == 100
    assert percent(5, 0) == 0


def test_popular_categories_percentages_sum_to_about_100():
    rows = popular_categories({
        "a": {"sports": 3, "health": 1},
        "b": {"science": 1, "sports": 2},
        "c": {"business": 2},
    })
    assert [r["category"] for r in rows][0] == "sports"
    assert abs(sum(r["percentage"] for r in rows) - 100) <= 1


def test_top_articles_groups_by_title_and_url():
    base = datetime(2024, 5, 1, 12, 0, 0)
    clicks = []
    for i in range(12):
        for j in range(i + 1):
            clicks.append(ArticleClick(
                user_id="u", title=f"t{i}", url=f"https://x/{i}", category="sports",
                clicked_at=base + timedelta(minutes=j),
            ))
    rows = top_articles(clicks)
    assert len(rows) == 10
    counts = [r["clickCount"] for r in rows]
    assert counts == sorted(counts, reverse=True)
    assert rows[0]["title"] == "t11"
    assert rows[0]["clickCount"] == 12
    assert rows[0]["lastClicked"] == base + timedelta(minutes=11)


def test_interest_correlations():
    prefs = [
        UserPreferences(user_id="a", interests=["sports", "health"]),
        UserPreferences(user_id="b", interests=["sports"]),
        UserPreferences(user_id="c", interests=["science"]),
    ]
    rows = interest_correlations(
        prefs,
        clicks_by_user={"a": 4, "b": 1},
        views_by_user={"a": {"sports": 2, "business": 1}, "b": {"business": 3}},
    )
    assert rows[0] == {
        "interest": "sports",
        "userCount": 2,
        "avgArticleClicks": 2.5,
        "mostViewedCategory": "business",
    }
    science = next(r for r in rows if r["interest"] == "science")
    assert science["mostViewedCategory"] == "none"
    assert science["avgArticleClicks"] == 0


# ---------------- endpoint ----------------
def test_analytics_requires_login(client):
    assert client.get("/api/admin/analytics").status_code == 401


def test_analytics_requires_admin_role(client):
    client.post("/api/user", json={"name": "Reader", "email": "reader@example.com", "password": "pw"})
    assert client.post("/api/auth/login", json={"email": "reader@example.com", "password": "pw"}).status_code == 200
    res = client.get("/api/admin/analytics")
    assert res.status_code == 403
    assert res.json() == {"message": "Unauthorized"}


def test_three_sports_clicks_end_to_end(client):
    for _ in range(3):
        track(client, "u1", "click", "sports", articleTitle="Derby", articleUrl="https://x/derby")
    login_admin(client)

    res = client.get("/api/admin/analytics")
    assert res.status_code == 200
    body = res.json()
    assert body["popularCategories"] == [{"category": "sports", "count": 3, "percentage": 100}]
    assert body["topArticles"][0]["clickCount"] == 3
    assert body["totalArticleClicks"] == 3

    row = next(r for r in body["userAnalyticsWithUserInfo"] if r["userId"] == "u1")
    assert row["articleClicks"] == 3
    assert row["categoryViews"] == {"sports": 3}
    assert row["user"] is None
    assert len(body["userArticleClicks"]["u1"]) == 3


def test_analytics_sections(client):
    admin = login_admin(client)
    client.post("/api/user/preferences", json={"userId": "p1", "interests": ["sports", "science"]})
    client.post("/api/user/preferences", json={"userId": "p2", "interests": ["sports"]})
    track(client, admin["id"], "session")
    track(client, "p1", "session")
    track(client, "p1", "session")

    body = client.get("/api/admin/analytics").json()
    assert body["userCount"] == 1
    popularity = {r["interest"]: r for r in body["interestPopularity"]}
    # admin seed stores its own interests too: 3 preference rows in total
    assert popularity["sports"] == {"interest": "sports", "count": 2, "percentage": 67}
    assert body["interestCorrelations"][0]["interest"] == "sports"
    assert body["mostActiveUsers"][0]["userId"] == "p1"
    assert body["averageSessionCount"] == 1.5

    admin_row = next(r for r in body["userAnalyticsWithUserInfo"] if r["userId"] == admin["id"])
    assert admin_row["user"]["email"] == "admin@example.com"
    assert admin_row["user"]["role"] == "admin"


def test_missing_click_log_degrades_only_click_sections(client, db_engine, session_maker):
    track(client, "u1", "view", "health")

    async def scenario():
        async with db_engine.begin() as conn:
            await conn.execute(text("DROP TABLE article_clicks"))
        async with session_maker() as s:
            return await AnalyticsAggregator(s).compute_analytics()

    summary = asyncio.run(scenario())
    assert summary["topArticles"] == []
    assert summary["userArticleClicks"] == {}
    assert summary["popularCategories"] == [{"category": "health", "count": 1, "percentage": 100}]
    assert [r["userId"] for r in summary["userAnalyticsWithUserInfo"]] == ["u1"]
    assert summary["userAnalyticsWithUserInfo"][0]["categoryViews"] == {"health": 1}


def test_admin_users_listing(client, session_maker):
    admin = login_admin(client)

    async def activity():
        async with session_maker() as s:
            await ActivityRecorder(s).record(admin["id"], "view", category="business")

    asyncio.run(activity())
    users = client.get("/api/admin/users").json()["users"]
    assert len(users) == 1
    assert "password" not in users[0]
    assert users[0]["preferences"]["interests"] == ["technology", "business", "politics"]
    assert users[0]["analytics"]["categoryViews"] == {"business": 1}


def test_seed_is_idempotent_and_checks_key(client):
    assert client.post("/api/admin/seed", json={"secretKey": "wrong"}).status_code == 401
    first = client.post("/api/admin/seed", json={"secretKey": "test-seed-key"})
    assert first.status_code == 201
    second = client.post("/api/admin/seed", json={"secretKey": "test-seed-key"})
    assert second.status_code == 200
    assert second.json()["email"] == "admin@example.com"
