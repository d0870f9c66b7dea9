from datetime import datetime, timedelta, timezone

from conftest import auth_header
from fym.models import MoodEntry
from fym.services.mood_service import mood_stats


def test_mood_entry_in_window(client, make_user):
    _, token = make_user()
    res = client.post("/api/mood", json={"moodScore": 4, "notes": "decent"}, headers=auth_header(token))
    assert res.status_code == 201
    entry_id = res.json()["id"]

    listing = client.get("/api/mood", params={"days": 30}, headers=auth_header(token)).json()
    assert [e["id"] for e in listing] == [entry_id]


def test_mood_entry_validation(client, make_user):
    _, token = make_user()
    assert client.post("/api/mood", json={"moodScore": 9}, headers=auth_header(token)).status_code == 400
    assert client.get("/api/mood", params={"days": -1}, headers=auth_header(token)).status_code == 400


def test_mood_stats_endpoint(client, make_user):
    _, token = make_user()
    empty = client.get("/api/mood/stats", headers=auth_header(token)).json()
    assert empty["average"] is None
    assert empty["trend"] == "neutral"
    assert empty["totalEntries"] == 0

    for score in (2, 4):
        client.post("/api/mood", json={"moodScore": score}, headers=auth_header(token))
    stats = client.get("/api/mood/stats", headers=auth_header(token)).json()
    assert stats["average"] == 3.0
    assert stats["bestMood"] == 4
    assert stats["worstMood"] == 2
    assert stats["totalEntries"] == 2


def _entries(*scores):
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    # newest first, like the storage returns them
    entries = [
        MoodEntry(id=str(i), user_id="u", mood_score=s, created_at=start + timedelta(days=i))
        for i, s in enumerate(scores)
    ]
    return list(reversed(entries))


def test_trend_improving():
    assert mood_stats(_entries(1, 2, 4, 5))["trend"] == "improving"


def test_trend_declining():
    assert mood_stats(_entries(5, 5, 2, 1))["trend"] == "declining"


def test_trend_within_margin_is_neutral():
    stats = mood_stats(_entries(3, 3, 3, 3))
    assert stats["trend"] == "neutral"
    assert stats["days_tracked"] == 4
