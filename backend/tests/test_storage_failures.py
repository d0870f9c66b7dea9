import logging
import sqlite3

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from conftest import auth_header, register
from fym.config import Settings
from fym.errors import StorageError
from fym.main import create_app
from fym.models import NewMoodEntry, NewUser
from fym.storage.sqlite import SqliteStorage


@pytest.fixture
async def sqlite_storage(tmp_path, anyio_backend):
    storage = SqliteStorage(str(tmp_path / "db.sqlite"))
    await storage.init()
    yield storage
    await storage.close()


async def _drop(storage, table):
    async with storage.engine.begin() as conn:
        await conn.execute(text(f"DROP TABLE {table}"))


@pytest.mark.anyio
async def test_read_failure_is_empty(sqlite_storage, caplog):
    user = await sqlite_storage.create_user(NewUser(email="r@example.com", password="password123",
                                                    display_name="R"))
    await _drop(sqlite_storage, "mood_entries")
    await _drop(sqlite_storage, "journals")

    with caplog.at_level(logging.ERROR, logger="fym.storage.sql"):
        assert await sqlite_storage.get_user_mood_entries(user.id) == []
        assert await sqlite_storage.get_journal("missing") is None

    assert "[sqlite_storage] get_user_mood_entries failed" in caplog.text
    assert "[sqlite_storage] get_journal failed" in caplog.text


@pytest.mark.anyio
async def test_write_failure_raises_storage_error(sqlite_storage):
    user = await sqlite_storage.create_user(NewUser(email="w@example.com", password="password123",
                                                    display_name="W"))
    await _drop(sqlite_storage, "mood_entries")

    with pytest.raises(StorageError) as exc:
        await sqlite_storage.create_mood_entry(NewMoodEntry(user_id=user.id, mood_score=3))
    assert "no such table: mood_entries" in exc.value.detail


@pytest.mark.anyio
async def test_failed_signup_leaves_no_user_behind(sqlite_storage):
    await _drop(sqlite_storage, "wellness_assessments")

    with pytest.raises(StorageError):
        await sqlite_storage.create_user(NewUser(email="half@example.com", password="password123",
                                                 display_name="Half"))
    assert await sqlite_storage.get_user_by_email("half@example.com") is None


def _broken_journal_client(tmp_path, environment):
    path = tmp_path / "db.sqlite"
    settings = Settings(environment=environment, jwt_secret="test-secret", password_hash_rounds=1000)
    return path, TestClient(create_app(settings=settings, storage=SqliteStorage(str(path))))


@pytest.mark.parametrize("environment, shows_error", [("production", False), ("development", True)])
def test_500_driver_message_only_outside_production(tmp_path, environment, shows_error):
    path, client = _broken_journal_client(tmp_path, environment)
    with client:
        token = register(client, "broken@example.com").json()["token"]
        with sqlite3.connect(path) as conn:
            conn.execute("DROP TABLE journals")

        res = client.post("/api/journals", json={"content": "hello"}, headers=auth_header(token))

    assert res.status_code == 500
    body = res.json()
    assert body["message"] == "Internal server error"
    if shows_error:
        assert "no such table: journals" in body["error"]
    else:
        assert "error" not in body
        assert "journals" not in res.text


def test_signup_retry_after_failure_succeeds(tmp_path):
    path, client = _broken_journal_client(tmp_path, "development")
    with client:
        with sqlite3.connect(path) as conn:
            conn.execute("ALTER TABLE wellness_assessments RENAME TO wellness_assessments_off")

        assert register(client, "retry@example.com").status_code == 500

        with sqlite3.connect(path) as conn:
            conn.execute("ALTER TABLE wellness_assessments_off RENAME TO wellness_assessments")

        res = register(client, "retry@example.com")
        assert res.status_code == 201, res.text
