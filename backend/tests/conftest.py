import os
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from fym.config import Settings
from fym.main import create_app
from fym.security import configure_password_hashing
from fym.storage.memory import MemStorage

# keep hashing cheap in tests
configure_password_hashing(1000)

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

ENGINES = ["memory", "sqlite"]
if TEST_DATABASE_URL:
    ENGINES.append("postgres")

FIXED_NOW = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(environment="test", jwt_secret="test-secret", password_hash_rounds=1000)


@pytest.fixture
def app(settings):
    return create_app(settings=settings, storage=MemStorage())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture(params=ENGINES)
async def storage_factory(request, tmp_path, anyio_backend):
    """Build initialized engines of one kind; everything is closed afterwards."""
    created = []

    async def build(clock=None):
        if request.param == "memory":
            storage = MemStorage(clock=clock)
        elif request.param == "sqlite":
            from fym.storage.sqlite import SqliteStorage
            storage = SqliteStorage(str(tmp_path / f"db{len(created)}.sqlite"), clock=clock)
        else:
            from fym.storage.postgres import PostgresStorage
            storage = PostgresStorage(TEST_DATABASE_URL, clock=clock)
            async with storage.engine.begin() as conn:
                await conn.run_sync(storage.t.metadata.drop_all)
        await storage.init()
        created.append(storage)
        return storage

    yield build
    for storage in created:
        await storage.close()


@pytest.fixture
async def storage(storage_factory):
    return await storage_factory()


def register(client, email, password="password123", display_name="Test User", role="individual"):
    return client.post("/api/auth/register", json={
        "email": email, "password": password, "displayName": display_name, "role": role,
    })


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    """Register a user and return (user, access token)."""
    counter = {"n": 0}

    def _make(role="individual", email=None):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        res = register(client, email, role=role, display_name=f"User {counter['n']}")
        assert res.status_code == 201, res.text
        body = res.json()
        return body["user"], body["token"]

    return _make
