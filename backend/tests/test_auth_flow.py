from dataclasses import replace
from datetime import timedelta

from fastapi.testclient import TestClient

from conftest import auth_header, register
from fym.errors import StorageError
from fym.main import create_app
from fym.security import create_access_token
from fym.storage.memory import MemStorage


def test_register_then_login_returns_new_token(client):
    res = register(client, "alice@example.com", "password123")
    assert res.status_code == 201
    body = res.json()
    assert body["token"]
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["role"] == "individual"
    assert "password" not in res.text
    assert "passwordHash" not in body["user"]
    assert "refresh_token" in res.cookies

    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert login.status_code == 200
    assert login.json()["token"] != body["token"]
    assert "password" not in login.text


def test_register_duplicate_email(client):
    assert register(client, "dup@example.com").status_code == 201
    res = register(client, "dup@example.com")
    assert res.status_code == 400
    assert res.json() == {"message": "User already exists"}


def test_register_validation(client):
    res = client.post("/api/auth/register", json={"email": "not-an-email", "password": "short", "displayName": ""})
    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Invalid request data"
    assert body["details"]


def test_register_rejects_admin_role(client):
    res = register(client, "sneaky@example.com", role="admin")
    assert res.status_code == 400


def test_login_wrong_password_and_unknown_email_look_the_same(client):
    register(client, "bob@example.com", "password123")
    wrong = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "nope-nope"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "nope-nope"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"message": "Invalid credentials"}


def test_login_missing_fields(client):
    res = client.post("/api/auth/login", json={"email": "bob@example.com"})
    assert res.status_code == 400


def test_manager_login_needs_organization_code(client):
    register(client, "boss@example.com", "password123", role="manager")
    res = client.post("/api/auth/login", json={"email": "boss@example.com", "password": "password123"})
    assert res.status_code == 400
    res = client.post("/api/auth/login", json={
        "email": "boss@example.com", "password": "password123", "organizationCode": "ACME",
    })
    assert res.status_code == 200


def test_me_requires_token(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.json() == {"message": "Access token required"}


def test_me_with_token(client):
    token = register(client, "carol@example.com").json()["token"]
    res = client.get("/api/auth/me", headers=auth_header(token))
    assert res.status_code == 200
    assert res.json()["email"] == "carol@example.com"


def test_invalid_token(client):
    res = client.get("/api/auth/me", headers=auth_header("not.a.jwt"))
    assert res.status_code == 401
    assert res.json() == {"message": "Invalid token"}


def test_expired_token_is_signalled(client, settings):
    user = register(client, "dave@example.com").json()["user"]
    expired = create_access_token(
        {"sub": user["id"], "email": user["email"], "role": user["role"]},
        settings,
        expires_delta=timedelta(minutes=-1),
    )
    res = client.get("/api/auth/me", headers=auth_header(expired))
    assert res.status_code == 401
    assert res.json() == {"message": "Token expired"}
    assert 'error_description="expired"' in res.headers["www-authenticate"]


def test_token_signed_with_other_secret(client, settings):
    user = register(client, "erin@example.com").json()["user"]
    forged = create_access_token({"sub": user["id"]}, replace(settings, jwt_secret="other"))
    res = client.get("/api/auth/me", headers=auth_header(forged))
    assert res.status_code == 401
    assert res.json() == {"message": "Invalid token"}


def test_refresh_rotates_and_old_token_stops_working(client):
    register(client, "frank@example.com")
    old = client.cookies.get("refresh_token")
    assert old

    res = client.post("/api/auth/refresh")
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "frank@example.com"
    new = client.cookies.get("refresh_token")
    assert new and new != old

    client.cookies.clear()
    reuse = client.post("/api/auth/refresh", json={"refreshToken": old})
    assert reuse.status_code == 401

    again = client.post("/api/auth/refresh", json={"refreshToken": new})
    assert again.status_code == 200


def test_refresh_without_token(client):
    res = client.post("/api/auth/refresh")
    assert res.status_code == 401


def test_logout_is_idempotent(client):
    register(client, "gina@example.com")
    token = client.cookies.get("refresh_token")

    assert client.post("/api/auth/logout").status_code == 200
    assert client.post("/api/auth/logout").status_code == 200

    client.cookies.clear()
    res = client.post("/api/auth/refresh", json={"refreshToken": token})
    assert res.status_code == 401


class _RevokeFailsStorage(MemStorage):
    async def delete_refresh_token(self, token):
        raise StorageError("delete_refresh_token failed", detail="connection reset")


def test_logout_clears_cookie_when_revoke_fails(settings):
    app = create_app(settings=settings, storage=_RevokeFailsStorage())
    with TestClient(app) as client:
        register(client, "hank@example.com")
        assert client.cookies.get("refresh_token")

        res = client.post("/api/auth/logout")

    assert res.status_code == 200
    cleared = res.headers["set-cookie"]
    assert cleared.startswith("refresh_token=")
    assert "Max-Age=0" in cleared
