from conftest import auth_header, register


def test_profile_update(client, make_user):
    user, token = make_user()
    res = client.put("/api/user/profile", json={"displayName": "Renamed", "timezone": "Europe/Berlin"},
                     headers=auth_header(token))
    assert res.status_code == 200
    body = res.json()
    assert body["displayName"] == "Renamed"
    assert body["timezone"] == "Europe/Berlin"
    assert body["email"] == user["email"]
    assert "password" not in res.text

    assert client.put("/api/user/profile", json={}, headers=auth_header(token)).status_code == 400


def test_profile_email_taken(client, make_user):
    other, _ = make_user()
    _, token = make_user()
    res = client.put("/api/user/profile", json={"email": other["email"]}, headers=auth_header(token))
    assert res.status_code == 400


def test_change_password(client):
    token = register(client, "pw@example.com", "password123").json()["token"]

    wrong = client.patch("/api/user/password", json={"currentPassword": "nope", "newPassword": "newpassword1"},
                         headers=auth_header(token))
    assert wrong.status_code == 400

    res = client.patch("/api/user/password", json={"currentPassword": "password123", "newPassword": "newpassword1"},
                       headers=auth_header(token))
    assert res.status_code == 200
    assert res.json()["requiresReauthentication"] is True

    assert client.post("/api/auth/login", json={"email": "pw@example.com", "password": "password123"}).status_code == 401
    assert client.post("/api/auth/login", json={"email": "pw@example.com", "password": "newpassword1"}).status_code == 200


def test_delete_account(client, app):
    body = register(client, "bye@example.com", "password123").json()
    token = body["token"]
    client.post("/api/journals", json={"content": "x"}, headers=auth_header(token))

    wrong = client.request("DELETE", "/api/user/account", json={"password": "nope"}, headers=auth_header(token))
    assert wrong.status_code == 400

    res = client.request("DELETE", "/api/user/account", json={"password": "password123"}, headers=auth_header(token))
    assert res.status_code == 200

    storage = app.state.storage
    assert body["user"]["id"] not in storage.users
    assert not [j for j in storage.journals.values() if j.user_id == body["user"]["id"]]
    # token still verifies by signature but the user is gone
    assert client.get("/api/auth/me", headers=auth_header(token)).status_code == 401


def test_notification_preferences(client, make_user):
    _, token = make_user()
    defaults = client.get("/api/notifications/preferences", headers=auth_header(token)).json()
    assert defaults == {"emailReminders": True, "moodCheckIns": True, "weeklyReport": True, "buddyRequests": True}

    res = client.put("/api/notifications/preferences", json={"weeklyReport": False}, headers=auth_header(token))
    assert res.status_code == 200
    stored = client.get("/api/notifications/preferences", headers=auth_header(token)).json()
    assert stored["weeklyReport"] is False
    assert stored["emailReminders"] is True

    profile = client.get("/api/user/profile", headers=auth_header(token)).json()
    assert profile["preferences"]["notifications"]["weeklyReport"] is False


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["storage"] == "memory"
    assert client.get("/healthz").text == "OK"
    assert client.get("/ready").json()["ready"] is True
