from conftest import auth_header


def test_rant_without_auth_carries_no_user_reference(client, app, make_user):
    user, token = make_user()

    # even with a token attached nothing about the caller is kept
    res = client.post("/api/rants", json={"content": "so tired of meetings"}, headers=auth_header(token))
    assert res.status_code == 201
    body = res.json()
    assert set(body) == {"id", "content", "sentimentScore", "supportCount", "createdAt"}

    stored = app.state.storage.rants[body["id"]]
    dumped = stored.model_dump_json()
    assert user["id"] not in dumped
    assert user["email"] not in dumped
    assert not hasattr(stored, "user_id")


def test_list_and_support(client):
    created = client.post("/api/rants", json={"content": "venting"}).json()

    listing = client.get("/api/rants")
    assert listing.status_code == 200
    rants = listing.json()
    assert rants[0]["id"] == created["id"]
    assert all("anonymousToken" not in r for r in rants)

    assert client.post(f"/api/rants/{created['id']}/support").status_code == 200
    rants = {r["id"]: r for r in client.get("/api/rants").json()}
    assert rants[created["id"]]["supportCount"] == 1

    assert client.post("/api/rants/nope/support").status_code == 404


def test_empty_rant_rejected(client):
    assert client.post("/api/rants", json={"content": ""}).status_code == 400
