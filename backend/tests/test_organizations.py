from conftest import auth_header
from fym.storage.seed import DEMO_USERS


def _login_demo(client, role):
    email, password, _, _ = next(u for u in DEMO_USERS if u[3] == role)
    res = client.post("/api/auth/login", json={"email": email, "password": password, "organizationCode": "DEMO"})
    assert res.status_code == 200, res.text
    return res.json()["token"]


def test_admin_can_create_organization(client):
    token = _login_demo(client, "admin")
    res = client.post("/api/organizations", json={"name": "Acme"}, headers=auth_header(token))
    assert res.status_code == 201
    org = res.json()
    assert org["name"] == "Acme"
    assert org["settings"]["allowAnonymousRants"] is True

    fetched = client.get(f"/api/organizations/{org['id']}", headers=auth_header(token))
    assert fetched.status_code == 200

    updated = client.put(f"/api/organizations/{org['id']}", json={"wellnessScore": 7.2},
                         headers=auth_header(token))
    assert updated.json()["wellnessScore"] == 7.2
    assert updated.json()["name"] == "Acme"


def test_individual_gets_403(client, make_user):
    _, token = make_user()
    res = client.post("/api/organizations", json={"name": "Nope"}, headers=auth_header(token))
    assert res.status_code == 403
    assert res.json() == {"message": "Insufficient permissions"}
    assert client.get("/api/admin/wellness-metrics/anything", headers=auth_header(token)).status_code == 403


def test_manager_cannot_create_but_can_manage(client, make_user):
    admin = _login_demo(client, "admin")
    manager = _login_demo(client, "manager")
    assert client.post("/api/organizations", json={"name": "X"}, headers=auth_header(manager)).status_code == 403

    org_id = client.post("/api/organizations", json={"name": "Team"}, headers=auth_header(admin)).json()["id"]
    employee, _ = make_user()

    added = client.post(f"/api/organizations/{org_id}/employees",
                        json={"userId": employee["id"], "department": "Ops"}, headers=auth_header(manager))
    assert added.status_code == 201
    assert added.json()["anonymizedId"]

    listing = client.get(f"/api/organizations/{org_id}/employees", headers=auth_header(manager)).json()
    assert [e["userId"] for e in listing] == [employee["id"]]

    missing_user = client.post(f"/api/organizations/{org_id}/employees", json={"userId": "ghost"},
                               headers=auth_header(manager))
    assert missing_user.status_code == 404
    missing_org = client.get("/api/organizations/ghost", headers=auth_header(manager))
    assert missing_org.status_code == 404


def test_wellness_metrics(client, make_user):
    admin = _login_demo(client, "admin")
    org_id = client.post("/api/organizations", json={"name": "Metrics"}, headers=auth_header(admin)).json()["id"]
    employee, employee_token = make_user()
    client.post(f"/api/organizations/{org_id}/employees",
                json={"userId": employee["id"], "department": "Ops"}, headers=auth_header(admin))
    client.post("/api/mood", json={"moodScore": 4}, headers=auth_header(employee_token))

    res = client.get(f"/api/admin/wellness-metrics/{org_id}", headers=auth_header(admin))
    assert res.status_code == 200
    metrics = res.json()
    assert metrics["employeeCount"] == 1
    assert metrics["teamWellness"] == 8.0
    assert metrics["sessionsThisWeek"] == 1
    assert metrics["departments"] == [{"name": "Ops", "average": 8.0, "status": "good", "employeeCount": 1}]
    assert employee["id"] not in res.text

    assert client.get("/api/admin/wellness-metrics/ghost", headers=auth_header(admin)).status_code == 404
