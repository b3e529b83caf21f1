import pytest

OWNER_USER = "baker"
OWNER_PASSWORD = "secret"


def test_health_is_public(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True}


def test_login_and_me(client):
    resp = client.post("/api/auth/login",
                       json={"username": OWNER_USER, "password": OWNER_PASSWORD})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is True
    assert data["user"]["username"] == OWNER_USER
    assert "password_hash" not in data["user"]

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.get_json()["username"] == OWNER_USER


def test_login_with_form_fields(client):
    resp = client.post("/api/auth/login",
                       data={"username": OWNER_USER, "password": OWNER_PASSWORD})
    assert resp.status_code == 200


def test_wrong_password_rejected(client):
    resp = client.post("/api/auth/login",
                       json={"username": OWNER_USER, "password": "nope"})
    assert resp.status_code == 401


def test_logout_ends_session(auth_client):
    assert auth_client.post("/api/auth/logout").status_code == 200
    assert auth_client.get("/api/auth/me").status_code == 401


@pytest.mark.parametrize("method, url", [
    ("post", "/api/import/orders"),
    ("post", "/api/import/quotes"),
    ("post", "/api/import/order-items"),
    ("post", "/api/import/contacts"),
    ("post", "/api/expenses-import"),
    ("post", "/api/data/import"),
    ("post", "/api/data/import/json"),
    ("get", "/api/data/import/fields"),
    ("get", "/api/recipes/1/cost"),
    ("get", "/api/data/export"),
    ("get", "/api/data/export/orders"),
    ("post", "/api/ingredients/import"),
])
def test_owner_routes_require_login(client, method, url):
    resp = getattr(client, method)(url)
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "authentication required"}
