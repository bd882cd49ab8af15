def test_health(anon_client):
    assert anon_client.get("/health").status_code == 200


def test_login_wrong_password(anon_client):
    r = anon_client.post("/login", data={"username": "admin", "password": "nope"})
    assert r.status_code == 401


def test_login_returns_identity(anon_client):
    r = anon_client.post("/login", data={"username": "technik", "password": "technik123"})
    assert r.status_code == 200
    assert r.json()["role"] == "manager"


def test_api_requires_session(anon_client):
    assert anon_client.get("/api/items").status_code == 401
    assert anon_client.get("/api/notifications").status_code == 401


def test_logout_ends_session(user_client):
    assert user_client.get("/api/items").status_code == 200
    user_client.get("/logout")
    assert user_client.get("/api/items").status_code == 401


def test_security_headers(anon_client):
    r = anon_client.get("/health")
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
