def test_register_returns_token_and_cookie(client):
    resp = client.post("/api/auth/register", json={"username": "maria", "password": "secret123"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["username"] == "maria"
    assert body["token"]
    assert resp.cookies.get("session_token") == body["token"]


def test_duplicate_username(client):
    client.post("/api/auth/register", json={"username": "maria", "password": "secret123"})
    resp = client.post("/api/auth/register", json={"username": "maria", "password": "other-pass"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "registration_failed"


def test_short_password(client):
    resp = client.post("/api/auth/register", json={"username": "maria", "password": "123"})
    assert resp.status_code == 400


def test_login(client):
    client.post("/api/auth/register", json={"username": "maria", "password": "secret123"})
    client.cookies.clear()

    bad = client.post("/api/auth/login", json={"username": "maria", "password": "wrong-pass"})
    assert bad.status_code == 401
    assert bad.json()["error"] == "invalid_credentials"

    good = client.post("/api/auth/login", json={"username": "maria", "password": "secret123"})
    assert good.status_code == 200
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {good.json()['token']}"})
    assert me.json()["user"]["username"] == "maria"


def test_cookie_session(client):
    client.post("/api/auth/register", json={"username": "maria", "password": "secret123"})
    assert client.get("/api/auth/me").status_code == 200


def test_logout_ends_session(auth_client):
    assert auth_client.get("/api/auth/me").status_code == 200
    assert auth_client.post("/api/auth/logout").status_code == 200
    auth_client.cookies.clear()

    resp = auth_client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json() == {"error": "unauthorized", "message": "Authentication required"}


def test_protected_routes_need_a_session(client):
    assert client.get("/api/lists").status_code == 401
    assert client.post("/api/lists/1/runs").status_code == 401
    assert client.get("/api/ai/quota").status_code == 401


def test_request_id_header(client):
    resp = client.get("/api/auth/me", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"
    assert client.get("/api/auth/me").headers["X-Request-ID"]
