from conftest import PASSWORD, auth


def test_login_with_email_returns_token(api, seed):
    resp = api.post("/api/auth/login", auth=("admin@example.com", PASSWORD))
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "admin"

    me = api.get("/api/auth/me", headers=auth(body["access_token"]))
    assert me.status_code == 200
    assert me.json()["email"] == "admin@example.com"


def test_login_with_username(api, seed):
    resp = api.post("/api/auth/login", auth=("ana.souza", PASSWORD))
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "client"


def test_wrong_password_is_rejected(api, seed):
    resp = api.post("/api/auth/login", auth=("admin@example.com", "wrong-password"))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Incorrect email or password"


def test_missing_token(api, seed):
    resp = api.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


def test_garbage_token(api, seed):
    resp = api.get("/api/trips", headers=auth("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Could not validate credentials"


def test_role_gating(api, seed):
    headers = seed["headers"]
    assert api.get("/api/finance/accounts", headers=headers["vendas"]).status_code == 403
    assert api.get("/api/finance/accounts", headers=headers["financeiro"]).status_code == 200
    assert api.get("/api/trips", headers=headers["client"]).status_code == 403
    assert api.get("/api/users", headers=headers["operacional"]).status_code == 403

    resp = api.get("/api/client/dashboard", headers=headers["admin"])
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Forbidden: Insufficient permissions"


def test_username_availability(api, seed):
    assert api.get("/api/auth/check-username/ana.souza").json()["available"] is False
    assert api.get("/api/auth/check-username/novo.nome").json()["available"] is True
    bad = api.get("/api/auth/check-username/9abc").json()
    assert bad["available"] is False
    assert bad["error"]


def test_username_suggestions_skip_taken(api, seed):
    resp = api.post("/api/auth/suggest-username", json={"name": "Ana Souza"})
    assert resp.status_code == 200
    suggestions = resp.json()["suggestions"]
    assert "ana.souza" not in suggestions
    assert "ana.souza2" in suggestions
