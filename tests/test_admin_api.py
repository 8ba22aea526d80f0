def test_user_crud(api, seed):
    admin = seed["headers"]["admin"]
    resp = api.post("/api/users", json={"email": "New.Seller@Example.com", "password": "secret123",
                                        "role": "vendas", "username": "new.seller"}, headers=admin)
    assert resp.status_code == 201, resp.text
    user = resp.json()
    assert user["email"] == "new.seller@example.com"
    assert user["organization_id"] == seed["org"].id

    resp = api.put(f"/api/users/{user['id']}", json={"name": "Vendedor"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Vendedor"

    emails = [u["email"] for u in api.get("/api/users", headers=admin).json()]
    assert "new.seller@example.com" in emails

    assert api.delete(f"/api/users/{user['id']}", headers=admin).status_code == 200
    assert api.get(f"/api/users/{user['id']}", headers=admin).status_code == 404


def test_duplicate_email_is_a_business_error(api, seed):
    resp = api.post("/api/users", json={"email": "vendas@example.com", "password": "secret123"},
                    headers=seed["headers"]["admin"])
    assert resp.status_code == 400


def test_admin_cannot_delete_self(api, seed):
    admin_id = seed["users"]["admin"].id
    resp = api.delete(f"/api/users/{admin_id}", headers=seed["headers"]["admin"])
    assert resp.status_code == 400


def test_organizations(api, seed):
    admin = seed["headers"]["admin"]
    resp = api.post("/api/admin/organizations", json={"name": "Expresso Sul Ltda"}, headers=admin)
    assert resp.status_code == 201
    org = resp.json()
    assert org["slug"] == "expresso-sul-ltda"

    dup = api.post("/api/admin/organizations", json={"name": "Outra", "slug": "expresso-sul-ltda"}, headers=admin)
    assert dup.status_code == 409

    resp = api.put(f"/api/admin/organizations/{org['id']}", json={"name": "Expresso Sul"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Expresso Sul"
    assert api.get("/api/admin/organizations/9999", headers=admin).status_code == 404


def test_mutations_are_audited(api, seed, make_trip):
    trip = make_trip()
    logs = api.get("/api/admin/audit-logs", headers=seed["headers"]["admin"]).json()
    created = [log for log in logs if log["action"] == "TRIP_CREATE"]
    assert created
    assert created[0]["entity_id"] == str(trip["id"])
    assert created[0]["user_id"] == seed["users"]["admin"].id
    assert created[0]["new_data"]["trip_code"] == trip["trip_code"]
