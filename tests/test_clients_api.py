from core.use_cases.user_use_cases import register_user
from infrastructure.db.sqlite import SQLiteUserRepository
from infrastructure.web.dependencies import token_for


def test_client_crud_and_search(api, seed):
    sales = seed["headers"]["vendas"]
    resp = api.post("/api/clients", json={"name": "Marcos Pereira", "email": "marcos@example.com",
                                          "document": "98765432100"}, headers=sales)
    assert resp.status_code == 201
    client = resp.json()
    assert client["credits"] == 0.0
    assert client["client_type"] == "PESSOA_FISICA"

    assert [c["id"] for c in api.get("/api/clients", params={"search": "98765"}, headers=sales).json()] == [client["id"]]
    names = [c["name"] for c in api.get("/api/clients", headers=sales).json()]
    assert names == sorted(names)

    resp = api.put(f"/api/clients/{client['id']}", json={"phone": "1133334444", "credits": "12.50"}, headers=sales)
    assert resp.json()["phone"] == "1133334444"
    assert resp.json()["credits"] == 12.5

    assert api.delete(f"/api/clients/{client['id']}", headers=sales).status_code == 403
    assert api.delete(f"/api/clients/{client['id']}", headers=seed["headers"]["admin"]).status_code == 200
    assert api.get(f"/api/clients/{client['id']}", headers=sales).status_code == 404


def test_client_notes(api, seed):
    fin = seed["headers"]["financeiro"]
    client_id = seed["customer"].id
    resp = api.post(f"/api/clients/{client_id}/notes", json={"content": "Prefere poltrona na janela"}, headers=fin)
    assert resp.status_code == 201
    assert resp.json()["created_by"] == seed["users"]["financeiro"].id

    notes = api.get(f"/api/clients/{client_id}/notes", headers=fin).json()
    assert [n["content"] for n in notes] == ["Prefere poltrona na janela"]
    assert api.post(f"/api/clients/{client_id}/notes", json={"content": ""}, headers=fin).status_code == 422
    assert api.get("/api/clients/999/notes", headers=fin).status_code == 404


def test_clients_are_scoped_to_the_organization(api, seed, db):
    users = SQLiteUserRepository(db)
    other_org = users.create_organization("Outra Viação", "outra-viacao")
    outsider = register_user(users, email="outsider@example.com", password="secret123", role="admin",
                             organization_id=other_org.id)
    headers = {"Authorization": f"Bearer {token_for(outsider)}"}

    assert api.get("/api/clients", headers=headers).json() == []
    assert api.get(f"/api/clients/{seed['customer'].id}", headers=headers).status_code == 404
