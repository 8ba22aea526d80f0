def test_vehicle_crud(api, seed, make_vehicle):
    ops = seed["headers"]["operacional"]
    vehicle = make_vehicle(plate=" xyz9k88 ")
    assert vehicle["plate"] == "XYZ9K88"
    assert vehicle["status"] == "ACTIVE"

    resp = api.put(f"/api/fleet/vehicles/{vehicle['id']}", json={"current_km": 120500}, headers=ops)
    assert resp.status_code == 200
    assert resp.json()["current_km"] == 120500

    assert api.put(f"/api/fleet/vehicles/{vehicle['id']}", json={"status": "FLYING"}, headers=ops).status_code == 400
    assert api.post("/api/fleet/vehicles", json={"plate": "  ", "model": "Van"}, headers=ops).status_code == 400
    assert api.get("/api/fleet/vehicles", headers=seed["headers"]["vendas"]).status_code == 403

    assert api.delete(f"/api/fleet/vehicles/{vehicle['id']}", headers=ops).status_code == 200
    assert api.get(f"/api/fleet/vehicles/{vehicle['id']}", headers=ops).status_code == 404


def test_driver_crud(api, seed):
    ops = seed["headers"]["operacional"]
    resp = api.post("/api/fleet/drivers", json={"name": "José Motorista", "license_category": "D"}, headers=ops)
    assert resp.status_code == 201
    driver = resp.json()
    assert driver["status"] == "ACTIVE"

    resp = api.put(f"/api/fleet/drivers/{driver['id']}", json={"status": "ON_LEAVE"}, headers=ops)
    assert resp.json()["status"] == "ON_LEAVE"
    assert [d["name"] for d in api.get("/api/fleet/drivers", headers=ops).json()] == ["José Motorista"]
    assert api.delete(f"/api/fleet/drivers/{driver['id']}", headers=ops).status_code == 200
    assert api.put(f"/api/fleet/drivers/{driver['id']}", json={"name": "x"}, headers=ops).status_code == 404


def maintenance_txs(api, seed, maintenance_id):
    rows = api.get("/api/finance/transactions", headers=seed["headers"]["financeiro"]).json()
    return [t for t in rows if t["maintenance_id"] == maintenance_id]


def test_maintenance_moves_vehicle_and_books_expense(api, seed, make_vehicle):
    ops = seed["headers"]["operacional"]
    vehicle = make_vehicle(current_km=100000)
    resp = api.post("/api/maintenance", json={
        "vehicle_id": vehicle["id"], "scheduled_date": "2030-03-01", "type": "CORRECTIVE",
        "status": "IN_PROGRESS", "description": "Troca de embreagem", "cost_parts": "300", "cost_labor": "200",
    }, headers=ops)
    assert resp.status_code == 201, resp.text
    maintenance = resp.json()
    assert maintenance["total_cost"] == 500.0
    assert api.get(f"/api/fleet/vehicles/{vehicle['id']}", headers=ops).json()["status"] == "MAINTENANCE"

    txs = maintenance_txs(api, seed, maintenance["id"])
    assert len(txs) == 1
    assert txs[0]["type"] == "EXPENSE"
    assert txs[0]["status"] == "PENDING"
    assert txs[0]["amount"] == 500.0
    assert txs[0]["accounting_classification"] == "CUSTO_VARIAVEL"

    resp = api.put(f"/api/maintenance/{maintenance['id']}",
                   json={"status": "COMPLETED", "km": 100350, "cost_labor": "250"}, headers=ops)
    assert resp.status_code == 200
    current = api.get(f"/api/fleet/vehicles/{vehicle['id']}", headers=ops).json()
    assert current["status"] == "ACTIVE"
    assert current["current_km"] == 100350

    txs = maintenance_txs(api, seed, maintenance["id"])
    assert txs[0]["status"] == "PAID"
    assert txs[0]["amount"] == 550.0
    assert txs[0]["payment_date"] is not None


def test_cancelled_maintenance_cancels_its_expense(api, seed, make_vehicle):
    ops = seed["headers"]["operacional"]
    vehicle = make_vehicle()
    maintenance = api.post("/api/maintenance", json={
        "vehicle_id": vehicle["id"], "scheduled_date": "2030-03-01", "cost_parts": "100",
    }, headers=ops).json()
    assert maintenance["status"] == "SCHEDULED"
    api.put(f"/api/maintenance/{maintenance['id']}", json={"status": "CANCELLED"}, headers=ops)
    assert [t["status"] for t in maintenance_txs(api, seed, maintenance["id"])] == ["CANCELLED"]


def test_maintenance_roles_and_validation(api, seed, make_vehicle):
    fin = seed["headers"]["financeiro"]
    vehicle = make_vehicle()
    body = {"vehicle_id": vehicle["id"], "scheduled_date": "2030-03-01"}
    assert api.post("/api/maintenance", json=body, headers=fin).status_code == 403
    assert api.get("/api/maintenance", headers=fin).status_code == 200

    admin = seed["headers"]["admin"]
    assert api.post("/api/maintenance", json={**body, "vehicle_id": 999}, headers=admin).status_code == 400
    assert api.post("/api/maintenance", json={**body, "type": "MAGIC"}, headers=admin).status_code == 400

    created = api.post("/api/maintenance", json=body, headers=admin).json()
    listed = api.get(f"/api/maintenance?vehicle_id={vehicle['id']}", headers=fin).json()
    assert [m["id"] for m in listed] == [created["id"]]
    # no cost, no expense
    assert maintenance_txs(api, seed, created["id"]) == []
    assert api.delete(f"/api/maintenance/{created['id']}", headers=admin).status_code == 200
    assert api.delete(f"/api/maintenance/{created['id']}", headers=admin).status_code == 404


def test_completing_maintenance_pays_from_the_linked_account(api, seed, make_vehicle):
    ops, fin = seed["headers"]["operacional"], seed["headers"]["financeiro"]
    account = api.post("/api/finance/accounts", json={"name": "Oficina", "initial_balance": "1000"},
                       headers=fin).json()
    vehicle = make_vehicle()
    maintenance = api.post("/api/maintenance", json={
        "vehicle_id": vehicle["id"], "scheduled_date": "2030-03-01", "cost_parts": "500",
    }, headers=ops).json()
    expense = maintenance_txs(api, seed, maintenance["id"])[0]
    resp = api.put(f"/api/finance/transactions/{expense['id']}", json={"bank_account_id": account["id"]},
                   headers=fin)
    assert resp.status_code == 200

    def balance():
        rows = api.get("/api/finance/accounts", headers=fin).json()
        return next(a for a in rows if a["id"] == account["id"])["current_balance"]

    assert balance() == 1000.0
    api.put(f"/api/maintenance/{maintenance['id']}", json={"status": "COMPLETED"}, headers=ops)
    assert maintenance_txs(api, seed, maintenance["id"])[0]["status"] == "PAID"
    assert balance() == 500.0

    # cancelling afterwards takes the payment back out of the account
    api.put(f"/api/maintenance/{maintenance['id']}", json={"status": "CANCELLED"}, headers=ops)
    assert balance() == 1000.0
