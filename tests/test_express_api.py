import pytest

from core.entities.user import Role
from core.use_cases.user_use_cases import register_user
from infrastructure.db.sqlite import SQLiteUserRepository
from infrastructure.web.dependencies import token_for


@pytest.fixture()
def fin(seed):
    return seed["headers"]["financeiro"]


def parcel_body(**overrides):
    body = {
        "sender_name": "Marta Ribeiro",
        "sender_phone": "+55 11 98888-0000",
        "recipient_name": "Carlos Lima",
        "origin_city": "São Paulo",
        "origin_state": "SP",
        "destination_city": "Rio de Janeiro",
        "destination_state": "RJ",
        "description": "Caixa de documentos",
        "weight": "2.5",
        "price": "35.50",
    }
    body.update(overrides)
    return body


def charter_body(**overrides):
    body = {
        "contact_name": "Escola Aurora",
        "contact_email": "eventos@aurora.example.com",
        "origin_city": "Campinas",
        "destination_city": "Santos",
        "departure_date": "2030-03-10",
        "return_date": "2030-03-11",
        "passenger_count": 30,
    }
    body.update(overrides)
    return body


def ledger(api, fin, key, row_id):
    rows = api.get("/api/finance/transactions", headers=fin).json()
    return sorted((t for t in rows if t[key] == row_id), key=lambda t: t["id"])


def test_parcel_crud_books_freight(api, seed, fin, make_trip):
    ops = seed["headers"]["operacional"]
    trip = make_trip()
    resp = api.post("/api/parcels", json=parcel_body(trip_id=trip["id"], client_id=seed["customer"].id),
                    headers=ops)
    assert resp.status_code == 201, resp.text
    parcel = resp.json()
    assert parcel["tracking_code"].startswith("P-")
    assert len(parcel["tracking_code"]) == 8
    assert parcel["status"] == "AWAITING"
    assert parcel["price"] == 35.5
    assert parcel["weight"] == 2.5

    [freight] = ledger(api, fin, "parcel_id", parcel["id"])
    assert freight["type"] == "INCOME"
    assert freight["status"] == "PENDING"
    assert freight["amount"] == 35.5
    assert freight["category"] == "ENCOMENDA"
    assert freight["trip_id"] == trip["id"]
    assert freight["client_id"] == seed["customer"].id
    assert freight["description"] == f"Encomenda: {parcel['tracking_code']}"

    resp = api.put(f"/api/parcels/{parcel['id']}", json={"status": "IN_TRANSIT", "price": "40"}, headers=ops)
    assert resp.status_code == 200
    assert resp.json()["status"] == "IN_TRANSIT"
    assert [t["amount"] for t in ledger(api, fin, "parcel_id", parcel["id"])] == [40.0]

    assert [p["id"] for p in api.get("/api/parcels?recipient_name=carlos", headers=ops).json()] == [parcel["id"]]
    assert api.get("/api/parcels?status=DELIVERED", headers=ops).json() == []
    assert api.get(f"/api/parcels/{parcel['id']}", headers=seed["headers"]["vendas"]).status_code == 200

    api.put(f"/api/parcels/{parcel['id']}", json={"status": "CANCELLED"}, headers=ops)
    assert [t["status"] for t in ledger(api, fin, "parcel_id", parcel["id"])] == ["CANCELLED"]

    assert api.delete(f"/api/parcels/{parcel['id']}", headers=seed["headers"]["vendas"]).status_code == 403
    assert api.delete(f"/api/parcels/{parcel['id']}", headers=ops).status_code == 200
    assert api.get(f"/api/parcels/{parcel['id']}", headers=ops).status_code == 404


def test_parcel_freight_counts_in_trip_summary(api, seed, fin, make_trip):
    trip = make_trip()
    api.post("/api/parcels", json=parcel_body(trip_id=trip["id"]), headers=seed["headers"]["vendas"])
    summary = api.get(f"/api/finance/trips/{trip['id']}/summary", headers=fin).json()
    assert summary["pending_income"] == 35.5
    assert summary["income"] == 0.0


def test_delivered_parcel_keeps_its_receivable(api, seed, fin):
    ops = seed["headers"]["operacional"]
    parcel = api.post("/api/parcels", json=parcel_body(), headers=ops).json()
    [freight] = ledger(api, fin, "parcel_id", parcel["id"])
    paid = api.put(f"/api/finance/transactions/{freight['id']}", json={"status": "PAID"}, headers=fin)
    assert paid.status_code == 200

    api.put(f"/api/parcels/{parcel['id']}", json={"status": "DELIVERED", "price": "99"}, headers=ops)
    [settled] = ledger(api, fin, "parcel_id", parcel["id"])
    assert settled["status"] == "PAID"
    assert settled["amount"] == 35.5


def test_free_parcel_has_no_ledger_row(api, seed, fin):
    ops = seed["headers"]["operacional"]
    parcel = api.post("/api/parcels", json=parcel_body(price="0"), headers=ops).json()
    assert ledger(api, fin, "parcel_id", parcel["id"]) == []

    api.put(f"/api/parcels/{parcel['id']}", json={"price": "20"}, headers=ops)
    assert [t["amount"] for t in ledger(api, fin, "parcel_id", parcel["id"])] == [20.0]


def test_parcel_rejections(api, seed):
    ops = seed["headers"]["operacional"]
    assert api.post("/api/parcels", json=parcel_body(sender_name="  "), headers=ops).status_code == 400
    assert api.post("/api/parcels", json=parcel_body(price="-1"), headers=ops).status_code == 400
    assert api.post("/api/parcels", json=parcel_body(status="LOST"), headers=ops).status_code == 400
    assert api.post("/api/parcels", json=parcel_body(trip_id=9999), headers=ops).status_code == 400
    assert api.post("/api/parcels", json=parcel_body(client_id=9999), headers=ops).status_code == 400
    assert api.post("/api/parcels", json=parcel_body(), headers=seed["headers"]["financeiro"]).status_code == 403
    assert api.put("/api/parcels/9999", json={"status": "DELIVERED"}, headers=ops).status_code == 404


def test_parcels_are_scoped_to_the_organization(api, seed, db):
    parcel = api.post("/api/parcels", json=parcel_body(), headers=seed["headers"]["admin"]).json()

    users = SQLiteUserRepository(db)
    other = users.create_organization("Expresso Norte", "expresso-norte")
    outsider = register_user(users, email="admin@norte.example.com", password="secret123",
                             role=Role.ADMIN.value, organization_id=other.id)
    headers = {"Authorization": f"Bearer {token_for(outsider)}"}

    assert api.get("/api/parcels", headers=headers).json() == []
    assert api.get(f"/api/parcels/{parcel['id']}", headers=headers).status_code == 404
    assert api.put(f"/api/parcels/{parcel['id']}", json={"status": "DELIVERED"}, headers=headers).status_code == 404


def test_public_pickup_request_and_tracking(api, seed, fin):
    resp = api.post("/api/public/parcels", json=parcel_body(organization_id=seed["org"].id, price="500"))
    assert resp.status_code == 201, resp.text
    request = resp.json()
    assert request["tracking_code"].startswith("REQ-")
    assert request["status"] == "AWAITING"

    tracked = api.get(f"/api/public/parcels/track/{request['tracking_code'].lower()}")
    assert tracked.status_code == 200
    assert tracked.json()["destination_city"] == "Rio de Janeiro"
    assert api.get("/api/public/parcels/track/P-000000").status_code == 404

    [staff_view] = api.get("/api/parcels", headers=seed["headers"]["operacional"]).json()
    assert staff_view["price"] == 0.0
    assert ledger(api, fin, "parcel_id", staff_view["id"]) == []

    assert api.post("/api/public/parcels", json=parcel_body(organization_id=9999)).status_code == 400


def test_portal_dashboard_lists_the_customers_parcels(api, seed):
    parcel = api.post("/api/parcels", json=parcel_body(client_id=seed["customer"].id),
                      headers=seed["headers"]["vendas"]).json()
    api.post("/api/parcels", json=parcel_body(sender_name="Outro Remetente"), headers=seed["headers"]["vendas"])

    dashboard = api.get("/api/client/dashboard", headers=seed["headers"]["client"]).json()
    assert [p["tracking_code"] for p in dashboard["parcels"]] == [parcel["tracking_code"]]


def test_charter_quote_follows_the_status(api, seed, fin):
    sales = seed["headers"]["vendas"]
    resp = api.post("/api/charters", json=charter_body(), headers=sales)
    assert resp.status_code == 201, resp.text
    charter = resp.json()
    assert charter["status"] == "REQUEST"
    assert charter["quote_price"] is None

    api.put(f"/api/charters/{charter['id']}", json={"status": "QUOTED", "quote_price": "4500"}, headers=sales)
    assert ledger(api, fin, "charter_id", charter["id"]) == []

    resp = api.put(f"/api/charters/{charter['id']}", json={"status": "CONFIRMED"}, headers=sales)
    assert resp.json()["quote_price"] == 4500.0
    [quote] = ledger(api, fin, "charter_id", charter["id"])
    assert quote["type"] == "INCOME"
    assert quote["status"] == "PENDING"
    assert quote["amount"] == 4500.0
    assert quote["category"] == "FRETAMENTO"
    assert quote["due_date"] == "2030-03-10T00:00:00"

    api.put(f"/api/charters/{charter['id']}", json={"quote_price": "4800", "departure_date": "2030-03-09"},
            headers=sales)
    [quote] = ledger(api, fin, "charter_id", charter["id"])
    assert quote["amount"] == 4800.0
    assert quote["due_date"] == "2030-03-09T00:00:00"

    api.put(f"/api/charters/{charter['id']}", json={"status": "CANCELLED"}, headers=sales)
    assert [t["status"] for t in ledger(api, fin, "charter_id", charter["id"])] == ["CANCELLED"]

    # confirming again opens a fresh receivable
    api.put(f"/api/charters/{charter['id']}", json={"status": "CONFIRMED"}, headers=sales)
    assert [t["status"] for t in ledger(api, fin, "charter_id", charter["id"])] == ["CANCELLED", "PENDING"]


def test_charter_paid_from_an_account_updates_the_balance(api, seed, fin):
    account = api.post("/api/finance/accounts", json={"name": "Caixa", "initial_balance": "100"},
                       headers=fin).json()
    charter = api.post("/api/charters", json=charter_body(status="CONFIRMED", quote_price="900"),
                       headers=seed["headers"]["admin"]).json()
    [quote] = ledger(api, fin, "charter_id", charter["id"])
    api.put(f"/api/finance/transactions/{quote['id']}",
            json={"status": "PAID", "bank_account_id": account["id"]}, headers=fin)

    api.put(f"/api/charters/{charter['id']}", json={"status": "CANCELLED"}, headers=seed["headers"]["admin"])
    [quote] = ledger(api, fin, "charter_id", charter["id"])
    assert quote["status"] == "PAID"
    balance = next(a for a in api.get("/api/finance/accounts", headers=fin).json() if a["id"] == account["id"])
    assert balance["current_balance"] == 1000.0


def test_charter_rules(api, seed, make_vehicle):
    sales = seed["headers"]["vendas"]
    van = make_vehicle(plate="van0a01", type="VAN", passenger_capacity=10)
    assert api.post("/api/charters", json=charter_body(passenger_count=0), headers=sales).status_code == 400
    assert api.post("/api/charters", json=charter_body(return_date="2030-03-01"), headers=sales).status_code == 400
    assert api.post("/api/charters", json=charter_body(vehicle_id=van["id"]), headers=sales).status_code == 400
    assert api.post("/api/charters", json=charter_body(driver_id=9999), headers=sales).status_code == 400
    assert api.post("/api/charters", json=charter_body(status="MAYBE"), headers=sales).status_code == 400
    assert api.put("/api/charters/9999", json={"status": "QUOTED"}, headers=sales).status_code == 404

    small = api.post("/api/charters", json=charter_body(passenger_count=8, vehicle_id=van["id"]), headers=sales)
    assert small.status_code == 201
    assert api.put(f"/api/charters/{small.json()['id']}", json={"passenger_count": 12},
                   headers=sales).status_code == 400


def test_charter_listing_filters_and_delete(api, seed):
    sales = seed["headers"]["vendas"]
    march = api.post("/api/charters", json=charter_body(), headers=sales).json()
    may = api.post("/api/charters", json=charter_body(contact_name="Clube Veredas", departure_date="2030-05-01",
                                                      return_date=None), headers=sales).json()

    assert [c["id"] for c in api.get("/api/charters?start_date=2030-04-01", headers=sales).json()] == [may["id"]]
    assert [c["id"] for c in api.get("/api/charters?end_date=2030-04-01", headers=sales).json()] == [march["id"]]
    assert [c["id"] for c in api.get("/api/charters?contact_name=aurora", headers=sales).json()] == [march["id"]]

    assert api.delete(f"/api/charters/{march['id']}", headers=sales).status_code == 403
    assert api.delete(f"/api/charters/{march['id']}", headers=seed["headers"]["admin"]).status_code == 200
    assert api.get(f"/api/charters/{march['id']}", headers=sales).status_code == 404


def test_public_charter_request(api, seed):
    resp = api.post("/api/public/charters", json=charter_body(organization_id=seed["org"].id, status="CONFIRMED"))
    assert resp.status_code == 201, resp.text
    assert resp.json()["status"] == "REQUEST"
    assert resp.json()["quote_price"] is None

    assert api.post("/api/public/charters", json=charter_body()).status_code == 422
    assert api.post("/api/public/charters", json=charter_body(organization_id=9999)).status_code == 400


def test_express_mutations_are_audited(api, seed):
    parcel = api.post("/api/parcels", json=parcel_body(), headers=seed["headers"]["admin"]).json()
    charter = api.post("/api/charters", json=charter_body(), headers=seed["headers"]["admin"]).json()

    logs = api.get("/api/admin/audit-logs", headers=seed["headers"]["admin"]).json()
    actions = {(log["action"], log["entity_id"]) for log in logs}
    assert ("PARCEL_CREATE", str(parcel["id"])) in actions
    assert ("CHARTER_CREATE", str(charter["id"])) in actions
