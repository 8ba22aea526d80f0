import pytest


@pytest.fixture()
def fin(seed):
    return seed["headers"]["financeiro"]


def test_cost_center_with_categories_cannot_be_deleted(api, fin):
    cc = api.post("/api/finance/cost-centers", json={"name": "VENDAS"}, headers=fin).json()
    resp = api.post("/api/finance/categories",
                    json={"name": "VENDA_PASSAGEM", "type": "INCOME", "cost_center_id": cc["id"]}, headers=fin)
    assert resp.status_code == 201

    resp = api.delete(f"/api/finance/cost-centers/{cc['id']}", headers=fin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot delete cost center with linked categories"

    category_id = api.get(f"/api/finance/categories?cost_center_id={cc['id']}", headers=fin).json()[0]["id"]
    assert api.delete(f"/api/finance/categories/{category_id}", headers=fin).status_code == 200
    assert api.delete(f"/api/finance/cost-centers/{cc['id']}", headers=fin).status_code == 200
    assert api.delete(f"/api/finance/cost-centers/{cc['id']}", headers=fin).status_code == 404


def test_category_needs_cost_center_of_same_org(api, fin):
    resp = api.post("/api/finance/categories", json={"name": "X", "type": "EXPENSE", "cost_center_id": 999},
                    headers=fin)
    assert resp.status_code == 400


def test_default_bank_account_is_unique(api, fin):
    first = api.post("/api/finance/accounts", json={"name": "Caixa", "is_default": True}, headers=fin).json()
    second = api.post("/api/finance/accounts", json={"name": "Banco", "is_default": True}, headers=fin).json()
    accounts = {a["id"]: a for a in api.get("/api/finance/accounts", headers=fin).json()}
    assert accounts[first["id"]]["is_default"] is False
    assert accounts[second["id"]]["is_default"] is True


def test_paid_transactions_drive_account_balance(api, fin):
    account = api.post("/api/finance/accounts", json={"name": "Conta", "initial_balance": "100"}, headers=fin).json()
    assert account["current_balance"] == 100.0

    def balance():
        rows = api.get("/api/finance/accounts", headers=fin).json()
        return next(a for a in rows if a["id"] == account["id"])["current_balance"]

    income = api.post("/api/finance/transactions", json={
        "type": "INCOME", "description": "Fretamento", "amount": 50, "status": "PAID",
        "bank_account_id": account["id"], "date": "2024-05-01",
    }, headers=fin)
    assert income.status_code == 201, income.text
    assert balance() == 150.0

    expense = api.post("/api/finance/transactions", json={
        "tipo": "EXPENSE", "descricao": "Pedágio", "valor": "30", "status": "PENDING",
        "bank_account_id": account["id"],
    }, headers=fin).json()
    assert balance() == 150.0

    resp = api.put(f"/api/finance/transactions/{expense['id']}", json={"status": "PAID"}, headers=fin)
    assert resp.status_code == 200
    assert balance() == 120.0

    assert api.delete(f"/api/finance/transactions/{income.json()['id']}", headers=fin).status_code == 200
    assert balance() == 70.0


def test_transactions_expose_legacy_names(api, fin):
    created = api.post("/api/finance/transactions", json={
        "tipo": "income", "valor": "99.90", "descricao": "Venda balcão",
        "data_emissao": "10/02/2024", "data_vencimento": "not a date",
    }, headers=fin).json()
    assert created["type"] == "INCOME"
    assert created["valor"] == 99.9
    assert created["data_emissao"] == "2024-02-10T00:00:00"
    assert created["data_vencimento"] is None
    assert created["status"] == "PENDING"

    fetched = api.get(f"/api/finance/transactions/{created['id']}", headers=fin).json()
    assert fetched["descricao"] == "Venda balcão"

    listed = api.get("/api/finance/transactions?type=income", headers=fin).json()
    assert [t["id"] for t in listed] == [created["id"]]


def test_invalid_transaction_input(api, fin):
    assert api.post("/api/finance/transactions", json={"type": "GIFT", "amount": 1}, headers=fin).status_code == 400
    assert api.post("/api/finance/transactions", json={"amount": 1, "bank_account_id": 42},
                    headers=fin).status_code == 400
    assert api.get("/api/finance/transactions/9999", headers=fin).status_code == 404
    assert api.put("/api/finance/transactions/9999", json={"status": "PAID"}, headers=fin).status_code == 404


def test_trip_summary(api, seed, fin, make_trip):
    trip = make_trip()
    sales = seed["headers"]["vendas"]
    api.post("/api/reservations", json={"trip_id": trip["id"], "passenger_name": "Carlos", "seat_number": "1",
                                        "amount_paid": "50"}, headers=sales)
    api.post("/api/reservations", json={"trip_id": trip["id"], "passenger_name": "Rita", "seat_number": "2"},
             headers=sales)
    api.post("/api/finance/transactions", json={"type": "EXPENSE", "amount": 20, "status": "PAID",
                                                "trip_id": trip["id"], "description": "Combustível"}, headers=fin)

    summary = api.get(f"/api/finance/trips/{trip['id']}/summary", headers=fin).json()
    assert summary["income"] == 50.0
    assert summary["expense"] == 20.0
    assert summary["net"] == 30.0
    assert summary["pending_income"] == 50.0
    assert summary["reservations"] == 2
    assert summary["reservation_revenue"] == 100.0

    assert api.get("/api/finance/trips/9999/summary", headers=fin).status_code == 404
