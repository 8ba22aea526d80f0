import pytest

from config.settings import settings

SECRET = {"X-Webhook-Secret": settings.WEBHOOK_SECRET}


@pytest.fixture()
def checkout(api, seed, make_trip):
    def _checkout(*seats, **extra):
        trip = make_trip()
        body = {"trip_id": trip["id"],
                "reservations": [{"seat_number": s, "passenger_name": f"Pax {s}",
                                  "passenger_email": f"pax{s}@example.com"} for s in seats]}
        body.update(extra)
        resp = api.post("/api/client/checkout", json=body, headers=seed["headers"]["client"])
        assert resp.status_code == 201, resp.text
        return trip, resp.json()
    return _checkout


def incomes(api, seed, trip_id):
    rows = api.get(f"/api/finance/transactions?trip_id={trip_id}", headers=seed["headers"]["financeiro"]).json()
    return [t for t in rows if t["type"] == "INCOME"]


def test_secret_is_required(api, seed):
    assert api.get("/api/webhooks/pending-reservations").status_code == 401
    resp = api.post("/api/webhooks/payment-confirmed", json={}, headers={"X-Webhook-Secret": "nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Unauthorized: Invalid Secret"


def test_missing_fields(api, seed):
    resp = api.post("/api/webhooks/payment-confirmed", json={"amount": 10}, headers=SECRET)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required fields: (reservation_id OR transaction_id), amount"
    assert api.post("/api/webhooks/payment-confirmed", json={"reservation_id": 1},
                    headers=SECRET).status_code == 400
    assert api.post("/api/webhooks/payment-confirmed", json={"reservation_id": 999, "amount": 10},
                    headers=SECRET).status_code == 404


def test_confirmation_by_gateway_id_reconciles_the_receivable(api, seed, checkout):
    trip, body = checkout("1", "2")
    payment_id = body["payment"]["payment_id"]

    resp = api.post("/api/webhooks/payment-confirmed",
                    json={"transaction_id": payment_id, "amount": 100, "payment_method": "PIX"}, headers=SECRET)
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    admin = seed["headers"]["admin"]
    statuses = [api.get(f"/api/reservations/{r['id']}", headers=admin).json()["status"] for r in body["reservations"]]
    assert statuses == ["CONFIRMED", "CONFIRMED"]

    rows = incomes(api, seed, trip["id"])
    assert len(rows) == 1
    assert rows[0]["status"] == "PAID"
    assert rows[0]["amount"] == 100.0
    assert rows[0]["document_number"] == payment_id


def test_unmatched_amount_books_a_new_payment(api, seed, checkout):
    trip, body = checkout("3")
    reservation_id = body["reservations"][0]["id"]
    resp = api.post("/api/webhooks/payment-confirmed",
                    json={"reservation_id": reservation_id, "amount": "20"}, headers=SECRET)
    assert resp.status_code == 200

    rows = {t["status"]: t for t in incomes(api, seed, trip["id"])}
    assert rows["PENDING"]["amount"] == 50.0
    assert rows["PAID"]["amount"] == 20.0
    assert rows["PAID"]["description"] == f"Pagamento Digital - Reserva {body['reservations'][0]['ticket_code']}"

    reservation = api.get(f"/api/reservations/{reservation_id}", headers=seed["headers"]["admin"]).json()
    assert reservation["amount_paid"] == 20.0


def test_partial_entry_is_reconciled(api, seed, checkout):
    trip, body = checkout("4", is_partial=True)
    assert body["entry_value"] == 10.0
    api.post("/api/webhooks/payment-confirmed",
             json={"transaction_id": body["payment"]["payment_id"], "amount": 10}, headers=SECRET)
    rows = {t["amount"]: t["status"] for t in incomes(api, seed, trip["id"])}
    assert rows == {10.0: "PAID", 40.0: "PENDING"}


def test_expiry_automation(api, seed, checkout):
    trip, body = checkout("8")
    reservation = body["reservations"][0]

    pending = api.get("/api/webhooks/pending-reservations", headers=SECRET).json()
    assert [p["ticket_code"] for p in pending] == [reservation["ticket_code"]]
    assert pending[0]["passenger_email"] == "pax8@example.com"

    resp = api.post("/api/webhooks/cancel-reservation", json={}, headers=SECRET)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing reservation_id"

    resp = api.post("/api/webhooks/cancel-reservation", json={"reservation_id": reservation["id"]}, headers=SECRET)
    assert resp.status_code == 200
    # repeating the call is harmless
    assert api.post("/api/webhooks/cancel-reservation", json={"reservation_id": reservation["id"]},
                    headers=SECRET).status_code == 200

    admin = seed["headers"]["admin"]
    cancelled = api.get(f"/api/reservations/{reservation['id']}", headers=admin).json()
    assert cancelled["status"] == "CANCELLED"
    assert cancelled["notes"] == "[Cancelado via automação: Expirado]"
    assert api.get(f"/api/trips/{trip['id']}", headers=admin).json()["seats_available"] == 40
    assert api.get("/api/webhooks/pending-reservations", headers=SECRET).json() == []
    assert api.get(f"/api/public/trips/{trip['id']}/reserved-seats").json() == []


def test_confirmation_through_any_passenger_settles_the_order(api, seed, checkout):
    trip, body = checkout("5", "6")
    second = body["reservations"][1]
    resp = api.post("/api/webhooks/payment-confirmed",
                    json={"reservation_id": second["id"], "amount": 100}, headers=SECRET)
    assert resp.status_code == 200

    rows = incomes(api, seed, trip["id"])
    assert [(t["amount"], t["status"]) for t in rows] == [(100.0, "PAID")]

    summary = api.get(f"/api/finance/trips/{trip['id']}/summary", headers=seed["headers"]["financeiro"]).json()
    assert summary["income"] == 100.0
    assert summary["pending_income"] == 0.0

    admin = seed["headers"]["admin"]
    statuses = {api.get(f"/api/reservations/{r['id']}", headers=admin).json()["status"] for r in body["reservations"]}
    assert statuses == {"CONFIRMED"}


def test_confirmation_updates_the_linked_bank_account(api, seed, checkout):
    fin = seed["headers"]["financeiro"]
    trip, body = checkout("7")
    account = api.post("/api/finance/accounts", json={"name": "Gateway", "initial_balance": "100"},
                       headers=fin).json()
    receivable = incomes(api, seed, trip["id"])[0]
    api.put(f"/api/finance/transactions/{receivable['id']}", json={"bank_account_id": account["id"]}, headers=fin)

    api.post("/api/webhooks/payment-confirmed",
             json={"transaction_id": body["payment"]["payment_id"], "amount": 50}, headers=SECRET)

    accounts = {a["id"]: a for a in api.get("/api/finance/accounts", headers=fin).json()}
    assert accounts[account["id"]]["current_balance"] == 150.0


def test_expired_order_gives_back_credits_and_receivables(api, seed, checkout):
    api.put(f"/api/clients/{seed['customer'].id}", json={"credits": "30"}, headers=seed["headers"]["admin"])
    trip, body = checkout("9", "10", credits_used="30", is_partial=True)
    assert [r["credits_used"] for r in body["reservations"]] == [30.0, 0.0]

    for reservation in body["reservations"]:
        resp = api.post("/api/webhooks/cancel-reservation", json={"reservation_id": reservation["id"]},
                        headers=SECRET)
        assert resp.status_code == 200

    profile = api.get("/api/client/profile", headers=seed["headers"]["client"]).json()
    assert profile["credits"] == 30.0
    assert {t["status"] for t in incomes(api, seed, trip["id"])} == {"CANCELLED"}
    assert api.get(f"/api/trips/{trip['id']}", headers=seed["headers"]["admin"]).json()["seats_available"] == 40


def test_receivables_stay_open_while_part_of_the_order_is_alive(api, seed, checkout):
    trip, body = checkout("11", "12")
    api.post("/api/webhooks/cancel-reservation", json={"reservation_id": body["reservations"][0]["id"]},
             headers=SECRET)
    assert {t["status"] for t in incomes(api, seed, trip["id"])} == {"PENDING"}
