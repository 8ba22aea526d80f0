import logging

import pytest

from config.settings import settings


@pytest.fixture()
def customer_with_credits(api, seed):
    customer = seed["customer"]
    resp = api.put(f"/api/clients/{customer.id}", json={"credits": "30"}, headers=seed["headers"]["admin"])
    assert resp.status_code == 200
    return customer


def order(trip_id, *seats, **extra):
    body = {"trip_id": trip_id,
            "reservations": [{"seat_number": s, "passenger_name": f"Passageiro {s}"} for s in seats]}
    body.update(extra)
    return body


def test_partial_checkout_with_credits(api, seed, make_trip, customer_with_credits):
    trip = make_trip()
    headers = seed["headers"]["client"]
    resp = api.post("/api/client/checkout",
                    json=order(trip["id"], "10", "11", credits_used="30", is_partial=True), headers=headers)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["total"] == 100.0
    assert body["credits_applied"] == 30.0
    assert body["entry_value"] == 14.0
    assert body["remaining"] == 56.0
    assert body["is_partial"] is True

    payment = body["payment"]
    assert payment["success"] is True
    assert payment["payment_id"].startswith("stub-")
    assert payment["qr_code"]
    assert {r["external_payment_id"] for r in body["reservations"]} == {payment["payment_id"]}
    assert {r["status"] for r in body["reservations"]} == {"PENDING"}
    assert {r["payment_method"] for r in body["reservations"]} == {"PIX"}

    dashboard = api.get("/api/client/dashboard", headers=headers).json()
    assert dashboard["profile"]["credits"] == 0.0
    assert sorted(r["seat_number"] for r in dashboard["reservations"]) == ["10", "11"]

    admin = seed["headers"]["admin"]
    assert api.get(f"/api/trips/{trip['id']}", headers=admin).json()["seats_available"] == 38

    txs = api.get(f"/api/finance/transactions?trip_id={trip['id']}", headers=seed["headers"]["financeiro"]).json()
    credit_use = [t for t in txs if t["type"] == "EXPENSE"]
    assert len(credit_use) == 1
    assert credit_use[0]["status"] == "PAID"
    assert credit_use[0]["amount"] == 30.0
    assert credit_use[0]["payment_method"] == "CREDITOS"

    income = {t["amount"]: t for t in txs if t["type"] == "INCOME"}
    assert set(income) == {14.0, 56.0}
    assert income[14.0]["description"].endswith("- Entrada/Sinal")
    assert income[56.0]["description"].endswith("- Restante no Embarque")
    assert income[56.0]["due_date"] == "2030-01-15T00:00:00"
    assert {t["status"] for t in income.values()} == {"PENDING"}


def test_full_checkout_link_payment(api, seed, make_trip):
    trip = make_trip()
    resp = api.post("/api/client/checkout", json=order(trip["id"], "5", payment_type="LINK"),
                    headers=seed["headers"]["client"])
    body = resp.json()
    assert body["entry_value"] == 50.0
    assert body["remaining"] == 0.0
    assert body["payment"]["payment_link"]
    assert body["reservations"][0]["payment_method"] == "LINK"


def test_credits_covering_everything_skip_the_gateway(api, seed, make_trip):
    trip = make_trip(price_conventional="25")
    api.put(f"/api/clients/{seed['customer'].id}", json={"credits": "30"}, headers=seed["headers"]["admin"])
    body = api.post("/api/client/checkout", json=order(trip["id"], "1", credits_used="30"),
                    headers=seed["headers"]["client"]).json()
    assert body["credits_applied"] == 25.0
    assert body["entry_value"] == 0.0
    assert body["payment"] is None
    reservation = body["reservations"][0]
    assert reservation["external_payment_id"] is None
    assert reservation["status"] == "CONFIRMED"
    assert reservation["credits_used"] == 25.0
    assert reservation["amount_paid"] == 25.0
    assert reservation["payment_method"] == "CREDITOS"

    # a settled order is never offered to the expiry automation
    pending = api.get("/api/webhooks/pending-reservations", headers={"X-Webhook-Secret": settings.WEBHOOK_SECRET})
    assert pending.json() == []
    assert api.get("/api/client/profile", headers=seed["headers"]["client"]).json()["credits"] == 5.0


def test_client_entry_value_is_only_advisory(api, seed, make_trip, caplog):
    trip = make_trip()
    with caplog.at_level(logging.WARNING):
        body = api.post("/api/client/checkout", json=order(trip["id"], "1", entry_value="1.00"),
                        headers=seed["headers"]["client"]).json()
    assert body["entry_value"] == 50.0
    assert "entry value mismatch" in caplog.text


def test_taken_seat_rejects_the_whole_order(api, seed, make_trip, customer_with_credits):
    trip = make_trip()
    headers = seed["headers"]["client"]
    assert api.post("/api/client/checkout", json=order(trip["id"], "1"), headers=headers).status_code == 201

    resp = api.post("/api/client/checkout", json=order(trip["id"], "2", "1", credits_used="30"), headers=headers)
    assert resp.status_code == 409
    assert api.get(f"/api/trips/{trip['id']}", headers=seed["headers"]["admin"]).json()["seats_available"] == 39
    assert api.get("/api/client/profile", headers=headers).json()["credits"] == 30.0
    assert api.get(f"/api/public/trips/{trip['id']}/reserved-seats").json() == ["1"]


def test_checkout_rejections(api, seed, make_trip):
    headers = seed["headers"]["client"]
    trip = make_trip(seats_available=1)
    assert api.post("/api/client/checkout", json=order(trip["id"]), headers=headers).status_code == 400
    assert api.post("/api/client/checkout", json=order(trip["id"], "1", "2"), headers=headers).status_code == 400
    assert api.post("/api/client/checkout", json=order(trip["id"], "1", credits_used="5"),
                    headers=headers).status_code == 400
    assert api.post("/api/client/checkout", json=order(9999, "1"), headers=headers).status_code == 404

    roomy = make_trip()
    assert api.post("/api/client/checkout", json=order(roomy["id"], "1", "1"), headers=headers).status_code == 409

    cancelled = make_trip(status="CANCELLED")
    assert api.post("/api/client/checkout", json=order(cancelled["id"], "1"), headers=headers).status_code == 404


def test_profile_update(api, seed):
    headers = seed["headers"]["client"]
    resp = api.put("/api/client/profile", json={"phone": "+55 11 99999-0000"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["phone"] == "+55 11 99999-0000"
    assert resp.json()["name"] == "Ana Souza"


def test_client_profile_is_created_on_first_visit(api, seed):
    admin = seed["headers"]["admin"]
    api.post("/api/users", json={"email": "walkin@example.com", "password": "secret123", "role": "client",
                                 "name": "Cliente Balcão"}, headers=admin)
    login = api.post("/api/auth/login", auth=("walkin@example.com", "secret123")).json()
    headers = {"Authorization": f"Bearer {login['access_token']}"}

    dashboard = api.get("/api/client/dashboard", headers=headers)
    assert dashboard.status_code == 200
    assert dashboard.json()["profile"]["name"] == "Cliente Balcão"
    assert dashboard.json()["reservations"] == []
