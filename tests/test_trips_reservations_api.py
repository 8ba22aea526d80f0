def seats_left(api, headers, trip_id):
    return api.get(f"/api/trips/{trip_id}", headers=headers).json()["seats_available"]


def test_trip_seats_default_to_vehicle_capacity(api, seed, make_vehicle, make_trip):
    vehicle = make_vehicle(passenger_capacity=28)
    trip = make_trip(vehicle_id=vehicle["id"], seats_available=None)
    assert trip["seats_available"] == 28
    assert trip["trip_code"].startswith("V-")
    assert trip["status"] == "SCHEDULED"
    assert trip["price_executive"] == 80.0


def test_trip_validation(api, seed):
    admin = seed["headers"]["admin"]
    base = {"origin_city": "A", "destination_city": "B", "departure_date": "2030-02-01"}
    assert api.post("/api/trips", json={**base, "status": "LOST"}, headers=admin).status_code == 400
    assert api.post("/api/trips", json={**base, "vehicle_id": 404}, headers=admin).status_code == 400
    assert api.put("/api/trips/404", json={"title": "x"}, headers=admin).status_code == 404


def test_trip_crud_roles(api, seed, make_trip):
    trip = make_trip(title="Réveillon no Rio")
    sales = seed["headers"]["vendas"]
    assert api.get(f"/api/trips/{trip['id']}", headers=sales).status_code == 200
    assert api.put(f"/api/trips/{trip['id']}", json={"title": "x"}, headers=sales).status_code == 403

    ops = seed["headers"]["operacional"]
    resp = api.put(f"/api/trips/{trip['id']}", json={"status": "CONFIRMED", "price_bed": "210"}, headers=ops)
    assert resp.status_code == 200
    assert resp.json()["status"] == "CONFIRMED"
    assert resp.json()["price_bed"] == 210.0

    assert [t["id"] for t in api.get("/api/trips?status=CONFIRMED", headers=ops).json()] == [trip["id"]]
    assert api.delete(f"/api/trips/{trip['id']}", headers=ops).status_code == 200
    assert api.get(f"/api/trips/{trip['id']}", headers=ops).status_code == 404


def test_reservation_is_priced_from_tariff_and_books_a_receivable(api, seed, make_trip):
    trip = make_trip()
    sales = seed["headers"]["vendas"]
    resp = api.post("/api/reservations", json={
        "trip_id": trip["id"], "passenger_name": "Carlos Lima", "seat_number": "12", "seat_type": "executive",
    }, headers=sales)
    assert resp.status_code == 201, resp.text
    reservation = resp.json()
    assert reservation["ticket_code"].startswith("T-")
    assert reservation["seat_type"] == "EXECUTIVO"
    assert reservation["price"] == 80.0
    assert reservation["status"] == "PENDING"
    assert seats_left(api, sales, trip["id"]) == 39

    txs = api.get(f"/api/finance/transactions?trip_id={trip['id']}", headers=seed["headers"]["financeiro"]).json()
    assert len(txs) == 1
    assert txs[0]["reservation_id"] == reservation["id"]
    assert txs[0]["type"] == "INCOME"
    assert txs[0]["status"] == "PENDING"
    assert txs[0]["amount"] == 80.0


def test_seat_cannot_be_double_booked(api, seed, make_trip):
    trip = make_trip()
    sales = seed["headers"]["vendas"]
    body = {"trip_id": trip["id"], "passenger_name": "Carlos", "seat_number": "7"}
    assert api.post("/api/reservations", json=body, headers=sales).status_code == 201

    resp = api.post("/api/reservations", json={**body, "passenger_name": "Rita"}, headers=sales)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "O assento 7 já está reservado para esta viagem."
    assert seats_left(api, sales, trip["id"]) == 39


def test_cancelling_frees_the_seat(api, seed, make_trip):
    trip = make_trip()
    sales = seed["headers"]["vendas"]
    first = api.post("/api/reservations", json={"trip_id": trip["id"], "passenger_name": "Carlos",
                                                "seat_number": "3"}, headers=sales).json()
    resp = api.put(f"/api/reservations/{first['id']}", json={"status": "CANCELLED"}, headers=sales)
    assert resp.status_code == 200
    assert seats_left(api, sales, trip["id"]) == 40

    second = api.post("/api/reservations", json={"trip_id": trip["id"], "passenger_name": "Rita",
                                                 "seat_number": "3"}, headers=sales)
    assert second.status_code == 201

    # reinstating the first booking would take the seat twice
    resp = api.put(f"/api/reservations/{first['id']}", json={"status": "CONFIRMED"}, headers=sales)
    assert resp.status_code == 409


def test_reservation_credits_come_from_the_client(api, seed, make_trip):
    trip = make_trip()
    admin = seed["headers"]["admin"]
    client = api.post("/api/clients", json={"name": "Empresa X", "credits": "20"}, headers=admin).json()
    body = {"trip_id": trip["id"], "passenger_name": "Func. 1", "seat_number": "1",
            "client_id": client["id"], "credits_used": "50"}

    resp = api.post("/api/reservations", json=body, headers=admin)
    assert resp.status_code == 400
    # the failed debit rolls the booking back
    assert seats_left(api, admin, trip["id"]) == 40
    assert api.get(f"/api/reservations?trip_id={trip['id']}", headers=admin).json() == []

    resp = api.post("/api/reservations", json={**body, "credits_used": "15"}, headers=admin)
    assert resp.status_code == 201
    assert api.get(f"/api/clients/{client['id']}", headers=admin).json()["credits"] == 5.0


def test_reservation_filters_and_delete(api, seed, make_trip):
    trip = make_trip()
    sales = seed["headers"]["vendas"]
    for seat, name in (("1", "Carlos Lima"), ("2", "Rita Lee")):
        api.post("/api/reservations", json={"trip_id": trip["id"], "passenger_name": name, "seat_number": seat},
                 headers=sales)
    found = api.get("/api/reservations?passenger_name=rita", headers=sales).json()
    assert [r["passenger_name"] for r in found] == ["Rita Lee"]

    assert api.delete(f"/api/reservations/{found[0]['id']}", headers=sales).status_code == 403
    ops = seed["headers"]["operacional"]
    assert api.delete(f"/api/reservations/{found[0]['id']}", headers=ops).status_code == 200
    assert seats_left(api, ops, trip["id"]) == 39
    assert api.get(f"/api/reservations/{found[0]['id']}", headers=ops).status_code == 404
