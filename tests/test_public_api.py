def test_search_lists_only_bookable_trips(api, seed, make_trip):
    open_trip = make_trip(origin_city="Curitiba", departure_date="2030-05-01")
    make_trip(origin_city="Curitiba", departure_date="2030-05-02", status="CANCELLED")
    make_trip(origin_city="Curitiba", departure_date="2030-05-03", active=False)
    make_trip(origin_city="Belo Horizonte")

    found = api.get("/api/public/trips", params={"origin_city": "curitiba"}).json()
    assert [t["id"] for t in found] == [open_trip["id"]]
    assert "vehicle_id" not in found[0]

    by_date = api.get("/api/public/trips", params={"departure_date": "2030-05-01"}).json()
    assert [t["id"] for t in by_date] == [open_trip["id"]]


def test_unbookable_trip_is_hidden(api, seed, make_trip):
    cancelled = make_trip(status="CANCELLED")
    assert api.get(f"/api/public/trips/{cancelled['id']}").status_code == 404
    assert api.get(f"/api/public/trips/{cancelled['id']}/reserved-seats").status_code == 404
    assert api.get("/api/public/trips/9999").status_code == 404


def test_seat_price_lookup(api, seed, make_trip):
    trip = make_trip()
    sleeper = api.get(f"/api/public/trips/{trip['id']}/price", params={"seat_type": "LEITO"}).json()
    assert sleeper == {"trip_id": trip["id"], "seat_type": "LEITO", "price": 150.0}

    # no bed tariff on this trip
    bed = api.get(f"/api/public/trips/{trip['id']}/price", params={"seat_type": "CAMA"}).json()
    assert bed["price"] == 50.0
    assert api.get(f"/api/public/trips/{trip['id']}/price").json()["seat_type"] == "CONVENCIONAL"


def test_reserved_seats(api, seed, make_trip):
    trip = make_trip()
    api.post("/api/reservations", json={"trip_id": trip["id"], "passenger_name": "Carlos", "seat_number": "9"},
             headers=seed["headers"]["vendas"])
    assert api.get(f"/api/public/trips/{trip['id']}/reserved-seats").json() == ["9"]


def test_signup_then_login(api, seed):
    resp = api.post("/api/public/client/signup", json={
        "name": "Bruno Alves", "username": "bruno.alves", "email": "Bruno@Example.com", "password": "secret123",
        "phone": "11988887777", "organization_id": seed["org"].id,
    })
    assert resp.status_code == 201, resp.text
    profile = resp.json()
    assert profile["email"] == "bruno@example.com"
    assert profile["credits"] == 0.0
    assert profile["user_id"]

    login = api.post("/api/auth/login", auth=("bruno.alves", "secret123"))
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "client"

    crm = api.get("/api/clients", params={"search": "Bruno"}, headers=seed["headers"]["vendas"]).json()
    assert [c["id"] for c in crm] == [profile["id"]]


def test_signup_validation(api, seed):
    base = {"name": "Carla", "username": "carla.m", "email": "carla@example.com", "password": "secret123"}
    assert api.post("/api/public/client/signup", json={**base, "username": "1carla"}).status_code == 400
    assert api.post("/api/public/client/signup", json={**base, "username": "ana.souza"}).status_code == 400
    assert api.post("/api/public/client/signup", json={**base, "email": "ana@example.com"}).status_code == 400
    assert api.post("/api/public/client/signup", json={**base, "password": "123"}).status_code == 400
    assert api.post("/api/public/client/signup", json={**base, "email": "not-an-email"}).status_code == 422
    assert api.post("/api/public/client/signup", json={**base, "organization_id": 999}).status_code == 400

    company = {**base, "client_type": "PESSOA_JURIDICA", "corporate_name": "Carla Turismo Ltda"}
    assert api.post("/api/public/client/signup", json=company).status_code == 400
    assert api.post("/api/public/client/signup", json={**company, "cnpj": "123"}).status_code == 400
    resp = api.post("/api/public/client/signup", json={**company, "cnpj": "12.345.678/0001-90"})
    assert resp.status_code == 201
    assert resp.json()["client_type"] == "PESSOA_JURIDICA"
