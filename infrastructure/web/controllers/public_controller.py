from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from core.entities.trip import Trip
from core.services.pricing import get_price_by_seat_type, normalize_seat_type
from core.use_cases.checkout_use_cases import BOOKABLE
from core.use_cases.express_use_cases import request_charter, request_parcel, track_parcel
from core.use_cases.user_use_cases import signup_client
from infrastructure.db.client_repository import SQLiteClientRepository
from infrastructure.db.express_repository import SQLiteExpressRepository
from infrastructure.db.reservation_repository import SQLiteReservationRepository
from infrastructure.db.sqlite import TransportConnection, SQLiteUserRepository, atomic
from infrastructure.db.trip_repository import SQLiteTripRepository
from infrastructure.web.dependencies import (
    get_db, get_trip_repo, get_reservation_repo, get_user_repo, get_client_repo, get_express_repo, http_error,
)
from infrastructure.web.schemas import (
    PublicTripResponse, SeatPriceResponse, SignupRequest, ClientResponse, PublicParcelRequest,
    ParcelTrackingResponse, PublicCharterRequest, CharterResponse,
)

router = APIRouter(prefix="/api/public", tags=["public"])


def _bookable_trip(trips: SQLiteTripRepository, trip_id: int) -> Trip:
    trip = trips.get_trip(trip_id)
    if trip is None or not trip.active or trip.status not in BOOKABLE:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


@router.get("/trips", response_model=List[PublicTripResponse])
def search_trips(
    origin_city: Optional[str] = None,
    destination_city: Optional[str] = None,
    departure_date: Optional[str] = None,
    trips: SQLiteTripRepository = Depends(get_trip_repo),
):
    try:
        found = trips.search_public_trips(origin_city, destination_city, departure_date)
    except Exception as e:
        raise http_error(e, "Failed to search trips")
    return [PublicTripResponse.model_validate(t) for t in found]

@router.get("/trips/{trip_id}", response_model=PublicTripResponse)
def get_trip(trip_id: int, trips: SQLiteTripRepository = Depends(get_trip_repo)):
    return PublicTripResponse.model_validate(_bookable_trip(trips, trip_id))

@router.get("/trips/{trip_id}/reserved-seats", response_model=List[str])
def reserved_seats(
    trip_id: int,
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
):
    _bookable_trip(trips, trip_id)
    return reservations.reserved_seats(trip_id)

@router.get("/trips/{trip_id}/price", response_model=SeatPriceResponse)
def seat_price(trip_id: int, seat_type: Optional[str] = None, trips: SQLiteTripRepository = Depends(get_trip_repo)):
    trip = _bookable_trip(trips, trip_id)
    return SeatPriceResponse(
        trip_id=trip.id,
        seat_type=normalize_seat_type(seat_type),
        price=float(get_price_by_seat_type(trip, seat_type)),
    )

@router.post("/client/signup", response_model=ClientResponse, status_code=201)
def signup(
    payload: SignupRequest,
    conn: TransportConnection = Depends(get_db),
    users: SQLiteUserRepository = Depends(get_user_repo),
    clients: SQLiteClientRepository = Depends(get_client_repo),
):
    try:
        with atomic(conn):
            client = signup_client(users, clients, **payload.model_dump())
    except Exception as e:
        raise http_error(e, "Failed to sign up")
    return ClientResponse.model_validate(client)

@router.post("/parcels", response_model=ParcelTrackingResponse, status_code=201)
def request_parcel_pickup(
    payload: PublicParcelRequest,
    users: SQLiteUserRepository = Depends(get_user_repo),
    express: SQLiteExpressRepository = Depends(get_express_repo),
):
    try:
        parcel = request_parcel(express, users, payload.model_dump())
    except Exception as e:
        raise http_error(e, "Failed to request parcel pickup")
    return ParcelTrackingResponse.model_validate(parcel)

@router.get("/parcels/track/{tracking_code}", response_model=ParcelTrackingResponse)
def track(tracking_code: str, express: SQLiteExpressRepository = Depends(get_express_repo)):
    try:
        return ParcelTrackingResponse.model_validate(track_parcel(express, tracking_code))
    except Exception as e:
        raise http_error(e, "Failed to track parcel")

@router.post("/charters", response_model=CharterResponse, status_code=201)
def request_charter_quote(
    payload: PublicCharterRequest,
    users: SQLiteUserRepository = Depends(get_user_repo),
    express: SQLiteExpressRepository = Depends(get_express_repo),
):
    try:
        charter = request_charter(express, users, payload.model_dump())
    except Exception as e:
        raise http_error(e, "Failed to request charter")
    return CharterResponse.model_validate(charter)
