from typing import Optional, Dict, Any

from core.entities.trip import Trip, TripStatus
from core.errors import BusinessRuleError, NotFoundError
from core.repositories.fleet_repository import FleetRepository
from core.repositories.trip_repository import TripRepository
from core.services.pricing import SEAT_PRICE_FIELDS, to_decimal
from core.use_cases.reservation_use_cases import generate_code

_STATUSES = {s.value for s in TripStatus}
PRICE_FIELDS = tuple(SEAT_PRICE_FIELDS.values())


def _prices(data: Dict[str, Any]) -> Dict[str, Any]:
    return {f: (None if data.get(f) in (None, "") else to_decimal(data[f])) for f in PRICE_FIELDS if f in data}


def _check_links(fleet: FleetRepository, organization_id: int, data: Dict[str, Any]) -> None:
    if data.get("vehicle_id") and fleet.get_vehicle(organization_id, data["vehicle_id"]) is None:
        raise BusinessRuleError("Vehicle not found")
    if data.get("driver_id") and fleet.get_driver(organization_id, data["driver_id"]) is None:
        raise BusinessRuleError("Driver not found")


def create_trip(
    trips: TripRepository,
    fleet: FleetRepository,
    organization_id: int,
    data: Dict[str, Any],
    created_by: Optional[int] = None,
) -> Trip:
    """New ``V-XXXXXX`` trip. Seats default to the vehicle's passenger capacity."""
    status = data.get("status") or TripStatus.SCHEDULED.value
    if status not in _STATUSES:
        raise BusinessRuleError(f"Invalid trip status: {status}")
    _check_links(fleet, organization_id, data)

    seats = data.get("seats_available")
    if seats is None and data.get("vehicle_id"):
        seats = fleet.get_vehicle(organization_id, data["vehicle_id"]).passenger_capacity
    if seats is not None and int(seats) < 0:
        raise BusinessRuleError("seats_available must not be negative")

    return trips.create_trip(Trip(
        id=None,
        organization_id=organization_id,
        trip_code=generate_code("V"),
        title=data.get("title"),
        origin_city=data["origin_city"],
        destination_city=data["destination_city"],
        stops=data.get("stops") or [],
        return_stops=data.get("return_stops") or [],
        vehicle_id=data.get("vehicle_id"),
        driver_id=data.get("driver_id"),
        departure_date=data["departure_date"],
        departure_time=data.get("departure_time"),
        arrival_date=data.get("arrival_date"),
        arrival_time=data.get("arrival_time"),
        seats_available=int(seats or 0),
        status=status,
        active=data.get("active", True) is not False,
        notes=data.get("notes"),
        created_by=created_by,
        **_prices(data),
    ))


def update_trip(
    trips: TripRepository,
    fleet: FleetRepository,
    organization_id: int,
    trip_id: int,
    fields: Dict[str, Any],
) -> Trip:
    fields = {k: v for k, v in fields.items() if v is not None}
    if "status" in fields and fields["status"] not in _STATUSES:
        raise BusinessRuleError(f"Invalid trip status: {fields['status']}")
    if "seats_available" in fields and int(fields["seats_available"]) < 0:
        raise BusinessRuleError("seats_available must not be negative")
    _check_links(fleet, organization_id, fields)
    fields.update(_prices(fields))
    trip = trips.update_trip(organization_id, trip_id, fields)
    if trip is None:
        raise NotFoundError("Trip not found")
    return trip
