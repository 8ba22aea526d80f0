from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from core.entities.user import Role
from core.use_cases.audit_use_cases import record_event
from core.use_cases.trip_use_cases import create_trip, update_trip
from infrastructure.db.fleet_repository import SQLiteFleetRepository
from infrastructure.db.sqlite import SQLiteAuditRepository
from infrastructure.db.trip_repository import SQLiteTripRepository
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_trip_repo, get_fleet_repo, get_audit_repo, http_error, request_meta,
)
from infrastructure.web.schemas import TripRequest, TripUpdateRequest, TripResponse

router = APIRouter(prefix="/api/trips", tags=["trips"])

trip_readers = authorize(Role.ADMIN, Role.OPERACIONAL, Role.VENDAS)
trip_writers = authorize(Role.ADMIN, Role.OPERACIONAL)


@router.get("", response_model=List[TripResponse])
def list_trips(
    status: Optional[str] = None,
    ctx: AuthContext = Depends(trip_readers),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
):
    try:
        return [TripResponse.model_validate(t) for t in trips.list_trips(ctx.organization_id, status)]
    except Exception as e:
        raise http_error(e, "Failed to fetch trips")

@router.get("/{trip_id}", response_model=TripResponse)
def get_trip(trip_id: int, ctx: AuthContext = Depends(trip_readers), trips: SQLiteTripRepository = Depends(get_trip_repo)):
    trip = trips.get_trip(trip_id, ctx.organization_id)
    if trip is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return TripResponse.model_validate(trip)

@router.post("", response_model=TripResponse, status_code=201)
def add_trip(
    payload: TripRequest,
    request: Request,
    ctx: AuthContext = Depends(trip_writers),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        trip = create_trip(trips, fleet, ctx.organization_id, payload.model_dump(exclude_unset=True), ctx.user.id)
    except Exception as e:
        raise http_error(e, "Failed to create trip")
    record_event(audit, "TRIP_CREATE", "trip", trip.id, ctx.organization_id, ctx.user.id,
                 new_data={"trip_code": trip.trip_code, "departure_date": trip.departure_date}, **request_meta(request))
    return TripResponse.model_validate(trip)

@router.put("/{trip_id}", response_model=TripResponse)
def edit_trip(
    trip_id: int,
    payload: TripUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(trip_writers),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        trip = update_trip(trips, fleet, ctx.organization_id, trip_id, changes)
    except Exception as e:
        raise http_error(e, "Failed to update trip")
    record_event(audit, "TRIP_UPDATE", "trip", trip_id, ctx.organization_id, ctx.user.id,
                 new_data=changes, **request_meta(request))
    return TripResponse.model_validate(trip)

@router.delete("/{trip_id}")
def remove_trip(
    trip_id: int,
    request: Request,
    ctx: AuthContext = Depends(trip_writers),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    if not trips.delete_trip(ctx.organization_id, trip_id):
        raise HTTPException(status_code=404, detail="Trip not found")
    record_event(audit, "TRIP_DELETE", "trip", trip_id, ctx.organization_id, ctx.user.id, **request_meta(request))
    return {"success": True}
