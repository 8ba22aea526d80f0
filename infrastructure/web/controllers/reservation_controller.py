import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from core.entities.user import Role
from core.use_cases.audit_use_cases import record_event
from core.use_cases.reservation_use_cases import create_reservation, update_reservation, delete_reservation
from infrastructure.db.client_repository import SQLiteClientRepository
from infrastructure.db.finance_repository import SQLiteFinanceRepository
from infrastructure.db.reservation_repository import SQLiteReservationRepository
from infrastructure.db.sqlite import TransportConnection, SQLiteAuditRepository, atomic
from infrastructure.db.trip_repository import SQLiteTripRepository
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_db, get_reservation_repo, get_trip_repo, get_client_repo,
    get_finance_repo, get_audit_repo, http_error, request_meta,
)
from infrastructure.web.schemas import ReservationRequest, ReservationUpdateRequest, ReservationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reservations", tags=["reservations"])

sales_roles = authorize(Role.ADMIN, Role.OPERACIONAL, Role.VENDAS)
delete_roles = authorize(Role.ADMIN, Role.OPERACIONAL)


@router.get("", response_model=List[ReservationResponse])
def list_reservations(
    trip_id: Optional[int] = None,
    status: Optional[str] = None,
    client_id: Optional[int] = None,
    ticket_code: Optional[str] = None,
    passenger_name: Optional[str] = None,
    ctx: AuthContext = Depends(sales_roles),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
):
    filters = {"trip_id": trip_id, "status": status, "client_id": client_id,
               "ticket_code": ticket_code, "passenger_name": passenger_name}
    try:
        return [ReservationResponse.model_validate(r)
                for r in reservations.list_reservations(ctx.organization_id, filters)]
    except Exception as e:
        raise http_error(e, "Failed to fetch reservations")

@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: int,
    ctx: AuthContext = Depends(sales_roles),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
):
    reservation = reservations.get_reservation(reservation_id, ctx.organization_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return ReservationResponse.model_validate(reservation)

@router.post("", response_model=ReservationResponse, status_code=201)
def add_reservation(
    payload: ReservationRequest,
    request: Request,
    ctx: AuthContext = Depends(sales_roles),
    conn: TransportConnection = Depends(get_db),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        with atomic(conn):
            reservation = create_reservation(reservations, trips, clients, finance, ctx.organization_id,
                                             payload.model_dump(), created_by=ctx.user.id)
    except Exception as e:
        raise http_error(e, "Failed to create reservation")
    record_event(audit, "RESERVATION_CREATE", "reservation", reservation.id, ctx.organization_id, ctx.user.id,
                 new_data={"ticket_code": reservation.ticket_code, "trip_id": reservation.trip_id,
                           "seat_number": reservation.seat_number}, **request_meta(request))
    return ReservationResponse.model_validate(reservation)

@router.put("/{reservation_id}", response_model=ReservationResponse)
def edit_reservation(
    reservation_id: int,
    payload: ReservationUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(sales_roles),
    conn: TransportConnection = Depends(get_db),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        with atomic(conn):
            reservation = update_reservation(reservations, trips, ctx.organization_id, reservation_id, changes)
    except Exception as e:
        raise http_error(e, "Failed to update reservation")
    record_event(audit, "RESERVATION_UPDATE", "reservation", reservation_id, ctx.organization_id, ctx.user.id,
                 new_data=changes, **request_meta(request))
    return ReservationResponse.model_validate(reservation)

@router.delete("/{reservation_id}")
def remove_reservation(
    reservation_id: int,
    request: Request,
    ctx: AuthContext = Depends(delete_roles),
    conn: TransportConnection = Depends(get_db),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        with atomic(conn):
            removed = delete_reservation(reservations, trips, ctx.organization_id, reservation_id)
    except Exception as e:
        raise http_error(e, "Failed to delete reservation")
    record_event(audit, "RESERVATION_DELETE", "reservation", reservation_id, ctx.organization_id, ctx.user.id,
                 old_data={"ticket_code": removed.ticket_code, "seat_number": removed.seat_number},
                 **request_meta(request))
    return {"success": True}
