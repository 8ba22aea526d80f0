"""Callbacks from the payment gateway and the automation that expires unpaid orders.

Every route requires the shared ``X-Webhook-Secret`` header.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from core.use_cases.checkout_use_cases import confirm_payment
from core.use_cases.reservation_use_cases import cancel_reservation
from infrastructure.db.client_repository import SQLiteClientRepository
from infrastructure.db.finance_repository import SQLiteFinanceRepository
from infrastructure.db.reservation_repository import SQLiteReservationRepository
from infrastructure.db.sqlite import TransportConnection, atomic
from infrastructure.db.trip_repository import SQLiteTripRepository
from infrastructure.web.dependencies import (
    get_db, get_reservation_repo, get_finance_repo, get_trip_repo, get_client_repo, http_error,
    verify_webhook_secret,
)
from infrastructure.web.schemas import PaymentConfirmedRequest, CancelReservationRequest, PendingReservationResponse

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"], dependencies=[Depends(verify_webhook_secret)])


@router.post("/payment-confirmed")
def payment_confirmed(
    payload: PaymentConfirmedRequest,
    conn: TransportConnection = Depends(get_db),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    try:
        with atomic(conn):
            reservation = confirm_payment(
                reservations, finance, payload.amount,
                reservation_id=payload.reservation_id,
                external_payment_id=payload.transaction_id,
                payment_method=payload.payment_method,
                payment_date=payload.payment_date,
            )
    except Exception as e:
        raise http_error(e, "Failed to confirm payment")
    return {"success": True, "message": f"Payment confirmed for reservation {reservation.ticket_code}"}

@router.get("/pending-reservations", response_model=List[PendingReservationResponse])
def pending_reservations(reservations: SQLiteReservationRepository = Depends(get_reservation_repo)):
    return [
        PendingReservationResponse(
            id=r.id, ticket_code=r.ticket_code, created_at=r.created_at,
            passenger_name=r.passenger_name, passenger_email=r.passenger_email,
        )
        for r in reservations.list_pending()
    ]

@router.post("/cancel-reservation")
def cancel(
    payload: CancelReservationRequest,
    conn: TransportConnection = Depends(get_db),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    if not payload.reservation_id:
        raise HTTPException(status_code=400, detail="Missing reservation_id")
    try:
        with atomic(conn):
            reservation = cancel_reservation(
                reservations, trips, clients, finance, payload.reservation_id, payload.reason,
            )
    except Exception as e:
        raise http_error(e, "Failed to cancel reservation")
    return {"success": True, "message": f"Reservation {reservation.ticket_code} cancelled"}
