import logging
import secrets
from decimal import Decimal
from typing import Optional, Dict, Any, List

from core.entities.reservation import Reservation, ReservationStatus
from core.entities.transaction import TransactionType
from core.errors import BusinessRuleError, ConflictError, NotFoundError
from core.repositories.client_repository import ClientRepository
from core.repositories.finance_repository import FinanceRepository
from core.repositories.reservation_repository import ReservationRepository
from core.repositories.trip_repository import TripRepository
from core.services.pricing import get_price_by_seat_type, normalize_seat_type, to_decimal
from core.use_cases.finance_use_cases import cancel_open_transactions, create_reservation_transaction

logger = logging.getLogger(__name__)

_STATUSES = {s.value for s in ReservationStatus}
CANCELLED = ReservationStatus.CANCELLED.value


def generate_code(prefix: str) -> str:
    """``T-1A2B3C`` style codes for tickets and trips."""
    return f"{prefix}-{secrets.token_hex(3).upper()}"


def create_reservation(
    reservations: ReservationRepository,
    trips: TripRepository,
    clients: ClientRepository,
    finance: FinanceRepository,
    organization_id: int,
    data: Dict[str, Any],
    created_by: Optional[int] = None,
) -> Reservation:
    """Admin booking. Run inside one DB transaction: a failed credit debit undoes the seat."""
    trip = trips.get_trip(data["trip_id"], organization_id)
    if trip is None:
        raise NotFoundError("Trip not found")

    status = data.get("status")
    if status not in _STATUSES:
        status = ReservationStatus.PENDING.value

    seat_number = data.get("seat_number")
    seat_number = str(seat_number) if seat_number not in (None, "") else None
    if seat_number and reservations.is_seat_taken(trip.id, seat_number):
        raise ConflictError(f"O assento {seat_number} já está reservado para esta viagem.")

    client_id = data.get("client_id")
    if client_id and clients.get_client(client_id, organization_id) is None:
        raise BusinessRuleError("Client not found")

    seat_type = normalize_seat_type(data.get("seat_type"))
    price = data.get("price")
    price = get_price_by_seat_type(trip, seat_type) if price in (None, "") else to_decimal(price)

    credits_used = max(Decimal("0"), to_decimal(data.get("credits_used")))

    reservation = reservations.create_reservation(Reservation(
        id=None,
        organization_id=organization_id,
        trip_id=trip.id,
        ticket_code=generate_code("T"),
        seat_number=seat_number,
        seat_type=seat_type,
        passenger_name=data["passenger_name"],
        passenger_document=data.get("passenger_document"),
        passenger_email=data.get("passenger_email"),
        passenger_phone=data.get("passenger_phone"),
        boarding_point=data.get("boarding_point"),
        dropoff_point=data.get("dropoff_point"),
        status=status,
        price=price,
        client_id=client_id or None,
        amount_paid=to_decimal(data.get("amount_paid")),
        payment_method=data.get("payment_method"),
        external_payment_id=data.get("external_payment_id"),
        credits_used=credits_used,
        notes=data.get("notes"),
        created_by=created_by,
    ))

    if status != CANCELLED:
        trips.adjust_seats(trip.id, -1)

    if credits_used > 0 and client_id:
        clients.debit_credits_if_sufficient(client_id, credits_used)

    create_reservation_transaction(finance, reservation, created_by)
    return reservation


def update_reservation(
    reservations: ReservationRepository,
    trips: TripRepository,
    organization_id: int,
    reservation_id: int,
    fields: Dict[str, Any],
) -> Reservation:
    current = reservations.get_reservation(reservation_id, organization_id)
    if current is None:
        raise NotFoundError("Reservation not found")

    fields = {k: v for k, v in fields.items() if v is not None}
    if "status" in fields and fields["status"] not in _STATUSES:
        raise BusinessRuleError(f"Invalid reservation status: {fields['status']}")
    for money in ("amount_paid", "price"):
        if money in fields:
            fields[money] = to_decimal(fields[money])

    new_status = fields.get("status", current.status)
    new_seat = fields.get("seat_number", current.seat_number)
    if new_seat and new_status != CANCELLED and (new_seat != current.seat_number or current.status == CANCELLED):
        if reservations.is_seat_taken(current.trip_id, str(new_seat), exclude_id=current.id):
            raise ConflictError(f"O assento {new_seat} já está reservado para esta viagem.")

    updated = reservations.update_reservation(reservation_id, fields)

    if new_status == CANCELLED and current.status != CANCELLED:
        trips.adjust_seats(current.trip_id, 1)
    elif new_status != CANCELLED and current.status == CANCELLED:
        trips.adjust_seats(current.trip_id, -1)
    return updated


def delete_reservation(
    reservations: ReservationRepository,
    trips: TripRepository,
    organization_id: int,
    reservation_id: int,
) -> Reservation:
    current = reservations.get_reservation(reservation_id, organization_id)
    if current is None:
        raise NotFoundError("Reservation not found")
    if current.status != CANCELLED:
        trips.adjust_seats(current.trip_id, 1)
    reservations.delete_reservation(reservation_id)
    return current


def order_group(reservations: ReservationRepository, reservation: Reservation) -> List[Reservation]:
    """Every reservation bought together with ``reservation``, itself included."""
    if reservation.order_code:
        return reservations.list_for_order(reservation.order_code)
    if reservation.external_payment_id:
        return [
            r for r in reservations.list_for_trip(reservation.trip_id)
            if r.external_payment_id == reservation.external_payment_id
        ]
    return [reservation]


def cancel_reservation(
    reservations: ReservationRepository,
    trips: TripRepository,
    clients: ClientRepository,
    finance: FinanceRepository,
    reservation_id: int,
    reason: Optional[str] = None,
) -> Reservation:
    """Cancellation coming from the payment automation (expired checkouts).

    Gives back the seat and any credits the passenger spent. Once the whole
    order is cancelled its open receivables are cancelled too.
    """
    current = reservations.get_reservation(reservation_id)
    if current is None:
        raise NotFoundError("Reservation not found")
    if current.status == CANCELLED:
        return current
    note = f"[Cancelado via automação: {reason or 'Expirado'}]"
    notes = f"{current.notes} {note}" if current.notes else note
    updated = reservations.update_reservation(reservation_id, {"status": CANCELLED, "notes": notes})
    trips.adjust_seats(current.trip_id, 1)

    if current.client_id and current.credits_used > 0:
        clients.add_credits(current.client_id, current.credits_used)
        logger.info("Refunded %s credits to client %s", current.credits_used, current.client_id)

    order = order_group(reservations, updated)
    if all(r.status == CANCELLED for r in order):
        rows = finance.list_transactions_for_reservations(current.organization_id, [r.id for r in order])
        cancel_open_transactions(
            finance, current.organization_id,
            [tx for tx in rows if tx.type == TransactionType.INCOME.value],
        )

    logger.info("Reservation %s cancelled by automation", current.ticket_code)
    return updated
