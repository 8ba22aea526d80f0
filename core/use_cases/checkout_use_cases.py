"""
Public portal checkout and payment confirmation.

Prices, credits and the entry share are always recomputed here from the
trip's tariff table; amounts sent by the browser are only compared and
logged, never charged.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List, Any

from core.entities.client import Client
from core.entities.reservation import Reservation, ReservationStatus
from core.entities.transaction import (
    Transaction, TransactionType, TransactionStatus, PaymentMethod,
    CATEGORY_TICKET_SALE, CATEGORY_OTHER,
)
from core.entities.trip import Trip
from core.errors import BusinessRuleError, ConflictError, InsufficientCreditsError, NotFoundError
from core.repositories.client_repository import ClientRepository
from core.repositories.finance_repository import FinanceRepository
from core.repositories.reservation_repository import ReservationRepository
from core.repositories.trip_repository import TripRepository
from core.services.payment_provider import (
    PaymentProvider, PaymentRequest, PaymentReceipt, PaymentCustomer, PaymentItem,
)
from core.services.pricing import (
    CheckoutTotals, PARTIAL_ENTRY_RATE, ZERO,
    compute_checkout_totals, get_price_by_seat_type, normalize_seat_type, to_decimal,
)
from core.entities.trip import TripStatus
from core.use_cases.finance_use_cases import change_transaction, record_transaction
from core.use_cases.reservation_use_cases import generate_code, order_group

logger = logging.getLogger(__name__)

BOOKABLE = {TripStatus.SCHEDULED.value, TripStatus.CONFIRMED.value}


@dataclass
class CheckoutPassenger:
    seat_number: str
    passenger_name: str
    seat_type: Optional[str] = None
    passenger_document: Optional[str] = None
    passenger_email: Optional[str] = None
    passenger_phone: Optional[str] = None
    boarding_point: Optional[str] = None
    dropoff_point: Optional[str] = None


@dataclass
class CheckoutOrder:
    trip: Trip
    client: Client
    totals: CheckoutTotals
    order_code: Optional[str] = None
    reservations: List[Reservation] = field(default_factory=list)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _spread_credits(prices: List[Decimal], credits: Decimal) -> List[Decimal]:
    """Hand the applied credits to the seats in order, never more than a seat costs."""
    shares = []
    for price in prices:
        share = min(price, credits)
        shares.append(share)
        credits -= share
    return shares


def place_order(
    *,
    trips: TripRepository,
    reservations: ReservationRepository,
    clients: ClientRepository,
    finance: FinanceRepository,
    client: Client,
    trip_id: int,
    passengers: List[CheckoutPassenger],
    credits_requested: Any = None,
    is_partial: bool = False,
    entry_rate: Decimal = PARTIAL_ENTRY_RATE,
    client_entry_value: Any = None,
) -> CheckoutOrder:
    """Reservations, credit debit and receivables for one portal order.

    Must run inside a single DB transaction.
    """
    if not passengers:
        raise BusinessRuleError("No reservations provided")

    trip = trips.get_trip(trip_id)
    if trip is None or not trip.active or trip.status not in BOOKABLE:
        raise NotFoundError("Trip not found")
    if trip.seats_available < len(passengers):
        raise BusinessRuleError("Not enough seats available")

    seats = [str(p.seat_number) for p in passengers]
    if len(set(seats)) != len(seats):
        raise ConflictError("O mesmo assento foi selecionado mais de uma vez.")
    for seat in seats:
        if reservations.is_seat_taken(trip.id, seat):
            raise ConflictError(f"O assento {seat} já está reservado.")

    prices = [get_price_by_seat_type(trip, p.seat_type) for p in passengers]

    requested = max(ZERO, to_decimal(credits_requested))
    if requested > client.credits:
        raise InsufficientCreditsError("Saldo de créditos insuficiente")
    totals = compute_checkout_totals(
        prices, credits_requested=requested, is_partial=is_partial,
        credits_available=client.credits, entry_rate=entry_rate,
    )

    if client_entry_value not in (None, "") and to_decimal(client_entry_value) != totals.entry_value:
        logger.warning(
            "Checkout entry value mismatch for client %s: sent %s, computed %s",
            client.id, client_entry_value, totals.entry_value,
        )

    org = trip.organization_id
    title = trip.title or f"{trip.origin_city} → {trip.destination_city}"

    if totals.credits_applied > 0:
        clients.debit_credits_if_sufficient(client.id, totals.credits_applied)
        record_transaction(finance, Transaction(
            id=None,
            organization_id=org,
            type=TransactionType.EXPENSE.value,
            description=f"Uso de créditos na reserva - {title}",
            amount=totals.credits_applied,
            currency="BRL",
            date=_now(),
            payment_date=_now(),
            status=TransactionStatus.PAID.value,
            payment_method=PaymentMethod.CREDITS.value,
            category=CATEGORY_OTHER,
            trip_id=trip.id,
            client_id=client.id,
        ))

    order = CheckoutOrder(trip=trip, client=client, totals=totals, order_code=generate_code("PED"))
    # nothing left to charge: the order is settled by credits alone
    settled = totals.entry_value <= 0
    status = ReservationStatus.CONFIRMED.value if settled else ReservationStatus.PENDING.value
    for passenger, price, credit in zip(passengers, prices, _spread_credits(prices, totals.credits_applied)):
        order.reservations.append(reservations.create_reservation(Reservation(
            id=None,
            organization_id=org,
            trip_id=trip.id,
            ticket_code=generate_code("T"),
            seat_number=str(passenger.seat_number),
            seat_type=normalize_seat_type(passenger.seat_type),
            passenger_name=passenger.passenger_name,
            passenger_document=passenger.passenger_document,
            passenger_email=passenger.passenger_email,
            passenger_phone=passenger.passenger_phone,
            boarding_point=passenger.boarding_point,
            dropoff_point=passenger.dropoff_point,
            status=status,
            price=price,
            client_id=client.id,
            amount_paid=credit,
            credits_used=credit,
            payment_method=PaymentMethod.CREDITS.value if settled else None,
            order_code=order.order_code,
            is_partial=bool(is_partial),
        )))

    description = f"Reserva Portal: {title} ({len(order.reservations)} pax)"
    first_id = order.reservations[0].id
    if totals.entry_value > 0:
        record_transaction(finance, Transaction(
            id=None,
            organization_id=org,
            type=TransactionType.INCOME.value,
            description=description + (" - Entrada/Sinal" if is_partial else ""),
            amount=totals.entry_value,
            currency="BRL",
            date=_now(),
            status=TransactionStatus.PENDING.value,
            category=CATEGORY_TICKET_SALE,
            trip_id=trip.id,
            reservation_id=first_id,
            client_id=client.id,
        ))
    if is_partial and totals.remaining > 0:
        record_transaction(finance, Transaction(
            id=None,
            organization_id=org,
            type=TransactionType.INCOME.value,
            description=description + " - Restante no Embarque",
            amount=totals.remaining,
            currency="BRL",
            date=_now(),
            due_date=trip.departure_date,
            status=TransactionStatus.PENDING.value,
            category=CATEGORY_TICKET_SALE,
            trip_id=trip.id,
            reservation_id=first_id,
            client_id=client.id,
        ))

    trips.adjust_seats(trip.id, -len(order.reservations))
    logger.info(
        "Checkout placed: %d reservations on trip %s for client %s (entry %s)",
        len(order.reservations), trip.trip_code, client.id, totals.entry_value,
    )
    return order


def request_checkout_payment(
    provider: PaymentProvider,
    reservations: ReservationRepository,
    order: CheckoutOrder,
    payment_type: str = "PIX",
) -> Optional[PaymentReceipt]:
    """Ask the gateway for the entry amount. Nothing to charge when credits covered it."""
    if order.totals.entry_value <= 0:
        return None
    trip_label = order.trip.title or order.trip.trip_code
    request = PaymentRequest(
        amount=order.totals.entry_value,
        customer=PaymentCustomer(
            name=order.client.name,
            document=order.client.document,
            email=order.client.email,
            phone=order.client.phone,
        ),
        type=payment_type,
        items=[
            PaymentItem(description=f"Passagem {trip_label} - assento {r.seat_number}", amount=r.price)
            for r in order.reservations
        ],
        external_reference=order.order_code,
    )
    receipt = provider.create_payment(request)
    if receipt.success and receipt.payment_id:
        for reservation in order.reservations:
            reservations.update_reservation(reservation.id, {
                "external_payment_id": receipt.payment_id,
                "payment_method": payment_type,
            })
    else:
        logger.warning("Payment request failed for %s: %s", request.external_reference, receipt.message)
    return receipt


def confirm_payment(
    reservations: ReservationRepository,
    finance: FinanceRepository,
    amount: Any,
    reservation_id: Optional[int] = None,
    external_payment_id: Optional[str] = None,
    payment_method: Optional[str] = None,
    payment_date: Optional[str] = None,
) -> Reservation:
    """Gateway callback. Must run inside a single DB transaction."""
    amount = to_decimal(amount)
    if (not reservation_id and not external_payment_id) or amount <= 0:
        raise BusinessRuleError("Missing required fields: (reservation_id OR transaction_id), amount")

    reservation = reservations.get_reservation(reservation_id) if reservation_id else None
    if reservation is None and external_payment_id:
        reservation = reservations.get_by_external_payment_id(external_payment_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")

    confirmed = reservations.update_reservation(reservation.id, {
        "status": ReservationStatus.CONFIRMED.value,
        "amount_paid": reservation.amount_paid + amount,
        "payment_method": payment_method or reservation.payment_method,
    })
    order = order_group(reservations, reservation)
    for sibling in order:
        if sibling.id != reservation.id and sibling.status == ReservationStatus.PENDING.value:
            reservations.update_reservation(sibling.id, {"status": ReservationStatus.CONFIRMED.value})

    paid_at = payment_date or _now()
    method = payment_method or PaymentMethod.DIGITAL.value
    # checkout books the order's receivables against its first passenger
    pending = [
        tx for tx in finance.list_transactions_for_reservations(reservation.organization_id, [r.id for r in order])
        if tx.type == TransactionType.INCOME.value
        and tx.status == TransactionStatus.PENDING.value
        and tx.amount == amount
    ]
    if pending:
        change_transaction(finance, reservation.organization_id, pending[0].id, {
            "status": TransactionStatus.PAID.value,
            "payment_date": paid_at,
            "payment_method": method,
            "document_number": external_payment_id,
        })
    else:
        record_transaction(finance, Transaction(
            id=None,
            organization_id=reservation.organization_id,
            type=TransactionType.INCOME.value,
            description=f"Pagamento Digital - Reserva {reservation.ticket_code}",
            amount=amount,
            currency="BRL",
            date=_now(),
            due_date=_now(),
            payment_date=paid_at,
            status=TransactionStatus.PAID.value,
            payment_method=method,
            category=CATEGORY_TICKET_SALE,
            trip_id=reservation.trip_id,
            reservation_id=reservation.id,
            client_id=reservation.client_id,
            document_number=external_payment_id,
            notes="Confirmação automática via webhook",
            created_by=reservation.created_by,
        ))

    logger.info("Payment of %s confirmed for reservation %s", amount, reservation.ticket_code)
    return confirmed
