"""
Seat tariff lookup and checkout totals.

A trip carries one tariff per seat type. Checkout sums the passenger prices,
applies the customer's prepaid credits and, for partial payments, charges
only the entry share now and the rest on boarding.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Union

from core.entities.trip import SeatType

CENTS = Decimal("0.01")
ZERO = Decimal("0")
PARTIAL_ENTRY_RATE = Decimal("0.20")

Number = Union[Decimal, int, float, str, None]

SEAT_PRICE_FIELDS = {
    SeatType.CONVENCIONAL.value: "price_conventional",
    SeatType.EXECUTIVO.value: "price_executive",
    SeatType.SEMI_LEITO.value: "price_semi_sleeper",
    SeatType.LEITO.value: "price_sleeper",
    SeatType.CAMA.value: "price_bed",
    SeatType.CAMA_MASTER.value: "price_master_bed",
}

# the portal and older clients send the english names
_SEAT_ALIASES = {
    "CONVENTIONAL": SeatType.CONVENCIONAL.value,
    "EXECUTIVE": SeatType.EXECUTIVO.value,
    "SEMI_SLEEPER": SeatType.SEMI_LEITO.value,
    "SEMILEITO": SeatType.SEMI_LEITO.value,
    "SLEEPER": SeatType.LEITO.value,
    "BED": SeatType.CAMA.value,
    "MASTER_BED": SeatType.CAMA_MASTER.value,
    "CAMAMASTER": SeatType.CAMA_MASTER.value,
}


def to_decimal(value: Number) -> Decimal:
    """Lenient money parsing: None, blanks and garbage become zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except ArithmeticError:
        return ZERO


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_seat_type(seat_type: Optional[str]) -> str:
    if not seat_type:
        return SeatType.CONVENCIONAL.value
    key = str(seat_type).strip().upper().replace("-", "_").replace(" ", "_")
    key = _SEAT_ALIASES.get(key, key)
    return key if key in SEAT_PRICE_FIELDS else SeatType.CONVENCIONAL.value


def _tariff(trip: Any, field_name: str) -> Any:
    if isinstance(trip, dict):
        return trip.get(field_name)
    return getattr(trip, field_name, None)


def get_price_by_seat_type(trip: Any, seat_type: Optional[str]) -> Decimal:
    """Tariff for ``seat_type`` on ``trip`` (entity or row dict).

    Unknown seat types are priced as conventional, and so is a seat type
    whose tariff was never filled in.
    """
    field_name = SEAT_PRICE_FIELDS[normalize_seat_type(seat_type)]
    price = _tariff(trip, field_name)
    if price is None or price == "":
        price = _tariff(trip, SEAT_PRICE_FIELDS[SeatType.CONVENCIONAL.value])
    return to_decimal(price)


@dataclass
class CheckoutTotals:
    total: Decimal
    credits_applied: Decimal
    effective_total: Decimal
    entry_value: Decimal
    remaining: Decimal
    is_partial: bool


def compute_checkout_totals(
    prices: Iterable[Number],
    credits_requested: Number = None,
    is_partial: bool = False,
    credits_available: Number = None,
    entry_rate: Decimal = PARTIAL_ENTRY_RATE,
) -> CheckoutTotals:
    total = sum((to_decimal(p) for p in prices), ZERO)

    credits = max(ZERO, to_decimal(credits_requested))
    if credits_available is not None:
        credits = min(credits, max(ZERO, to_decimal(credits_available)))
    credits = min(credits, total)

    effective_total = max(ZERO, total - credits)
    entry_value = effective_total * entry_rate if is_partial else effective_total
    entry_value = quantize(entry_value)
    effective_total = quantize(effective_total)

    return CheckoutTotals(
        total=quantize(total),
        credits_applied=quantize(credits),
        effective_total=effective_total,
        entry_value=entry_value,
        remaining=effective_total - entry_value,
        is_partial=bool(is_partial),
    )
