from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass
class Reservation:
    id: Optional[int]
    organization_id: int
    trip_id: int
    ticket_code: str
    passenger_name: str
    status: str
    price: Decimal
    seat_number: Optional[str] = None
    seat_type: Optional[str] = None
    passenger_document: Optional[str] = None
    passenger_email: Optional[str] = None
    passenger_phone: Optional[str] = None
    boarding_point: Optional[str] = None
    dropoff_point: Optional[str] = None
    client_id: Optional[int] = None
    amount_paid: Decimal = Decimal("0")
    payment_method: Optional[str] = None
    external_payment_id: Optional[str] = None
    order_code: Optional[str] = None          # shared by the passengers of one portal checkout
    credits_used: Decimal = Decimal("0")
    is_partial: bool = False
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
