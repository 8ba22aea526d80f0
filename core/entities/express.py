from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class ParcelStatus(str, Enum):
    AWAITING = "AWAITING"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class CharterStatus(str, Enum):
    REQUEST = "REQUEST"
    QUOTED = "QUOTED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# charters in these states owe their quote
CHARTER_BILLABLE = (CharterStatus.CONFIRMED.value, CharterStatus.IN_PROGRESS.value, CharterStatus.COMPLETED.value)


@dataclass
class Parcel:
    id: Optional[int]
    organization_id: int
    tracking_code: str
    sender_name: str
    recipient_name: str
    origin_city: str
    destination_city: str
    status: str
    price: Decimal = Decimal("0")
    sender_document: Optional[str] = None
    sender_phone: Optional[str] = None
    recipient_document: Optional[str] = None
    recipient_phone: Optional[str] = None
    origin_state: Optional[str] = None
    destination_state: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[Decimal] = None        # kg
    dimensions: Optional[str] = None
    trip_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Charter:
    id: Optional[int]
    organization_id: int
    contact_name: str
    origin_city: str
    destination_city: str
    departure_date: str
    status: str
    passenger_count: int = 1
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    company_name: Optional[str] = None
    origin_state: Optional[str] = None
    destination_state: Optional[str] = None
    departure_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None
    vehicle_type_requested: Optional[str] = None
    description: Optional[str] = None
    quote_price: Optional[Decimal] = None
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
