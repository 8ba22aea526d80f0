from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, List


class SeatType(str, Enum):
    CONVENCIONAL = "CONVENCIONAL"
    EXECUTIVO = "EXECUTIVO"
    SEMI_LEITO = "SEMI_LEITO"
    LEITO = "LEITO"
    CAMA = "CAMA"
    CAMA_MASTER = "CAMA_MASTER"


class TripStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass
class Trip:
    id: Optional[int]
    organization_id: int
    trip_code: str
    origin_city: str
    destination_city: str
    departure_date: str
    status: str
    seats_available: int
    title: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_date: Optional[str] = None
    arrival_time: Optional[str] = None
    stops: List[dict] = field(default_factory=list)
    return_stops: List[dict] = field(default_factory=list)
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    price_conventional: Optional[Decimal] = None
    price_executive: Optional[Decimal] = None
    price_semi_sleeper: Optional[Decimal] = None
    price_sleeper: Optional[Decimal] = None
    price_bed: Optional[Decimal] = None
    price_master_bed: Optional[Decimal] = None
    active: bool = True
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
