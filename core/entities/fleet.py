from dataclasses import dataclass
from enum import Enum
from typing import Optional


class VehicleType(str, Enum):
    ONIBUS = "ONIBUS"
    MICRO_ONIBUS = "MICRO_ONIBUS"
    VAN = "VAN"
    CAMINHAO = "CAMINHAO"


class VehicleStatus(str, Enum):
    ACTIVE = "ACTIVE"
    MAINTENANCE = "MAINTENANCE"
    IN_TRIP = "IN_TRIP"


class DriverStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    INACTIVE = "INACTIVE"


@dataclass
class Vehicle:
    id: Optional[int]
    organization_id: int
    plate: str
    model: str
    type: str
    status: str
    passenger_capacity: int = 0
    current_km: int = 0
    year: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Driver:
    id: Optional[int]
    organization_id: int
    name: str
    status: str
    document: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None
    license_category: Optional[str] = None
    license_expiry: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
