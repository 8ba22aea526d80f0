from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class MaintenanceType(str, Enum):
    PREVENTIVE = "PREVENTIVE"
    CORRECTIVE = "CORRECTIVE"
    INSPECTION = "INSPECTION"


class MaintenanceStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass
class Maintenance:
    id: Optional[int]
    organization_id: int
    vehicle_id: int
    type: str
    status: str
    scheduled_date: str
    description: Optional[str] = None
    km: int = 0
    cost_parts: Decimal = Decimal("0")
    cost_labor: Decimal = Decimal("0")
    currency: str = "BRL"
    workshop: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def total_cost(self) -> Decimal:
        return (self.cost_parts or Decimal("0")) + (self.cost_labor or Decimal("0"))
