from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class BankAccount:
    id: Optional[int]
    organization_id: int
    name: str
    initial_balance: Decimal
    current_balance: Decimal
    currency: str
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    is_default: bool = False
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class CostCenter:
    id: Optional[int]
    organization_id: int
    name: str
    description: Optional[str] = None
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Category:
    id: Optional[int]
    organization_id: int
    name: str
    type: str                       # INCOME | EXPENSE
    cost_center_id: Optional[int] = None
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class TripFinancialSummary:
    trip_id: int
    income: Decimal
    expense: Decimal
    pending_income: Decimal
    reservations: int
    cancelled_reservations: int
    reservation_revenue: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense
