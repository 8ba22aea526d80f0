from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    PIX = "PIX"
    CASH = "DINHEIRO"
    CREDIT_CARD = "CARTAO_CREDITO"
    DEBIT_CARD = "CARTAO_DEBITO"
    BOLETO = "BOLETO"
    TRANSFER = "TRANSFERENCIA"
    CREDITS = "CREDITOS"
    DIGITAL = "DIGITAL"


# ledger categories written by the automatic entries
CATEGORY_TICKET_SALE = "VENDA_PASSAGEM"
CATEGORY_MAINTENANCE = "MANUTENCAO"
CATEGORY_PARCEL = "ENCOMENDA"
CATEGORY_CHARTER = "FRETAMENTO"
CATEGORY_OTHER = "OUTROS"


@dataclass
class Transaction:
    id: Optional[int]
    organization_id: int
    type: str                       # INCOME | EXPENSE
    description: str
    amount: Decimal                 # always positive, sign comes from type
    currency: str
    date: Optional[str]             # issue date, ISO
    status: str
    due_date: Optional[str] = None
    payment_date: Optional[str] = None
    payment_method: Optional[str] = None
    category: Optional[str] = None
    category_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    bank_account_id: Optional[int] = None
    trip_id: Optional[int] = None
    reservation_id: Optional[int] = None
    maintenance_id: Optional[int] = None
    parcel_id: Optional[int] = None
    charter_id: Optional[int] = None
    client_id: Optional[int] = None
    accounting_classification: Optional[str] = None
    document_number: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == TransactionType.INCOME.value else -self.amount
