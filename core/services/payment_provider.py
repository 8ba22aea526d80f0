from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, List


@dataclass
class PaymentCustomer:
    name: str
    document: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class PaymentItem:
    description: str
    amount: Decimal
    quantity: int = 1


@dataclass
class PaymentRequest:
    amount: Decimal
    customer: PaymentCustomer
    type: str = "PIX"               # PIX | LINK
    items: List[PaymentItem] = field(default_factory=list)
    external_reference: Optional[str] = None


@dataclass
class PaymentReceipt:
    success: bool
    payment_id: Optional[str] = None
    qr_code: Optional[str] = None
    copy_paste_code: Optional[str] = None
    payment_link: Optional[str] = None
    message: Optional[str] = None

class PaymentProvider(ABC):
    @abstractmethod
    def create_payment(self, request: PaymentRequest) -> PaymentReceipt:...
