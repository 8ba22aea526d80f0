from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class Client:
    id: Optional[int]
    organization_id: Optional[int]
    name: str
    client_type: str = "PESSOA_FISICA"   # PESSOA_FISICA | PESSOA_JURIDICA
    email: Optional[str] = None
    phone: Optional[str] = None
    document_type: Optional[str] = "CPF"
    document: Optional[str] = None
    corporate_name: Optional[str] = None
    trade_name: Optional[str] = None
    cnpj: Optional[str] = None
    credits: Decimal = Decimal("0")
    user_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class ClientNote:
    id: Optional[int]
    client_id: int
    content: str
    created_by: Optional[int]
    created_at: str
