from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "admin"
    FINANCEIRO = "financeiro"
    OPERACIONAL = "operacional"
    VENDAS = "vendas"
    USER = "user"
    CLIENT = "client"


@dataclass
class Organization:
    id: Optional[int]
    name: str
    slug: str
    created_at: str


@dataclass
class User:
    id: Optional[int]
    email: str
    password_hash: str
    role: str
    organization_id: Optional[int]
    created_at: str
    username: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
