from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, List, Dict, Any
from core.entities.client import Client, ClientNote


class ClientRepository(ABC):
    @abstractmethod
    def list_clients(self, organization_id: int, search: Optional[str] = None) -> List[Client]:...

    @abstractmethod
    def get_client(self, client_id: int, organization_id: Optional[int] = None) -> Optional[Client]:...

    @abstractmethod
    def get_by_user_id(self, user_id: int) -> Optional[Client]:...

    @abstractmethod
    def create_client(self, client: Client) -> Client:...

    @abstractmethod
    def update_client(self, client_id: int, fields: Dict[str, Any]) -> Optional[Client]:...

    @abstractmethod
    def delete_client(self, organization_id: int, client_id: int) -> bool:...

    @abstractmethod
    def debit_credits_if_sufficient(self, client_id: int, amount: Decimal) -> Client:...

    @abstractmethod
    def add_credits(self, client_id: int, amount: Decimal) -> Client:...

    @abstractmethod
    def add_note(self, client_id: int, content: str, created_by: Optional[int]) -> ClientNote:...

    @abstractmethod
    def list_notes(self, client_id: int) -> List[ClientNote]:...
