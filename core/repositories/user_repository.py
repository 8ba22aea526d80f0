from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from core.entities.user import User, Organization


class UserRepository(ABC):
    @abstractmethod
    def create_organization(self, name: str, slug: str) -> Organization:...

    @abstractmethod
    def get_organization(self, organization_id: int) -> Optional[Organization]:...

    @abstractmethod
    def list_organizations(self) -> List[Organization]:...

    @abstractmethod
    def update_organization(self, organization_id: int, fields: Dict[str, Any]) -> Optional[Organization]:...

    @abstractmethod
    def create_user(self, email: str, password_hash: str, role: str, organization_id: Optional[int],
                    username: Optional[str] = None, name: Optional[str] = None) -> User:...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:...

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[User]:...

    @abstractmethod
    def get_by_id(self, user_id: int) -> Optional[User]:...

    @abstractmethod
    def list_users(self, organization_id: int) -> List[User]:...

    @abstractmethod
    def update_user(self, user_id: int, organization_id: int, fields: Dict[str, Any]) -> Optional[User]:...

    @abstractmethod
    def delete_user(self, user_id: int, organization_id: int) -> bool:...
