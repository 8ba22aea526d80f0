from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from core.entities.express import Parcel, Charter


class ExpressRepository(ABC):
    @abstractmethod
    def list_parcels(self, organization_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Parcel]:...

    @abstractmethod
    def list_parcels_for_client(self, client_id: int) -> List[Parcel]:...

    @abstractmethod
    def get_parcel(self, organization_id: int, parcel_id: int) -> Optional[Parcel]:...

    @abstractmethod
    def get_parcel_by_tracking_code(self, tracking_code: str) -> Optional[Parcel]:...

    @abstractmethod
    def create_parcel(self, parcel: Parcel) -> Parcel:...

    @abstractmethod
    def update_parcel(self, organization_id: int, parcel_id: int, fields: Dict[str, Any]) -> Optional[Parcel]:...

    @abstractmethod
    def delete_parcel(self, organization_id: int, parcel_id: int) -> bool:...

    @abstractmethod
    def list_charters(self, organization_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Charter]:...

    @abstractmethod
    def get_charter(self, organization_id: int, charter_id: int) -> Optional[Charter]:...

    @abstractmethod
    def create_charter(self, charter: Charter) -> Charter:...

    @abstractmethod
    def update_charter(self, organization_id: int, charter_id: int, fields: Dict[str, Any]) -> Optional[Charter]:...

    @abstractmethod
    def delete_charter(self, organization_id: int, charter_id: int) -> bool:...
