from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from core.entities.trip import Trip


class TripRepository(ABC):
    @abstractmethod
    def list_trips(self, organization_id: int, status: Optional[str] = None) -> List[Trip]:...

    @abstractmethod
    def search_public_trips(self, origin_city: Optional[str] = None, destination_city: Optional[str] = None,
                            departure_date: Optional[str] = None) -> List[Trip]:...

    @abstractmethod
    def get_trip(self, trip_id: int, organization_id: Optional[int] = None) -> Optional[Trip]:...

    @abstractmethod
    def create_trip(self, trip: Trip) -> Trip:...

    @abstractmethod
    def update_trip(self, organization_id: int, trip_id: int, fields: Dict[str, Any]) -> Optional[Trip]:...

    @abstractmethod
    def delete_trip(self, organization_id: int, trip_id: int) -> bool:...

    @abstractmethod
    def adjust_seats(self, trip_id: int, delta: int) -> None:...
