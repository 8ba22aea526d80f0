from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from core.entities.reservation import Reservation


class ReservationRepository(ABC):
    @abstractmethod
    def list_reservations(self, organization_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Reservation]:...

    @abstractmethod
    def get_reservation(self, reservation_id: int, organization_id: Optional[int] = None) -> Optional[Reservation]:...

    @abstractmethod
    def get_by_external_payment_id(self, external_payment_id: str) -> Optional[Reservation]:...

    @abstractmethod
    def create_reservation(self, reservation: Reservation) -> Reservation:...

    @abstractmethod
    def update_reservation(self, reservation_id: int, fields: Dict[str, Any]) -> Optional[Reservation]:...

    @abstractmethod
    def delete_reservation(self, reservation_id: int) -> bool:...

    @abstractmethod
    def is_seat_taken(self, trip_id: int, seat_number: str, exclude_id: Optional[int] = None) -> bool:...

    @abstractmethod
    def reserved_seats(self, trip_id: int) -> List[str]:...

    @abstractmethod
    def list_for_client(self, client_id: int, include_cancelled: bool = False) -> List[Reservation]:...

    @abstractmethod
    def list_for_trip(self, trip_id: int) -> List[Reservation]:...

    @abstractmethod
    def list_pending(self) -> List[Reservation]:...

    @abstractmethod
    def list_for_order(self, order_code: str) -> List[Reservation]:...
