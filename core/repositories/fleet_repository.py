from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from core.entities.fleet import Vehicle, Driver
from core.entities.maintenance import Maintenance


class FleetRepository(ABC):
    @abstractmethod
    def list_vehicles(self, organization_id: int) -> List[Vehicle]:...

    @abstractmethod
    def get_vehicle(self, organization_id: int, vehicle_id: int) -> Optional[Vehicle]:...

    @abstractmethod
    def create_vehicle(self, vehicle: Vehicle) -> Vehicle:...

    @abstractmethod
    def update_vehicle(self, organization_id: int, vehicle_id: int, fields: Dict[str, Any]) -> Optional[Vehicle]:...

    @abstractmethod
    def delete_vehicle(self, organization_id: int, vehicle_id: int) -> bool:...

    @abstractmethod
    def list_drivers(self, organization_id: int) -> List[Driver]:...

    @abstractmethod
    def get_driver(self, organization_id: int, driver_id: int) -> Optional[Driver]:...

    @abstractmethod
    def create_driver(self, driver: Driver) -> Driver:...

    @abstractmethod
    def update_driver(self, organization_id: int, driver_id: int, fields: Dict[str, Any]) -> Optional[Driver]:...

    @abstractmethod
    def delete_driver(self, organization_id: int, driver_id: int) -> bool:...

    @abstractmethod
    def list_maintenance(self, organization_id: int, vehicle_id: Optional[int] = None) -> List[Maintenance]:...

    @abstractmethod
    def get_maintenance(self, organization_id: int, maintenance_id: int) -> Optional[Maintenance]:...

    @abstractmethod
    def create_maintenance(self, maintenance: Maintenance) -> Maintenance:...

    @abstractmethod
    def update_maintenance(self, organization_id: int, maintenance_id: int,
                           fields: Dict[str, Any]) -> Optional[Maintenance]:...

    @abstractmethod
    def delete_maintenance(self, organization_id: int, maintenance_id: int) -> bool:...
