import sqlite3
from dataclasses import asdict
from decimal import Decimal
from typing import Optional, List, Dict, Any

from core.entities.fleet import Vehicle, Driver
from core.entities.maintenance import Maintenance
from core.repositories.fleet_repository import FleetRepository
from infrastructure.db.sqlite import SQLiteRepository, utcnow, to_dec

VEHICLE_COLUMNS = ("plate", "model", "type", "status", "passenger_capacity", "current_km", "year", "notes")
DRIVER_COLUMNS = ("name", "status", "document", "phone", "license_number", "license_category",
                  "license_expiry", "notes")
MAINTENANCE_COLUMNS = ("vehicle_id", "type", "status", "scheduled_date", "description", "km",
                       "cost_parts", "cost_labor", "currency", "workshop", "notes")


class SQLiteFleetRepository(SQLiteRepository, FleetRepository):
    def _row_to_vehicle(self, row: sqlite3.Row) -> Vehicle:
        return Vehicle(**{k: row[k] for k in row.keys()})

    def _row_to_driver(self, row: sqlite3.Row) -> Driver:
        return Driver(**{k: row[k] for k in row.keys()})

    def _row_to_maintenance(self, row: sqlite3.Row) -> Maintenance:
        data = {k: row[k] for k in row.keys()}
        data["cost_parts"] = to_dec(data["cost_parts"]) or Decimal("0")
        data["cost_labor"] = to_dec(data["cost_labor"]) or Decimal("0")
        return Maintenance(**data)

    def _create(self, table: str, entity) -> int:
        now = utcnow()
        values = asdict(entity)
        values.pop("id")
        values["created_at"] = now
        values["updated_at"] = now
        return self._insert(table, values)

    def _get(self, table: str, organization_id: int, row_id: int) -> Optional[sqlite3.Row]:
        return self._fetch_one(
            f"SELECT * FROM {table} WHERE id = ? AND organization_id = ?", (int(row_id), int(organization_id))
        )

    # vehicles

    def list_vehicles(self, organization_id: int) -> List[Vehicle]:
        rows = self._fetch_all("SELECT * FROM vehicles WHERE organization_id = ? ORDER BY plate",
                               (int(organization_id),))
        return [self._row_to_vehicle(r) for r in rows]

    def get_vehicle(self, organization_id: int, vehicle_id: int) -> Optional[Vehicle]:
        row = self._get("vehicles", organization_id, vehicle_id)
        return self._row_to_vehicle(row) if row else None

    def create_vehicle(self, vehicle: Vehicle) -> Vehicle:
        return self.get_vehicle(vehicle.organization_id, self._create("vehicles", vehicle))

    def update_vehicle(self, organization_id: int, vehicle_id: int, fields: Dict[str, Any]) -> Optional[Vehicle]:
        if self._update("vehicles", vehicle_id, fields, VEHICLE_COLUMNS, organization_id=organization_id) == 0:
            return None
        return self.get_vehicle(organization_id, vehicle_id)

    def delete_vehicle(self, organization_id: int, vehicle_id: int) -> bool:
        return self._delete("vehicles", vehicle_id, organization_id)

    # drivers

    def list_drivers(self, organization_id: int) -> List[Driver]:
        rows = self._fetch_all("SELECT * FROM drivers WHERE organization_id = ? ORDER BY name",
                               (int(organization_id),))
        return [self._row_to_driver(r) for r in rows]

    def get_driver(self, organization_id: int, driver_id: int) -> Optional[Driver]:
        row = self._get("drivers", organization_id, driver_id)
        return self._row_to_driver(row) if row else None

    def create_driver(self, driver: Driver) -> Driver:
        return self.get_driver(driver.organization_id, self._create("drivers", driver))

    def update_driver(self, organization_id: int, driver_id: int, fields: Dict[str, Any]) -> Optional[Driver]:
        if self._update("drivers", driver_id, fields, DRIVER_COLUMNS, organization_id=organization_id) == 0:
            return None
        return self.get_driver(organization_id, driver_id)

    def delete_driver(self, organization_id: int, driver_id: int) -> bool:
        return self._delete("drivers", driver_id, organization_id)

    # maintenance

    def list_maintenance(self, organization_id: int, vehicle_id: Optional[int] = None) -> List[Maintenance]:
        sql = "SELECT * FROM maintenance WHERE organization_id = ?"
        params: List[Any] = [int(organization_id)]
        if vehicle_id is not None:
            sql += " AND vehicle_id = ?"
            params.append(int(vehicle_id))
        sql += " ORDER BY scheduled_date DESC"
        return [self._row_to_maintenance(r) for r in self._fetch_all(sql, params)]

    def get_maintenance(self, organization_id: int, maintenance_id: int) -> Optional[Maintenance]:
        row = self._get("maintenance", organization_id, maintenance_id)
        return self._row_to_maintenance(row) if row else None

    def create_maintenance(self, maintenance: Maintenance) -> Maintenance:
        return self.get_maintenance(maintenance.organization_id, self._create("maintenance", maintenance))

    def update_maintenance(self, organization_id: int, maintenance_id: int,
                           fields: Dict[str, Any]) -> Optional[Maintenance]:
        changed = self._update("maintenance", maintenance_id, fields, MAINTENANCE_COLUMNS,
                               organization_id=organization_id)
        if changed == 0:
            return None
        return self.get_maintenance(organization_id, maintenance_id)

    def delete_maintenance(self, organization_id: int, maintenance_id: int) -> bool:
        return self._delete("maintenance", maintenance_id, organization_id)
