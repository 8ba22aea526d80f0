import sqlite3
from dataclasses import asdict
from decimal import Decimal
from typing import Optional, List, Dict, Any

from core.entities.express import Parcel, Charter
from core.repositories.express_repository import ExpressRepository
from infrastructure.db.sqlite import SQLiteRepository, utcnow, to_dec

PARCEL_COLUMNS = (
    "sender_name", "sender_document", "sender_phone", "recipient_name", "recipient_document",
    "recipient_phone", "origin_city", "origin_state", "destination_city", "destination_state",
    "description", "weight", "dimensions", "status", "price", "trip_id", "client_id", "notes",
)
CHARTER_COLUMNS = (
    "contact_name", "contact_email", "contact_phone", "company_name", "origin_city", "origin_state",
    "destination_city", "destination_state", "departure_date", "departure_time", "return_date",
    "return_time", "passenger_count", "vehicle_type_requested", "description", "status",
    "quote_price", "vehicle_id", "driver_id", "client_id", "notes",
)

PARCEL_FILTERS = {
    "status": "status = ?",
    "trip_id": "trip_id = ?",
    "tracking_code": "tracking_code LIKE ?",
    "sender_name": "sender_name LIKE ?",
    "recipient_name": "recipient_name LIKE ?",
}
CHARTER_FILTERS = {
    "status": "status = ?",
    "contact_name": "contact_name LIKE ?",
    "start_date": "departure_date >= ?",
    "end_date": "departure_date <= ?",
}


def _where(sql: str, params: List[Any], filters: Optional[Dict[str, Any]], known: Dict[str, str]) -> str:
    for key, value in (filters or {}).items():
        if value in (None, "") or key not in known:
            continue
        sql += " AND " + known[key]
        params.append(f"%{value}%" if "LIKE" in known[key] else value)
    return sql


class SQLiteExpressRepository(SQLiteRepository, ExpressRepository):
    def _row_to_parcel(self, row: sqlite3.Row) -> Parcel:
        data = {k: row[k] for k in row.keys()}
        data["price"] = to_dec(data["price"]) or Decimal("0")
        data["weight"] = to_dec(data["weight"])
        return Parcel(**data)

    def _row_to_charter(self, row: sqlite3.Row) -> Charter:
        data = {k: row[k] for k in row.keys()}
        data["quote_price"] = to_dec(data["quote_price"])
        return Charter(**data)

    def _create(self, table: str, entity) -> int:
        now = utcnow()
        values = asdict(entity)
        values.pop("id")
        values["created_at"] = now
        values["updated_at"] = now
        return self._insert(table, values)

    # parcels

    def list_parcels(self, organization_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Parcel]:
        params: List[Any] = [int(organization_id)]
        sql = _where("SELECT * FROM parcels WHERE organization_id = ?", params, filters, PARCEL_FILTERS)
        sql += " ORDER BY created_at DESC, id DESC"
        return [self._row_to_parcel(r) for r in self._fetch_all(sql, params)]

    def list_parcels_for_client(self, client_id: int) -> List[Parcel]:
        rows = self._fetch_all("SELECT * FROM parcels WHERE client_id = ? ORDER BY created_at DESC, id DESC",
                               (int(client_id),))
        return [self._row_to_parcel(r) for r in rows]

    def get_parcel(self, organization_id: int, parcel_id: int) -> Optional[Parcel]:
        row = self._fetch_one("SELECT * FROM parcels WHERE id = ? AND organization_id = ?",
                              (int(parcel_id), int(organization_id)))
        return self._row_to_parcel(row) if row else None

    def get_parcel_by_tracking_code(self, tracking_code: str) -> Optional[Parcel]:
        row = self._fetch_one("SELECT * FROM parcels WHERE tracking_code = ?", (tracking_code.strip().upper(),))
        return self._row_to_parcel(row) if row else None

    def create_parcel(self, parcel: Parcel) -> Parcel:
        return self.get_parcel(parcel.organization_id, self._create("parcels", parcel))

    def update_parcel(self, organization_id: int, parcel_id: int, fields: Dict[str, Any]) -> Optional[Parcel]:
        if self._update("parcels", parcel_id, fields, PARCEL_COLUMNS, organization_id=organization_id) == 0:
            return None
        return self.get_parcel(organization_id, parcel_id)

    def delete_parcel(self, organization_id: int, parcel_id: int) -> bool:
        return self._delete("parcels", parcel_id, organization_id)

    # charters

    def list_charters(self, organization_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Charter]:
        params: List[Any] = [int(organization_id)]
        sql = _where("SELECT * FROM charters WHERE organization_id = ?", params, filters, CHARTER_FILTERS)
        sql += " ORDER BY departure_date DESC, id DESC"
        return [self._row_to_charter(r) for r in self._fetch_all(sql, params)]

    def get_charter(self, organization_id: int, charter_id: int) -> Optional[Charter]:
        row = self._fetch_one("SELECT * FROM charters WHERE id = ? AND organization_id = ?",
                              (int(charter_id), int(organization_id)))
        return self._row_to_charter(row) if row else None

    def create_charter(self, charter: Charter) -> Charter:
        return self.get_charter(charter.organization_id, self._create("charters", charter))

    def update_charter(self, organization_id: int, charter_id: int, fields: Dict[str, Any]) -> Optional[Charter]:
        if self._update("charters", charter_id, fields, CHARTER_COLUMNS, organization_id=organization_id) == 0:
            return None
        return self.get_charter(organization_id, charter_id)

    def delete_charter(self, organization_id: int, charter_id: int) -> bool:
        return self._delete("charters", charter_id, organization_id)
