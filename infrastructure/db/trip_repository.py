import json
import sqlite3
from typing import Optional, List, Dict, Any

from core.entities.trip import Trip, TripStatus
from core.repositories.trip_repository import TripRepository
from infrastructure.db.sqlite import SQLiteRepository, utcnow, to_dec, load_json

PRICE_COLUMNS = (
    "price_conventional", "price_executive", "price_semi_sleeper",
    "price_sleeper", "price_bed", "price_master_bed",
)

TRIP_COLUMNS = (
    "title", "origin_city", "destination_city", "stops", "return_stops", "vehicle_id",
    "driver_id", "departure_date", "departure_time", "arrival_date", "arrival_time",
    "seats_available", "status", "active", "notes",
) + PRICE_COLUMNS

# trips the public portal may sell
BOOKABLE_STATUSES = (TripStatus.SCHEDULED.value, TripStatus.CONFIRMED.value)


class SQLiteTripRepository(SQLiteRepository, TripRepository):
    def _row_to_trip(self, row: sqlite3.Row) -> Trip:
        return Trip(
            id=row["id"],
            organization_id=row["organization_id"],
            trip_code=row["trip_code"],
            title=row["title"],
            origin_city=row["origin_city"],
            destination_city=row["destination_city"],
            stops=load_json(row["stops"], []),
            return_stops=load_json(row["return_stops"], []),
            vehicle_id=row["vehicle_id"],
            driver_id=row["driver_id"],
            departure_date=row["departure_date"],
            departure_time=row["departure_time"],
            arrival_date=row["arrival_date"],
            arrival_time=row["arrival_time"],
            seats_available=int(row["seats_available"]),
            status=row["status"],
            active=bool(row["active"]),
            notes=row["notes"],
            created_by=row["created_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            **{col: to_dec(row[col]) for col in PRICE_COLUMNS},
        )

    @staticmethod
    def _to_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
        out = dict(fields)
        for col in ("stops", "return_stops"):
            if col in out:
                out[col] = json.dumps(out[col] or [], ensure_ascii=False)
        if out.get("active") is not None:
            out["active"] = 1 if out["active"] else 0
        return out

    def list_trips(self, organization_id: int, status: Optional[str] = None) -> List[Trip]:
        sql = "SELECT * FROM trips WHERE organization_id = ?"
        params: List[Any] = [int(organization_id)]
        if status:
            sql += " AND status = ?"
            params.append(status)
        sql += " ORDER BY departure_date ASC, departure_time ASC"
        return [self._row_to_trip(r) for r in self._fetch_all(sql, params)]

    def search_public_trips(self, origin_city: Optional[str] = None, destination_city: Optional[str] = None,
                            departure_date: Optional[str] = None) -> List[Trip]:
        marks = ", ".join("?" for _ in BOOKABLE_STATUSES)
        sql = f"SELECT * FROM trips WHERE status IN ({marks}) AND active = 1"
        params: List[Any] = list(BOOKABLE_STATUSES)
        if origin_city:
            sql += " AND origin_city LIKE ?"
            params.append(f"%{origin_city}%")
        if destination_city:
            sql += " AND destination_city LIKE ?"
            params.append(f"%{destination_city}%")
        if departure_date:
            sql += " AND departure_date = ?"
            params.append(departure_date)
        sql += " ORDER BY departure_date ASC, departure_time ASC"
        return [self._row_to_trip(r) for r in self._fetch_all(sql, params)]

    def get_trip(self, trip_id: int, organization_id: Optional[int] = None) -> Optional[Trip]:
        if organization_id is None:
            row = self._fetch_one("SELECT * FROM trips WHERE id = ?", (int(trip_id),))
        else:
            row = self._fetch_one(
                "SELECT * FROM trips WHERE id = ? AND organization_id = ?", (int(trip_id), int(organization_id))
            )
        return self._row_to_trip(row) if row else None

    def create_trip(self, trip: Trip) -> Trip:
        now = utcnow()
        values = self._to_columns({col: getattr(trip, col) for col in TRIP_COLUMNS})
        values.update({
            "organization_id": trip.organization_id,
            "trip_code": trip.trip_code,
            "created_by": trip.created_by,
            "created_at": now,
            "updated_at": now,
        })
        new_id = self._insert("trips", values)
        return self.get_trip(new_id)

    def update_trip(self, organization_id: int, trip_id: int, fields: Dict[str, Any]) -> Optional[Trip]:
        changed = self._update("trips", trip_id, self._to_columns(fields), TRIP_COLUMNS,
                               organization_id=organization_id)
        if changed == 0:
            return None
        return self.get_trip(trip_id, organization_id)

    def delete_trip(self, organization_id: int, trip_id: int) -> bool:
        return self._delete("trips", trip_id, organization_id)

    def adjust_seats(self, trip_id: int, delta: int) -> None:
        cur = self.conn.cursor()
        cur.execute(
            "UPDATE trips SET seats_available = MAX(0, seats_available + ?), updated_at = ? WHERE id = ?",
            (int(delta), utcnow(), int(trip_id)),
        )
        self._commit()
