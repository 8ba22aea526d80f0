import sqlite3
from dataclasses import asdict
from decimal import Decimal
from typing import Optional, List, Dict, Any

from core.entities.reservation import Reservation, ReservationStatus
from core.errors import ConflictError
from core.repositories.reservation_repository import ReservationRepository
from infrastructure.db.sqlite import SQLiteRepository, utcnow, to_dec

RESERVATION_COLUMNS = (
    "status", "seat_number", "seat_type", "passenger_name", "passenger_document",
    "passenger_email", "passenger_phone", "boarding_point", "dropoff_point", "price",
    "client_id", "amount_paid", "payment_method", "external_payment_id", "credits_used",
    "is_partial", "notes",
)

FILTERS = {
    "trip_id": "trip_id = ?",
    "status": "status = ?",
    "client_id": "client_id = ?",
    "ticket_code": "ticket_code LIKE ?",
    "passenger_name": "passenger_name LIKE ?",
}


class SQLiteReservationRepository(SQLiteRepository, ReservationRepository):
    def _row_to_reservation(self, row: sqlite3.Row) -> Reservation:
        data = {k: row[k] for k in row.keys()}
        for col in ("price", "amount_paid", "credits_used"):
            data[col] = to_dec(data[col]) or Decimal("0")
        data["is_partial"] = bool(data["is_partial"])
        return Reservation(**data)

    def list_reservations(self, organization_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Reservation]:
        sql = "SELECT * FROM reservations WHERE organization_id = ?"
        params: List[Any] = [int(organization_id)]
        for key, value in (filters or {}).items():
            if value in (None, "") or key not in FILTERS:
                continue
            sql += " AND " + FILTERS[key]
            params.append(f"%{value}%" if "LIKE" in FILTERS[key] else value)
        sql += " ORDER BY created_at DESC, id DESC"
        return [self._row_to_reservation(r) for r in self._fetch_all(sql, params)]

    def get_reservation(self, reservation_id: int, organization_id: Optional[int] = None) -> Optional[Reservation]:
        if organization_id is None:
            row = self._fetch_one("SELECT * FROM reservations WHERE id = ?", (int(reservation_id),))
        else:
            row = self._fetch_one(
                "SELECT * FROM reservations WHERE id = ? AND organization_id = ?",
                (int(reservation_id), int(organization_id)),
            )
        return self._row_to_reservation(row) if row else None

    def get_by_external_payment_id(self, external_payment_id: str) -> Optional[Reservation]:
        row = self._fetch_one(
            "SELECT * FROM reservations WHERE external_payment_id = ? ORDER BY id LIMIT 1", (external_payment_id,)
        )
        return self._row_to_reservation(row) if row else None

    def create_reservation(self, reservation: Reservation) -> Reservation:
        now = utcnow()
        values = asdict(reservation)
        values.pop("id")
        values["is_partial"] = 1 if reservation.is_partial else 0
        values["created_at"] = now
        values["updated_at"] = now
        try:
            new_id = self._insert("reservations", values)
        except sqlite3.IntegrityError as e:
            if "ux_reservations_trip_seat" in str(e) or "reservations.trip_id, reservations.seat_number" in str(e):
                raise ConflictError(f"O assento {reservation.seat_number} já está reservado para esta viagem.")
            raise
        return self.get_reservation(new_id)

    def update_reservation(self, reservation_id: int, fields: Dict[str, Any]) -> Optional[Reservation]:
        fields = dict(fields)
        if fields.get("is_partial") is not None:
            fields["is_partial"] = 1 if fields["is_partial"] else 0
        try:
            changed = self._update("reservations", reservation_id, fields, RESERVATION_COLUMNS)
        except sqlite3.IntegrityError:
            raise ConflictError("Seat already reserved for this trip")
        if changed == 0:
            return None
        return self.get_reservation(reservation_id)

    def delete_reservation(self, reservation_id: int) -> bool:
        cur = self.conn.cursor()
        cur.execute("DELETE FROM reservations WHERE id = ?", (int(reservation_id),))
        self._commit()
        return cur.rowcount > 0

    def is_seat_taken(self, trip_id: int, seat_number: str, exclude_id: Optional[int] = None) -> bool:
        row = self._fetch_one(
            "SELECT id FROM reservations WHERE trip_id = ? AND seat_number = ? AND status != ? AND id != ? LIMIT 1",
            (int(trip_id), str(seat_number), ReservationStatus.CANCELLED.value, int(exclude_id or 0)),
        )
        return row is not None

    def reserved_seats(self, trip_id: int) -> List[str]:
        rows = self._fetch_all(
            "SELECT seat_number FROM reservations WHERE trip_id = ? AND status != ? AND seat_number IS NOT NULL",
            (int(trip_id), ReservationStatus.CANCELLED.value),
        )
        return [r["seat_number"] for r in rows]

    def list_for_client(self, client_id: int, include_cancelled: bool = False) -> List[Reservation]:
        sql = "SELECT * FROM reservations WHERE client_id = ?"
        params: List[Any] = [int(client_id)]
        if not include_cancelled:
            sql += " AND status != ?"
            params.append(ReservationStatus.CANCELLED.value)
        sql += " ORDER BY created_at DESC"
        return [self._row_to_reservation(r) for r in self._fetch_all(sql, params)]

    def list_for_trip(self, trip_id: int) -> List[Reservation]:
        rows = self._fetch_all("SELECT * FROM reservations WHERE trip_id = ? ORDER BY id", (int(trip_id),))
        return [self._row_to_reservation(r) for r in rows]

    def list_pending(self) -> List[Reservation]:
        rows = self._fetch_all(
            "SELECT * FROM reservations WHERE status = ? ORDER BY created_at", (ReservationStatus.PENDING.value,)
        )
        return [self._row_to_reservation(r) for r in rows]

    def list_for_order(self, order_code: str) -> List[Reservation]:
        rows = self._fetch_all("SELECT * FROM reservations WHERE order_code = ? ORDER BY id", (order_code,))
        return [self._row_to_reservation(r) for r in rows]
