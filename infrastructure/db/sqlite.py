import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List, Dict, Any, Iterable, Iterator
from pathlib import Path
import json

from core.entities.user import User, Organization
from core.entities.audit import AuditLog
from core.repositories.user_repository import UserRepository
from core.repositories.audit_repository import AuditRepository

logger = logging.getLogger(__name__)

# money columns are TEXT so amounts survive the round trip exactly
sqlite3.register_adapter(Decimal, str)


SCHEMA = """
CREATE TABLE IF NOT EXISTS organizations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    slug TEXT UNIQUE NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT UNIQUE NOT NULL,
    username TEXT UNIQUE COLLATE NOCASE,
    name TEXT,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user',
    organization_id INTEGER,
    created_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS bank_accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    bank_name TEXT,
    account_number TEXT,
    initial_balance TEXT NOT NULL DEFAULT '0',
    current_balance TEXT NOT NULL DEFAULT '0',
    currency TEXT NOT NULL DEFAULT 'BRL',
    is_default INTEGER NOT NULL DEFAULT 0,
    active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS cost_centers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    cost_center_id INTEGER,
    active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE,
    FOREIGN KEY(cost_center_id) REFERENCES cost_centers(id)
);

CREATE TABLE IF NOT EXISTS vehicles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    plate TEXT NOT NULL,
    model TEXT NOT NULL,
    type TEXT NOT NULL,
    status TEXT NOT NULL,
    passenger_capacity INTEGER NOT NULL DEFAULT 0,
    current_km INTEGER NOT NULL DEFAULT 0,
    year INTEGER,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS drivers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    status TEXT NOT NULL,
    document TEXT,
    phone TEXT,
    license_number TEXT,
    license_category TEXT,
    license_expiry TEXT,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS maintenance (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    vehicle_id INTEGER NOT NULL,
    type TEXT NOT NULL,
    status TEXT NOT NULL,
    scheduled_date TEXT NOT NULL,
    description TEXT,
    km INTEGER NOT NULL DEFAULT 0,
    cost_parts TEXT NOT NULL DEFAULT '0',
    cost_labor TEXT NOT NULL DEFAULT '0',
    currency TEXT NOT NULL DEFAULT 'BRL',
    workshop TEXT,
    notes TEXT,
    created_by INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE,
    FOREIGN KEY(vehicle_id) REFERENCES vehicles(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS parcels (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    tracking_code TEXT UNIQUE NOT NULL,
    sender_name TEXT NOT NULL,
    sender_document TEXT,
    sender_phone TEXT,
    recipient_name TEXT NOT NULL,
    recipient_document TEXT,
    recipient_phone TEXT,
    origin_city TEXT NOT NULL,
    origin_state TEXT,
    destination_city TEXT NOT NULL,
    destination_state TEXT,
    description TEXT,
    weight TEXT,
    dimensions TEXT,
    status TEXT NOT NULL,
    price TEXT NOT NULL DEFAULT '0',
    trip_id INTEGER,
    client_id INTEGER,
    notes TEXT,
    created_by INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS ix_parcels_org_status ON parcels(organization_id, status);

CREATE TABLE IF NOT EXISTS charters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    contact_name TEXT NOT NULL,
    contact_email TEXT,
    contact_phone TEXT,
    company_name TEXT,
    origin_city TEXT NOT NULL,
    origin_state TEXT,
    destination_city TEXT NOT NULL,
    destination_state TEXT,
    departure_date TEXT NOT NULL,
    departure_time TEXT,
    return_date TEXT,
    return_time TEXT,
    passenger_count INTEGER NOT NULL DEFAULT 1,
    vehicle_type_requested TEXT,
    description TEXT,
    status TEXT NOT NULL,
    quote_price TEXT,
    vehicle_id INTEGER,
    driver_id INTEGER,
    client_id INTEGER,
    notes TEXT,
    created_by INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS trips (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    trip_code TEXT NOT NULL,
    title TEXT,
    origin_city TEXT NOT NULL,
    destination_city TEXT NOT NULL,
    stops TEXT NOT NULL DEFAULT '[]',
    return_stops TEXT NOT NULL DEFAULT '[]',
    vehicle_id INTEGER,
    driver_id INTEGER,
    departure_date TEXT NOT NULL,
    departure_time TEXT,
    arrival_date TEXT,
    arrival_time TEXT,
    price_conventional TEXT,
    price_executive TEXT,
    price_semi_sleeper TEXT,
    price_sleeper TEXT,
    price_bed TEXT,
    price_master_bed TEXT,
    seats_available INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL,
    active INTEGER NOT NULL DEFAULT 1,
    notes TEXT,
    created_by INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE,
    FOREIGN KEY(vehicle_id) REFERENCES vehicles(id) ON DELETE SET NULL,
    FOREIGN KEY(driver_id) REFERENCES drivers(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS clients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER,
    name TEXT NOT NULL,
    client_type TEXT NOT NULL DEFAULT 'PESSOA_FISICA',
    email TEXT,
    phone TEXT,
    document_type TEXT,
    document TEXT,
    corporate_name TEXT,
    trade_name TEXT,
    cnpj TEXT,
    credits TEXT NOT NULL DEFAULT '0',
    user_id INTEGER UNIQUE,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE,
    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS client_notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    client_id INTEGER NOT NULL,
    content TEXT NOT NULL,
    created_by INTEGER,
    created_at TEXT NOT NULL,
    FOREIGN KEY(client_id) REFERENCES clients(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS reservations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    trip_id INTEGER NOT NULL,
    ticket_code TEXT NOT NULL,
    seat_number TEXT,
    seat_type TEXT,
    passenger_name TEXT NOT NULL,
    passenger_document TEXT,
    passenger_email TEXT,
    passenger_phone TEXT,
    boarding_point TEXT,
    dropoff_point TEXT,
    status TEXT NOT NULL,
    price TEXT NOT NULL DEFAULT '0',
    client_id INTEGER,
    amount_paid TEXT NOT NULL DEFAULT '0',
    payment_method TEXT,
    external_payment_id TEXT,
    order_code TEXT,
    credits_used TEXT NOT NULL DEFAULT '0',
    is_partial INTEGER NOT NULL DEFAULT 0,
    notes TEXT,
    created_by INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE,
    FOREIGN KEY(trip_id) REFERENCES trips(id) ON DELETE CASCADE,
    FOREIGN KEY(client_id) REFERENCES clients(id) ON DELETE SET NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_reservations_trip_seat
    ON reservations(trip_id, seat_number)
    WHERE seat_number IS NOT NULL AND status != 'CANCELLED';

CREATE INDEX IF NOT EXISTS ix_reservations_order ON reservations(order_code);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER NOT NULL,
    type TEXT NOT NULL,
    description TEXT NOT NULL,
    amount TEXT NOT NULL,
    currency TEXT NOT NULL DEFAULT 'BRL',
    date TEXT,
    due_date TEXT,
    payment_date TEXT,
    status TEXT NOT NULL,
    payment_method TEXT,
    category TEXT,
    category_id INTEGER,
    cost_center_id INTEGER,
    bank_account_id INTEGER,
    trip_id INTEGER,
    reservation_id INTEGER,
    maintenance_id INTEGER,
    parcel_id INTEGER,
    charter_id INTEGER,
    client_id INTEGER,
    accounting_classification TEXT,
    document_number TEXT,
    notes TEXT,
    created_by INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(organization_id) REFERENCES organizations(id) ON DELETE CASCADE,
    FOREIGN KEY(category_id) REFERENCES categories(id) ON DELETE SET NULL,
    FOREIGN KEY(cost_center_id) REFERENCES cost_centers(id) ON DELETE SET NULL,
    FOREIGN KEY(bank_account_id) REFERENCES bank_accounts(id) ON DELETE SET NULL
);

CREATE INDEX IF NOT EXISTS ix_transactions_org_date ON transactions(organization_id, date);
CREATE INDEX IF NOT EXISTS ix_transactions_account ON transactions(bank_account_id, status);

CREATE TABLE IF NOT EXISTS audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id INTEGER,
    user_id INTEGER,
    action TEXT NOT NULL,
    entity TEXT NOT NULL,
    entity_id TEXT,
    old_data TEXT,
    new_data TEXT,
    ip_address TEXT,
    user_agent TEXT,
    created_at TEXT NOT NULL
);
"""


class TransportConnection(sqlite3.Connection):
    """Connection that knows whether an ``atomic`` block is open."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.atomic_depth = 0


def connect(db_path: str) -> TransportConnection:
    conn = sqlite3.connect(db_path, check_same_thread=False, factory=TransportConnection)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def atomic(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Commit once at the outermost block, roll everything back on error."""
    depth = getattr(conn, "atomic_depth", 0)
    conn.atomic_depth = depth + 1
    try:
        yield conn
    except BaseException:
        conn.atomic_depth = depth
        if depth == 0:
            conn.rollback()
        raise
    else:
        conn.atomic_depth = depth
        if depth == 0:
            conn.commit()


def init_db(db_path: str) -> None:
    if db_path != ":memory:" and not db_path.startswith("file:"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = connect(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()
    logger.info("Database ready at %s", db_path)


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_dec(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def load_json(value: Optional[str], default: Any) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except ValueError:
        logger.warning("Discarding unreadable JSON column value: %r", value[:80])
        return default


class SQLiteRepository:
    """Shared plumbing: commit unless inside ``atomic``, whitelisted updates."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    def _commit(self) -> None:
        if not getattr(self.conn, "atomic_depth", 0):
            self.conn.commit()

    def _insert(self, table: str, values: Dict[str, Any]) -> int:
        columns = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        cur = self.conn.cursor()
        cur.execute(f"INSERT INTO {table} ({columns}) VALUES ({marks})", tuple(values.values()))
        self._commit()
        return cur.lastrowid

    def _update(self, table: str, row_id: int, fields: Dict[str, Any], allowed: Iterable[str],
                organization_id: Optional[int] = None, touch: bool = True) -> int:
        allowed = set(allowed)
        values = {k: v for k, v in fields.items() if k in allowed}
        if touch:
            values["updated_at"] = utcnow()
        if not values:
            return 0
        assignments = ", ".join(f"{k} = ?" for k in values)
        params: List[Any] = list(values.values()) + [int(row_id)]
        where = "id = ?"
        if organization_id is not None:
            where += " AND organization_id = ?"
            params.append(int(organization_id))
        cur = self.conn.cursor()
        cur.execute(f"UPDATE {table} SET {assignments} WHERE {where}", params)
        self._commit()
        return cur.rowcount

    def _delete(self, table: str, row_id: int, organization_id: int) -> bool:
        cur = self.conn.cursor()
        cur.execute(
            f"DELETE FROM {table} WHERE id = ? AND organization_id = ?",
            (int(row_id), int(organization_id)),
        )
        self._commit()
        return cur.rowcount > 0

    def _fetch_one(self, sql: str, params: Iterable[Any] = ()) -> Optional[sqlite3.Row]:
        cur = self.conn.cursor()
        cur.execute(sql, tuple(params))
        return cur.fetchone()

    def _fetch_all(self, sql: str, params: Iterable[Any] = ()) -> List[sqlite3.Row]:
        cur = self.conn.cursor()
        cur.execute(sql, tuple(params))
        return cur.fetchall()


class SQLiteUserRepository(SQLiteRepository, UserRepository):
    USER_COLUMNS = ("email", "username", "name", "password_hash", "role", "organization_id")

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            username=row["username"],
            name=row["name"],
            password_hash=row["password_hash"],
            role=row["role"],
            organization_id=row["organization_id"],
            created_at=row["created_at"],
        )

    def _row_to_org(self, row: sqlite3.Row) -> Organization:
        return Organization(id=row["id"], name=row["name"], slug=row["slug"], created_at=row["created_at"])

    def create_organization(self, name: str, slug: str) -> Organization:
        created_at = utcnow()
        org_id = self._insert("organizations", {"name": name, "slug": slug, "created_at": created_at})
        return Organization(id=org_id, name=name, slug=slug, created_at=created_at)

    def get_organization(self, organization_id: int) -> Optional[Organization]:
        row = self._fetch_one("SELECT * FROM organizations WHERE id = ?", (int(organization_id),))
        return self._row_to_org(row) if row else None

    def list_organizations(self) -> List[Organization]:
        return [self._row_to_org(r) for r in self._fetch_all("SELECT * FROM organizations ORDER BY name")]

    def update_organization(self, organization_id: int, fields: Dict[str, Any]) -> Optional[Organization]:
        self._update("organizations", organization_id, fields, ("name", "slug"), touch=False)
        return self.get_organization(organization_id)

    def create_user(self, email: str, password_hash: str, role: str, organization_id: Optional[int],
                    username: Optional[str] = None, name: Optional[str] = None) -> User:
        created_at = utcnow()
        user_id = self._insert("users", {
            "email": email,
            "username": username,
            "name": name,
            "password_hash": password_hash,
            "role": role,
            "organization_id": organization_id,
            "created_at": created_at,
        })
        return User(id=user_id, email=email, username=username, name=name, password_hash=password_hash,
                    role=role, organization_id=organization_id, created_at=created_at)

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._fetch_one("SELECT * FROM users WHERE lower(email) = lower(?)", (email,))
        return self._row_to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        row = self._fetch_one("SELECT * FROM users WHERE lower(username) = lower(?)", (username,))
        return self._row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        row = self._fetch_one("SELECT * FROM users WHERE id = ?", (int(user_id),))
        return self._row_to_user(row) if row else None

    def list_users(self, organization_id: int) -> List[User]:
        rows = self._fetch_all(
            "SELECT * FROM users WHERE organization_id = ? ORDER BY name, email", (int(organization_id),)
        )
        return [self._row_to_user(r) for r in rows]

    def update_user(self, user_id: int, organization_id: int, fields: Dict[str, Any]) -> Optional[User]:
        existing = self.get_by_id(user_id)
        if existing is None or existing.organization_id != organization_id:
            return None
        self._update("users", user_id, fields, self.USER_COLUMNS, organization_id=organization_id, touch=False)
        return self.get_by_id(user_id)

    def delete_user(self, user_id: int, organization_id: int) -> bool:
        return self._delete("users", user_id, organization_id)


class SQLiteAuditRepository(SQLiteRepository, AuditRepository):
    def _row_to_event(self, row: sqlite3.Row) -> AuditLog:
        return AuditLog(
            id=row["id"],
            organization_id=row["organization_id"],
            user_id=row["user_id"],
            action=row["action"],
            entity=row["entity"],
            entity_id=row["entity_id"],
            old_data=load_json(row["old_data"], None),
            new_data=load_json(row["new_data"], None),
            ip_address=row["ip_address"],
            user_agent=row["user_agent"],
            created_at=row["created_at"],
        )

    def log_event(self, event: AuditLog) -> None:
        self._insert("audit_logs", {
            "organization_id": event.organization_id,
            "user_id": event.user_id,
            "action": event.action,
            "entity": event.entity,
            "entity_id": event.entity_id,
            "old_data": json.dumps(event.old_data, ensure_ascii=False, default=str) if event.old_data else None,
            "new_data": json.dumps(event.new_data, ensure_ascii=False, default=str) if event.new_data else None,
            "ip_address": event.ip_address,
            "user_agent": event.user_agent,
            "created_at": event.created_at or utcnow(),
        })

    def list_events(self, organization_id: int, limit: int = 100, offset: int = 0) -> List[AuditLog]:
        rows = self._fetch_all(
            "SELECT * FROM audit_logs WHERE organization_id = ? ORDER BY id DESC LIMIT ? OFFSET ?",
            (int(organization_id), int(limit), int(offset)),
        )
        return [self._row_to_event(r) for r in rows]
