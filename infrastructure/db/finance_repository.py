import sqlite3
from dataclasses import asdict
from decimal import Decimal
from typing import Optional, List, Dict, Any

from core.entities.finance import BankAccount, CostCenter, Category
from core.entities.transaction import Transaction, TransactionStatus
from core.repositories.finance_repository import FinanceRepository
from infrastructure.db.sqlite import SQLiteRepository, utcnow, to_dec

TRANSACTION_COLUMNS = (
    "type", "description", "amount", "currency", "date", "due_date", "payment_date",
    "status", "payment_method", "category", "category_id", "cost_center_id",
    "bank_account_id", "trip_id", "reservation_id", "maintenance_id", "parcel_id", "charter_id",
    "client_id", "accounting_classification", "document_number", "notes",
)


class SQLiteFinanceRepository(SQLiteRepository, FinanceRepository):
    def _row_to_account(self, row: sqlite3.Row) -> BankAccount:
        return BankAccount(
            id=row["id"],
            organization_id=row["organization_id"],
            name=row["name"],
            bank_name=row["bank_name"],
            account_number=row["account_number"],
            initial_balance=to_dec(row["initial_balance"]) or Decimal("0"),
            current_balance=to_dec(row["current_balance"]) or Decimal("0"),
            currency=row["currency"],
            is_default=bool(row["is_default"]),
            active=bool(row["active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _row_to_cost_center(self, row: sqlite3.Row) -> CostCenter:
        return CostCenter(
            id=row["id"],
            organization_id=row["organization_id"],
            name=row["name"],
            description=row["description"],
            active=bool(row["active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _row_to_category(self, row: sqlite3.Row) -> Category:
        return Category(
            id=row["id"],
            organization_id=row["organization_id"],
            name=row["name"],
            type=row["type"],
            cost_center_id=row["cost_center_id"],
            active=bool(row["active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _row_to_tx(self, row: sqlite3.Row) -> Transaction:
        data = {k: row[k] for k in row.keys()}
        data["amount"] = to_dec(data["amount"]) or Decimal("0")
        return Transaction(**data)

    # --- bank accounts ---

    def list_bank_accounts(self, organization_id: int) -> List[BankAccount]:
        rows = self._fetch_all(
            "SELECT * FROM bank_accounts WHERE organization_id = ? ORDER BY name ASC", (int(organization_id),)
        )
        return [self._row_to_account(r) for r in rows]

    def get_bank_account(self, organization_id: int, account_id: int) -> Optional[BankAccount]:
        row = self._fetch_one(
            "SELECT * FROM bank_accounts WHERE id = ? AND organization_id = ?",
            (int(account_id), int(organization_id)),
        )
        return self._row_to_account(row) if row else None

    def create_bank_account(self, account: BankAccount) -> BankAccount:
        now = utcnow()
        account_id = self._insert("bank_accounts", {
            "organization_id": account.organization_id,
            "name": account.name,
            "bank_name": account.bank_name,
            "account_number": account.account_number,
            "initial_balance": account.initial_balance,
            "current_balance": account.current_balance,
            "currency": account.currency,
            "is_default": 1 if account.is_default else 0,
            "active": 1 if account.active else 0,
            "created_at": now,
            "updated_at": now,
        })
        return self.get_bank_account(account.organization_id, account_id)

    def update_bank_account(self, organization_id: int, account_id: int,
                            fields: Dict[str, Any]) -> Optional[BankAccount]:
        fields = dict(fields)
        for flag in ("is_default", "active"):
            if flag in fields and fields[flag] is not None:
                fields[flag] = 1 if fields[flag] else 0
        changed = self._update(
            "bank_accounts", account_id, fields,
            ("name", "bank_name", "account_number", "initial_balance", "currency", "is_default", "active"),
            organization_id=organization_id,
        )
        if changed == 0:
            return None
        return self.get_bank_account(organization_id, account_id)

    def clear_default_bank_account(self, organization_id: int, keep_id: Optional[int] = None) -> None:
        cur = self.conn.cursor()
        cur.execute(
            "UPDATE bank_accounts SET is_default = 0, updated_at = ? "
            "WHERE organization_id = ? AND is_default = 1 AND id != ?",
            (utcnow(), int(organization_id), int(keep_id or 0)),
        )
        self._commit()

    def set_bank_account_balance(self, organization_id: int, account_id: int, balance: Decimal) -> None:
        self._update("bank_accounts", account_id, {"current_balance": balance}, ("current_balance",),
                     organization_id=organization_id)

    # --- cost centers ---

    def list_cost_centers(self, organization_id: int) -> List[CostCenter]:
        rows = self._fetch_all(
            "SELECT * FROM cost_centers WHERE organization_id = ? ORDER BY name ASC", (int(organization_id),)
        )
        return [self._row_to_cost_center(r) for r in rows]

    def get_cost_center(self, organization_id: int, cost_center_id: int) -> Optional[CostCenter]:
        row = self._fetch_one(
            "SELECT * FROM cost_centers WHERE id = ? AND organization_id = ?",
            (int(cost_center_id), int(organization_id)),
        )
        return self._row_to_cost_center(row) if row else None

    def get_cost_center_by_name(self, organization_id: int, name: str) -> Optional[CostCenter]:
        row = self._fetch_one(
            "SELECT * FROM cost_centers WHERE organization_id = ? AND upper(name) = upper(?) LIMIT 1",
            (int(organization_id), name),
        )
        return self._row_to_cost_center(row) if row else None

    def create_cost_center(self, cost_center: CostCenter) -> CostCenter:
        now = utcnow()
        new_id = self._insert("cost_centers", {
            "organization_id": cost_center.organization_id,
            "name": cost_center.name,
            "description": cost_center.description,
            "active": 1 if cost_center.active else 0,
            "created_at": now,
            "updated_at": now,
        })
        return self.get_cost_center(cost_center.organization_id, new_id)

    def update_cost_center(self, organization_id: int, cost_center_id: int,
                           fields: Dict[str, Any]) -> Optional[CostCenter]:
        fields = dict(fields)
        if fields.get("active") is not None:
            fields["active"] = 1 if fields["active"] else 0
        changed = self._update("cost_centers", cost_center_id, fields, ("name", "description", "active"),
                               organization_id=organization_id)
        if changed == 0:
            return None
        return self.get_cost_center(organization_id, cost_center_id)

    def delete_cost_center(self, organization_id: int, cost_center_id: int) -> bool:
        return self._delete("cost_centers", cost_center_id, organization_id)

    # --- categories ---

    def list_categories(self, organization_id: int, cost_center_id: Optional[int] = None) -> List[Category]:
        if cost_center_id is not None:
            rows = self._fetch_all(
                "SELECT * FROM categories WHERE organization_id = ? AND cost_center_id = ? ORDER BY name ASC",
                (int(organization_id), int(cost_center_id)),
            )
        else:
            rows = self._fetch_all(
                "SELECT * FROM categories WHERE organization_id = ? ORDER BY name ASC", (int(organization_id),)
            )
        return [self._row_to_category(r) for r in rows]

    def get_category(self, organization_id: int, category_id: int) -> Optional[Category]:
        row = self._fetch_one(
            "SELECT * FROM categories WHERE id = ? AND organization_id = ?",
            (int(category_id), int(organization_id)),
        )
        return self._row_to_category(row) if row else None

    def get_category_by_name(self, organization_id: int, name: str) -> Optional[Category]:
        row = self._fetch_one(
            "SELECT * FROM categories WHERE organization_id = ? AND upper(name) = upper(?) LIMIT 1",
            (int(organization_id), name),
        )
        return self._row_to_category(row) if row else None

    def count_categories_for_cost_center(self, organization_id: int, cost_center_id: int) -> int:
        row = self._fetch_one(
            "SELECT COUNT(*) AS n FROM categories WHERE organization_id = ? AND cost_center_id = ?",
            (int(organization_id), int(cost_center_id)),
        )
        return int(row["n"])

    def create_category(self, category: Category) -> Category:
        now = utcnow()
        new_id = self._insert("categories", {
            "organization_id": category.organization_id,
            "name": category.name,
            "type": category.type,
            "cost_center_id": category.cost_center_id,
            "active": 1 if category.active else 0,
            "created_at": now,
            "updated_at": now,
        })
        return self.get_category(category.organization_id, new_id)

    def update_category(self, organization_id: int, category_id: int,
                        fields: Dict[str, Any]) -> Optional[Category]:
        fields = dict(fields)
        if fields.get("active") is not None:
            fields["active"] = 1 if fields["active"] else 0
        changed = self._update("categories", category_id, fields, ("name", "type", "cost_center_id", "active"),
                               organization_id=organization_id)
        if changed == 0:
            return None
        return self.get_category(organization_id, category_id)

    def delete_category(self, organization_id: int, category_id: int) -> bool:
        return self._delete("categories", category_id, organization_id)

    # --- transactions ---

    def list_transactions(self, organization_id: int, type: Optional[str] = None,
                          status: Optional[str] = None, trip_id: Optional[int] = None,
                          limit: int = 500, offset: int = 0) -> List[Transaction]:
        sql = "SELECT * FROM transactions WHERE organization_id = ?"
        params: List[Any] = [int(organization_id)]
        if type:
            sql += " AND type = ?"
            params.append(type)
        if status:
            sql += " AND status = ?"
            params.append(status)
        if trip_id is not None:
            sql += " AND trip_id = ?"
            params.append(int(trip_id))
        sql += " ORDER BY date DESC, created_at DESC LIMIT ? OFFSET ?"
        params += [int(limit), int(offset)]
        return [self._row_to_tx(r) for r in self._fetch_all(sql, params)]

    def get_transaction(self, organization_id: int, transaction_id: int) -> Optional[Transaction]:
        row = self._fetch_one(
            "SELECT * FROM transactions WHERE id = ? AND organization_id = ?",
            (int(transaction_id), int(organization_id)),
        )
        return self._row_to_tx(row) if row else None

    def create_transaction(self, transaction: Transaction) -> Transaction:
        now = utcnow()
        values = asdict(transaction)
        values.pop("id")
        values["created_at"] = values.get("created_at") or now
        values["updated_at"] = now
        new_id = self._insert("transactions", values)
        return self.get_transaction(transaction.organization_id, new_id)

    def update_transaction(self, organization_id: int, transaction_id: int,
                           fields: Dict[str, Any]) -> Optional[Transaction]:
        changed = self._update("transactions", transaction_id, fields, TRANSACTION_COLUMNS,
                               organization_id=organization_id)
        if changed == 0:
            return None
        return self.get_transaction(organization_id, transaction_id)

    def delete_transaction(self, organization_id: int, transaction_id: int) -> Optional[Transaction]:
        existing = self.get_transaction(organization_id, transaction_id)
        if existing is None:
            return None
        self._delete("transactions", transaction_id, organization_id)
        return existing

    def list_paid_transactions_for_account(self, organization_id: int, account_id: int) -> List[Transaction]:
        rows = self._fetch_all(
            "SELECT * FROM transactions WHERE organization_id = ? AND bank_account_id = ? AND status = ?",
            (int(organization_id), int(account_id), TransactionStatus.PAID.value),
        )
        return [self._row_to_tx(r) for r in rows]

    def list_transactions_for_reservations(self, organization_id: int,
                                           reservation_ids: List[int]) -> List[Transaction]:
        if not reservation_ids:
            return []
        marks = ", ".join("?" for _ in reservation_ids)
        rows = self._fetch_all(
            f"SELECT * FROM transactions WHERE organization_id = ? AND reservation_id IN ({marks})",
            [int(organization_id)] + [int(i) for i in reservation_ids],
        )
        return [self._row_to_tx(r) for r in rows]

    def list_transactions_for_maintenance(self, organization_id: int, maintenance_id: int) -> List[Transaction]:
        rows = self._fetch_all(
            "SELECT * FROM transactions WHERE organization_id = ? AND maintenance_id = ?",
            (int(organization_id), int(maintenance_id)),
        )
        return [self._row_to_tx(r) for r in rows]

    def list_transactions_for_parcel(self, organization_id: int, parcel_id: int) -> List[Transaction]:
        rows = self._fetch_all(
            "SELECT * FROM transactions WHERE organization_id = ? AND parcel_id = ?",
            (int(organization_id), int(parcel_id)),
        )
        return [self._row_to_tx(r) for r in rows]

    def list_transactions_for_charter(self, organization_id: int, charter_id: int) -> List[Transaction]:
        rows = self._fetch_all(
            "SELECT * FROM transactions WHERE organization_id = ? AND charter_id = ?",
            (int(organization_id), int(charter_id)),
        )
        return [self._row_to_tx(r) for r in rows]
