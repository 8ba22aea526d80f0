import sqlite3
from dataclasses import asdict
from decimal import Decimal
from typing import Optional, List, Dict, Any

from core.entities.client import Client, ClientNote
from core.errors import InsufficientCreditsError, NotFoundError
from core.repositories.client_repository import ClientRepository
from infrastructure.db.sqlite import SQLiteRepository, utcnow, to_dec

CLIENT_COLUMNS = ("name", "client_type", "email", "phone", "document_type", "document",
                  "corporate_name", "trade_name", "cnpj", "credits", "organization_id")


class SQLiteClientRepository(SQLiteRepository, ClientRepository):
    def _row_to_client(self, row: sqlite3.Row) -> Client:
        data = {k: row[k] for k in row.keys()}
        data["credits"] = to_dec(data["credits"]) or Decimal("0")
        return Client(**data)

    def list_clients(self, organization_id: int, search: Optional[str] = None) -> List[Client]:
        sql = "SELECT * FROM clients WHERE organization_id = ?"
        params: List[Any] = [int(organization_id)]
        if search:
            sql += " AND (name LIKE ? OR email LIKE ? OR document LIKE ?)"
            params += [f"%{search}%"] * 3
        sql += " ORDER BY name"
        return [self._row_to_client(r) for r in self._fetch_all(sql, params)]

    def get_client(self, client_id: int, organization_id: Optional[int] = None) -> Optional[Client]:
        if organization_id is None:
            row = self._fetch_one("SELECT * FROM clients WHERE id = ?", (int(client_id),))
        else:
            row = self._fetch_one(
                "SELECT * FROM clients WHERE id = ? AND organization_id = ?", (int(client_id), int(organization_id))
            )
        return self._row_to_client(row) if row else None

    def get_by_user_id(self, user_id: int) -> Optional[Client]:
        row = self._fetch_one("SELECT * FROM clients WHERE user_id = ?", (int(user_id),))
        return self._row_to_client(row) if row else None

    def create_client(self, client: Client) -> Client:
        now = utcnow()
        values = asdict(client)
        values.pop("id")
        values["created_at"] = now
        values["updated_at"] = now
        return self.get_client(self._insert("clients", values))

    def update_client(self, client_id: int, fields: Dict[str, Any]) -> Optional[Client]:
        if self._update("clients", client_id, fields, CLIENT_COLUMNS) == 0:
            return None
        return self.get_client(client_id)

    def delete_client(self, organization_id: int, client_id: int) -> bool:
        return self._delete("clients", client_id, organization_id)

    def debit_credits_if_sufficient(self, client_id: int, amount: Decimal) -> Client:
        if amount <= 0:
            raise ValueError("amount must be positive")
        client = self.get_client(client_id)
        if client is None:
            raise NotFoundError("Client not found")
        # compare in python: the column is decimal text
        if client.credits < amount:
            raise InsufficientCreditsError("Saldo de créditos insuficiente")
        cur = self.conn.cursor()
        cur.execute(
            "UPDATE clients SET credits = ?, updated_at = ? WHERE id = ? AND credits = ?",
            (client.credits - amount, utcnow(), int(client_id), client.credits),
        )
        if cur.rowcount == 0:
            raise InsufficientCreditsError("Saldo de créditos alterado durante a operação")
        self._commit()
        return self.get_client(client_id)

    def add_credits(self, client_id: int, amount: Decimal) -> Client:
        client = self.get_client(client_id)
        if client is None:
            raise NotFoundError("Client not found")
        self._update("clients", client_id, {"credits": client.credits + amount}, ("credits",))
        return self.get_client(client_id)

    def add_note(self, client_id: int, content: str, created_by: Optional[int]) -> ClientNote:
        created_at = utcnow()
        note_id = self._insert("client_notes", {
            "client_id": int(client_id),
            "content": content,
            "created_by": created_by,
            "created_at": created_at,
        })
        return ClientNote(id=note_id, client_id=client_id, content=content, created_by=created_by,
                          created_at=created_at)

    def list_notes(self, client_id: int) -> List[ClientNote]:
        rows = self._fetch_all("SELECT * FROM client_notes WHERE client_id = ? ORDER BY id DESC", (int(client_id),))
        return [ClientNote(**{k: r[k] for k in r.keys()}) for r in rows]
