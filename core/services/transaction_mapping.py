"""
Field-name compatibility between the ledger schema and legacy payloads.

Older screens and automations still post and read Portuguese field names
(``valor``, ``data_emissao``, ...). Responses carry both spellings and
inputs accept either, the current name winning when both are present.
"""

from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from core.entities.transaction import TransactionStatus, TransactionType
from core.services.pricing import to_decimal

# current name -> legacy aliases, in lookup order
FIELD_ALIASES = {
    "type": ("tipo",),
    "description": ("descricao",),
    "amount": ("valor",),
    "currency": ("moeda",),
    "date": ("data_emissao",),
    "due_date": ("data_vencimento",),
    "payment_date": ("data_pagamento",),
    "payment_method": ("forma_pagamento",),
    "document_number": ("numero_documento",),
    "notes": ("observacoes",),
    "reservation_id": ("reserva_id",),
    "category": ("categoria",),
    "accounting_classification": ("classificacao_contabil",),
}

DATE_FIELDS = ("date", "due_date", "payment_date")

PASSTHROUGH_FIELDS = (
    "status", "category_id", "cost_center_id", "bank_account_id",
    "trip_id", "maintenance_id", "client_id",
)


def date_to_iso(value: Any) -> Optional[str]:
    """ISO-8601 text for ``value`` or None when it cannot be read as a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).isoformat()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y", "%d/%m/%Y %H:%M", "%d/%m/%Y %H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).isoformat()
        except ValueError:
            continue
    return None


def _as_dict(row: Any) -> Dict[str, Any]:
    if is_dataclass(row):
        return asdict(row)
    if isinstance(row, Mapping):
        return dict(row)
    return {k: row[k] for k in row.keys()}  # sqlite3.Row


def _json_amount(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(to_decimal(value))


def map_transaction(row: Any) -> Dict[str, Any]:
    """Ledger row -> API dict with current and legacy names."""
    data = _as_dict(row)

    for name in DATE_FIELDS:
        data[name] = date_to_iso(data.get(name))
    for name in ("created_at", "updated_at"):
        if name in data:
            data[name] = date_to_iso(data.get(name))

    data["amount"] = _json_amount(data.get("amount"))

    for current, aliases in FIELD_ALIASES.items():
        for alias in aliases:
            data[alias] = data.get(current)
    return data


def _pick(body: Mapping[str, Any], name: str) -> Any:
    value = body.get(name)
    if value in (None, ""):
        for alias in FIELD_ALIASES.get(name, ()):
            alias_value = body.get(alias)
            if alias_value not in (None, ""):
                return alias_value
    return value


def _has(body: Mapping[str, Any], name: str) -> bool:
    return name in body or any(a in body for a in FIELD_ALIASES.get(name, ()))


def normalize_transaction_payload(
    body: Mapping[str, Any],
    partial: bool = False,
    default_currency: str = "BRL",
) -> Dict[str, Any]:
    """Legacy or current input -> schema fields.

    With ``partial`` (updates) only fields present in ``body`` are returned.
    Otherwise create defaults are filled in. Unreadable dates become None.
    """
    out: Dict[str, Any] = {}
    names = list(FIELD_ALIASES) + list(PASSTHROUGH_FIELDS)

    for name in names:
        if partial and not _has(body, name):
            continue
        value = _pick(body, name)
        if name in DATE_FIELDS:
            value = date_to_iso(value)
        elif name == "amount":
            value = None if value in (None, "") else to_decimal(value)
        elif name in ("type", "status") and isinstance(value, str):
            value = value.strip().upper()
        elif name.endswith("_id") and value not in (None, ""):
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValueError(f"{name} must be an integer id")
        elif value == "":
            value = None
        out[name] = value

    if partial:
        # an update never wipes the amount/type through an empty field
        for name in ("amount", "type", "description", "currency", "status", "date"):
            if name in out and out[name] is None:
                del out[name]
        return out

    out["type"] = out.get("type") or TransactionType.EXPENSE.value
    out["description"] = out.get("description") or "Nova Transação"
    out["amount"] = out.get("amount") if out.get("amount") is not None else Decimal("0")
    out["currency"] = out.get("currency") or default_currency
    out["date"] = out.get("date") or datetime.now(timezone.utc).isoformat()
    out["status"] = out.get("status") or TransactionStatus.PENDING.value
    return out
