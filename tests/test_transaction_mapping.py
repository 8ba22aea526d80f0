from decimal import Decimal

from core.entities.transaction import Transaction
from core.services.transaction_mapping import date_to_iso, map_transaction, normalize_transaction_payload


def test_valid_date_becomes_iso_emission_date():
    data = map_transaction({"id": 1, "date": "2024-03-05", "due_date": None, "amount": "10.50"})
    assert data["data_emissao"] == "2024-03-05T00:00:00"
    assert data["date"] == "2024-03-05T00:00:00"
    assert data["valor"] == 10.5


def test_null_or_invalid_due_date_is_null():
    assert map_transaction({"date": "2024-03-05", "due_date": None})["data_vencimento"] is None
    assert map_transaction({"date": "2024-03-05", "due_date": "amanhã"})["data_vencimento"] is None


def test_mapping_never_raises_on_garbage():
    data = map_transaction({"date": object(), "due_date": {"x": 1}, "payment_date": "31/02/2024", "amount": "abc"})
    assert data["data_emissao"] is None
    assert data["data_vencimento"] is None
    assert data["data_pagamento"] is None
    assert data["amount"] == 0.0


def test_dataclass_rows_carry_both_spellings():
    tx = Transaction(id=7, organization_id=1, type="INCOME", description="Reserva", amount=Decimal("99.90"),
                     currency="BRL", date="2024-01-02T10:00:00+00:00", status="PAID")
    data = map_transaction(tx)
    assert data["tipo"] == "INCOME"
    assert data["descricao"] == "Reserva"
    assert data["valor"] == 99.9


def test_brazilian_dates_are_read():
    assert date_to_iso("05/01/2024") == "2024-01-05T00:00:00"
    assert date_to_iso("2024-01-05T10:00:00Z") == "2024-01-05T10:00:00+00:00"
    assert date_to_iso("") is None


def test_legacy_payload_is_normalized():
    fields = normalize_transaction_payload({
        "tipo": "income", "valor": "150", "descricao": "Fretamento", "data_emissao": "05/01/2024",
        "data_vencimento": "invalid", "cost_center_id": "3",
    })
    assert fields["type"] == "INCOME"
    assert fields["amount"] == Decimal("150")
    assert fields["description"] == "Fretamento"
    assert fields["date"] == "2024-01-05T00:00:00"
    assert fields["due_date"] is None
    assert fields["cost_center_id"] == 3
    assert fields["status"] == "PENDING"
    assert fields["currency"] == "BRL"


def test_current_name_wins_over_alias():
    fields = normalize_transaction_payload({"amount": "10", "valor": "20"})
    assert fields["amount"] == Decimal("10")


def test_partial_update_only_touches_sent_fields():
    fields = normalize_transaction_payload({"status": "paid", "valor": ""}, partial=True)
    assert fields == {"status": "PAID"}
