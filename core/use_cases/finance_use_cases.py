import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Dict, Any, Mapping

from core.entities.finance import BankAccount, CostCenter, Category, TripFinancialSummary
from core.entities.express import Parcel, Charter
from core.entities.maintenance import Maintenance
from core.entities.reservation import Reservation, ReservationStatus
from core.entities.transaction import (
    Transaction, TransactionType, TransactionStatus,
    CATEGORY_TICKET_SALE, CATEGORY_MAINTENANCE, CATEGORY_PARCEL, CATEGORY_CHARTER,
)
from core.errors import BusinessRuleError, NotFoundError
from core.repositories.finance_repository import FinanceRepository
from core.repositories.reservation_repository import ReservationRepository
from core.services.pricing import ZERO, to_decimal
from core.services.transaction_mapping import normalize_transaction_payload

logger = logging.getLogger(__name__)

# cost centers looked up by name for the automatic entries
COST_CENTER_SALES = "VENDAS"
COST_CENTER_STOCK = "ESTOQUE"

CLASSIFICATION_VARIABLE_COST = "CUSTO_VARIAVEL"

_TYPES = {t.value for t in TransactionType}
_STATUSES = {s.value for s in TransactionStatus}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def recompute_bank_balance(repo: FinanceRepository, organization_id: int, account_id: int) -> Optional[Decimal]:
    """current_balance = initial_balance + paid income - paid expenses."""
    account = repo.get_bank_account(organization_id, account_id)
    if account is None:
        return None
    paid = repo.list_paid_transactions_for_account(organization_id, account_id)
    balance = account.initial_balance + sum((tx.signed_amount for tx in paid), ZERO)
    repo.set_bank_account_balance(organization_id, account_id, balance)
    logger.debug("Bank account %s balance recomputed: %s", account_id, balance)
    return balance


def _validate_transaction_fields(repo: FinanceRepository, organization_id: int, fields: Dict[str, Any]) -> None:
    if "type" in fields and fields["type"] not in _TYPES:
        raise BusinessRuleError(f"Invalid transaction type: {fields['type']}")
    if "status" in fields and fields["status"] not in _STATUSES:
        raise BusinessRuleError(f"Invalid transaction status: {fields['status']}")
    if fields.get("amount") is not None and fields["amount"] < 0:
        raise BusinessRuleError("Amount must not be negative")
    if fields.get("bank_account_id") and repo.get_bank_account(organization_id, fields["bank_account_id"]) is None:
        raise BusinessRuleError("Bank account not found")
    if fields.get("cost_center_id") and repo.get_cost_center(organization_id, fields["cost_center_id"]) is None:
        raise BusinessRuleError("Cost center not found")
    if fields.get("category_id") and repo.get_category(organization_id, fields["category_id"]) is None:
        raise BusinessRuleError("Category not found")


def _rebalance(repo: FinanceRepository, organization_id: int, *rows: Transaction) -> None:
    # rows are the before/after images of one write
    if not any(tx.status == TransactionStatus.PAID.value for tx in rows):
        return
    for account_id in {tx.bank_account_id for tx in rows if tx.bank_account_id}:
        recompute_bank_balance(repo, organization_id, account_id)


def record_transaction(repo: FinanceRepository, transaction: Transaction) -> Transaction:
    """Insert a ledger row. Every automatic entry goes through here."""
    created = repo.create_transaction(transaction)
    _rebalance(repo, created.organization_id, created)
    return created


def change_transaction(
    repo: FinanceRepository,
    organization_id: int,
    transaction_id: int,
    fields: Dict[str, Any],
) -> Transaction:
    """Write already-typed fields to a ledger row and keep the account balances in step."""
    before = repo.get_transaction(organization_id, transaction_id)
    if before is None:
        raise NotFoundError("Transaction not found")
    after = repo.update_transaction(organization_id, transaction_id, fields)
    if after is None:
        raise NotFoundError("Transaction not found")
    _rebalance(repo, organization_id, before, after)
    return after


def cancel_open_transactions(repo: FinanceRepository, organization_id: int, rows) -> int:
    """Cancel the PENDING rows among ``rows``; paid history is left alone."""
    cancelled = 0
    for tx in rows:
        if tx.status == TransactionStatus.PENDING.value:
            change_transaction(repo, organization_id, tx.id, {"status": TransactionStatus.CANCELLED.value})
            cancelled += 1
    return cancelled


def create_transaction(
    repo: FinanceRepository,
    organization_id: int,
    payload: Mapping[str, Any],
    created_by: Optional[int] = None,
    default_currency: str = "BRL",
) -> Transaction:
    fields = normalize_transaction_payload(payload, partial=False, default_currency=default_currency)
    _validate_transaction_fields(repo, organization_id, fields)
    return record_transaction(repo, Transaction(
        id=None, organization_id=organization_id, created_by=created_by, **fields
    ))


def update_transaction(
    repo: FinanceRepository,
    organization_id: int,
    transaction_id: int,
    payload: Mapping[str, Any],
) -> Transaction:
    if repo.get_transaction(organization_id, transaction_id) is None:
        raise NotFoundError("Transaction not found")
    fields = normalize_transaction_payload(payload, partial=True)
    _validate_transaction_fields(repo, organization_id, fields)
    return change_transaction(repo, organization_id, transaction_id, fields)


def delete_transaction(repo: FinanceRepository, organization_id: int, transaction_id: int) -> Transaction:
    deleted = repo.delete_transaction(organization_id, transaction_id)
    if deleted is None:
        raise NotFoundError("Transaction not found")
    _rebalance(repo, organization_id, deleted)
    return deleted


def create_bank_account(
    repo: FinanceRepository,
    organization_id: int,
    name: str,
    bank_name: Optional[str] = None,
    account_number: Optional[str] = None,
    initial_balance: Any = None,
    currency: str = "BRL",
    is_default: bool = False,
) -> BankAccount:
    """Run inside one DB transaction: the default flag moves atomically."""
    if not name:
        raise BusinessRuleError("Name is required")
    initial = to_decimal(initial_balance)
    account = repo.create_bank_account(BankAccount(
        id=None,
        organization_id=organization_id,
        name=name,
        bank_name=bank_name or None,
        account_number=account_number or None,
        initial_balance=initial,
        current_balance=initial,
        currency=currency,
        is_default=bool(is_default),
    ))
    if account.is_default:
        repo.clear_default_bank_account(organization_id, keep_id=account.id)
    return account


def update_bank_account(
    repo: FinanceRepository,
    organization_id: int,
    account_id: int,
    fields: Dict[str, Any],
) -> BankAccount:
    fields = {k: v for k, v in fields.items() if v is not None}
    if "initial_balance" in fields:
        fields["initial_balance"] = to_decimal(fields["initial_balance"])
    account = repo.update_bank_account(organization_id, account_id, fields)
    if account is None:
        raise NotFoundError("Bank account not found")
    if fields.get("is_default"):
        repo.clear_default_bank_account(organization_id, keep_id=account_id)
    if "initial_balance" in fields:
        recompute_bank_balance(repo, organization_id, account_id)
        account = repo.get_bank_account(organization_id, account_id)
    return account


def delete_cost_center(repo: FinanceRepository, organization_id: int, cost_center_id: int) -> CostCenter:
    cost_center = repo.get_cost_center(organization_id, cost_center_id)
    if cost_center is None:
        raise NotFoundError("Cost center not found")
    if repo.count_categories_for_cost_center(organization_id, cost_center_id) > 0:
        raise BusinessRuleError("Cannot delete cost center with linked categories")
    repo.delete_cost_center(organization_id, cost_center_id)
    return cost_center


def _lookup_ids(repo: FinanceRepository, organization_id: int, cost_center: str, category: str):
    cc = repo.get_cost_center_by_name(organization_id, cost_center)
    cat = repo.get_category_by_name(organization_id, category)
    return (cc.id if cc else None), (cat.id if cat else None)


def create_reservation_transaction(
    repo: FinanceRepository,
    reservation: Reservation,
    created_by: Optional[int] = None,
) -> Optional[Transaction]:
    """Receivable for an admin-created reservation. Nothing for free seats."""
    amount = reservation.price or ZERO
    if amount <= 0:
        return None
    paid = reservation.amount_paid or ZERO
    fully_paid = paid >= amount
    if fully_paid:
        status = TransactionStatus.PAID.value
    elif paid > 0:
        status = TransactionStatus.PARTIALLY_PAID.value
    else:
        status = TransactionStatus.PENDING.value

    org = reservation.organization_id
    cost_center_id, category_id = _lookup_ids(repo, org, COST_CENTER_SALES, CATEGORY_TICKET_SALE)
    issued = reservation.created_at or _now()
    return record_transaction(repo, Transaction(
        id=None,
        organization_id=org,
        type=TransactionType.INCOME.value,
        description=f"Reserva: {reservation.ticket_code}",
        amount=amount,
        currency="BRL",
        date=issued,
        status=status,
        payment_date=issued if fully_paid else None,
        payment_method=reservation.payment_method,
        category=CATEGORY_TICKET_SALE,
        category_id=category_id,
        cost_center_id=cost_center_id,
        trip_id=reservation.trip_id,
        reservation_id=reservation.id,
        client_id=reservation.client_id,
        created_by=created_by if created_by is not None else reservation.created_by,
    ))


def create_maintenance_transaction(repo: FinanceRepository, maintenance: Maintenance) -> Optional[Transaction]:
    """Payable for parts plus labour. Nothing when the job has no cost."""
    total = maintenance.total_cost
    if total <= 0:
        return None
    org = maintenance.organization_id
    cost_center_id, category_id = _lookup_ids(repo, org, COST_CENTER_STOCK, CATEGORY_MAINTENANCE)
    return record_transaction(repo, Transaction(
        id=None,
        organization_id=org,
        type=TransactionType.EXPENSE.value,
        description=f"Manutenção Automática: {maintenance.description or maintenance.type}",
        amount=total,
        currency=maintenance.currency or "BRL",
        date=maintenance.scheduled_date or _now(),
        status=TransactionStatus.PENDING.value,
        category=CATEGORY_MAINTENANCE,
        category_id=category_id,
        cost_center_id=cost_center_id,
        maintenance_id=maintenance.id,
        accounting_classification=CLASSIFICATION_VARIABLE_COST,
        created_by=maintenance.created_by,
    ))


def create_parcel_transaction(repo: FinanceRepository, parcel: Parcel) -> Optional[Transaction]:
    if (parcel.price or ZERO) <= 0:
        return None
    org = parcel.organization_id
    cost_center_id, category_id = _lookup_ids(repo, org, COST_CENTER_SALES, CATEGORY_PARCEL)
    return record_transaction(repo, Transaction(
        id=None,
        organization_id=org,
        type=TransactionType.INCOME.value,
        description=f"Encomenda: {parcel.tracking_code}",
        amount=parcel.price,
        currency="BRL",
        date=parcel.created_at or _now(),
        status=TransactionStatus.PENDING.value,
        category=CATEGORY_PARCEL,
        category_id=category_id,
        cost_center_id=cost_center_id,
        trip_id=parcel.trip_id,
        parcel_id=parcel.id,
        client_id=parcel.client_id,
        created_by=parcel.created_by,
    ))


def create_charter_transaction(repo: FinanceRepository, charter: Charter) -> Optional[Transaction]:
    """Receivable for an agreed quote, due on the departure day."""
    if (charter.quote_price or ZERO) <= 0:
        return None
    org = charter.organization_id
    cost_center_id, category_id = _lookup_ids(repo, org, COST_CENTER_SALES, CATEGORY_CHARTER)
    return record_transaction(repo, Transaction(
        id=None,
        organization_id=org,
        type=TransactionType.INCOME.value,
        description=f"Fretamento: {charter.contact_name} ({charter.origin_city} - {charter.destination_city})",
        amount=charter.quote_price,
        currency="BRL",
        date=_now(),
        due_date=charter.departure_date,
        status=TransactionStatus.PENDING.value,
        category=CATEGORY_CHARTER,
        category_id=category_id,
        cost_center_id=cost_center_id,
        charter_id=charter.id,
        client_id=charter.client_id,
        created_by=charter.created_by,
    ))


def trip_financial_summary(
    finance: FinanceRepository,
    reservations: ReservationRepository,
    organization_id: int,
    trip_id: int,
) -> TripFinancialSummary:
    trip_reservations = [r for r in reservations.list_for_trip(trip_id) if r.organization_id == organization_id]
    by_id = {tx.id: tx for tx in finance.list_transactions(organization_id, trip_id=trip_id, limit=100000)}
    for tx in finance.list_transactions_for_reservations(organization_id, [r.id for r in trip_reservations]):
        by_id.setdefault(tx.id, tx)

    income = expense = pending = ZERO
    for tx in by_id.values():
        if tx.status == TransactionStatus.CANCELLED.value:
            continue
        if tx.status == TransactionStatus.PAID.value:
            if tx.type == TransactionType.INCOME.value:
                income += tx.amount
            else:
                expense += tx.amount
        elif tx.type == TransactionType.INCOME.value:
            pending += tx.amount

    active = [r for r in trip_reservations if r.status != ReservationStatus.CANCELLED.value]
    return TripFinancialSummary(
        trip_id=trip_id,
        income=income,
        expense=expense,
        pending_income=pending,
        reservations=len(active),
        cancelled_reservations=len(trip_reservations) - len(active),
        reservation_revenue=sum((r.price for r in active), ZERO),
    )


def save_category(
    repo: FinanceRepository,
    organization_id: int,
    fields: Dict[str, Any],
    category_id: Optional[int] = None,
) -> Category:
    """Create (no ``category_id``) or update a category; its cost center must be ours."""
    fields = {k: v for k, v in fields.items() if v is not None}
    if "type" in fields and fields["type"] not in _TYPES:
        raise BusinessRuleError(f"Invalid category type: {fields['type']}")
    if fields.get("cost_center_id") and repo.get_cost_center(organization_id, fields["cost_center_id"]) is None:
        raise BusinessRuleError("Cost center not found")
    if category_id is None:
        return repo.create_category(Category(id=None, organization_id=organization_id, **fields))
    category = repo.update_category(organization_id, category_id, fields)
    if category is None:
        raise NotFoundError("Category not found")
    return category
