"""
Parcels and charters.

Both carry a receivable in the ledger: a parcel owes its freight price from the
moment it is registered, a charter owes its quote once the customer confirms.
The receivable follows later edits while it is still open and is cancelled when
the job is called off; settled rows are never touched.
"""

import logging
from typing import Optional, Dict, Any, Callable, List

from core.entities.express import Parcel, Charter, ParcelStatus, CharterStatus, CHARTER_BILLABLE
from core.entities.transaction import Transaction, TransactionStatus
from core.errors import BusinessRuleError, NotFoundError
from core.repositories.client_repository import ClientRepository
from core.repositories.express_repository import ExpressRepository
from core.repositories.finance_repository import FinanceRepository
from core.repositories.fleet_repository import FleetRepository
from core.repositories.trip_repository import TripRepository
from core.repositories.user_repository import UserRepository
from core.services.pricing import ZERO, to_decimal
from core.use_cases.finance_use_cases import (
    cancel_open_transactions, change_transaction, create_charter_transaction, create_parcel_transaction,
)
from core.use_cases.reservation_use_cases import generate_code

logger = logging.getLogger(__name__)

PARCEL_REQUIRED = ("sender_name", "recipient_name", "origin_city", "destination_city")
CHARTER_REQUIRED = ("contact_name", "origin_city", "destination_city", "departure_date")


def _check(value: Optional[str], enum, label: str) -> None:
    if value is not None and value not in {e.value for e in enum}:
        raise BusinessRuleError(f"Invalid {label}: {value}")


def _require(data: Dict[str, Any], names) -> None:
    missing = [n for n in names if not str(data.get(n) or "").strip()]
    if missing:
        raise BusinessRuleError(f"Missing required fields: {', '.join(missing)}")


def _not_negative(fields: Dict[str, Any], *names: str) -> None:
    for name in names:
        if fields.get(name) is not None:
            fields[name] = to_decimal(fields[name])
            if fields[name] < 0:
                raise BusinessRuleError(f"{name} must not be negative")


def _tracking_code(express: ExpressRepository, prefix: str) -> str:
    code = generate_code(prefix)
    while express.get_parcel_by_tracking_code(code) is not None:
        code = generate_code(prefix)
    return code


def _sync_receivable(
    finance: FinanceRepository,
    organization_id: int,
    linked: List[Transaction],
    amount,
    billable: bool,
    create: Callable[[], Optional[Transaction]],
    **fields,
) -> None:
    if not billable or (amount or ZERO) <= 0:
        cancel_open_transactions(finance, organization_id, linked)
        return
    active = [tx for tx in linked if tx.status != TransactionStatus.CANCELLED.value]
    if not active:
        create()
        return
    for tx in active:
        if tx.status != TransactionStatus.PENDING.value:
            continue
        if tx.amount != amount or any(getattr(tx, k) != v for k, v in fields.items()):
            change_transaction(finance, organization_id, tx.id, {"amount": amount, **fields})


# parcels

def _check_parcel_links(trips: TripRepository, clients: ClientRepository,
                        organization_id: int, fields: Dict[str, Any]) -> None:
    if fields.get("trip_id") and trips.get_trip(fields["trip_id"], organization_id) is None:
        raise BusinessRuleError("Trip not found")
    if fields.get("client_id") and clients.get_client(fields["client_id"], organization_id) is None:
        raise BusinessRuleError("Client not found")


def create_parcel(
    express: ExpressRepository,
    trips: TripRepository,
    clients: ClientRepository,
    finance: FinanceRepository,
    organization_id: int,
    data: Dict[str, Any],
    created_by: Optional[int] = None,
) -> Parcel:
    """Register a parcel under a fresh ``P-`` tracking code and bill its freight."""
    data = dict(data)
    _require(data, PARCEL_REQUIRED)
    _check(data.get("status"), ParcelStatus, "parcel status")
    _not_negative(data, "price", "weight")
    _check_parcel_links(trips, clients, organization_id, data)

    parcel = express.create_parcel(Parcel(
        id=None,
        organization_id=organization_id,
        tracking_code=_tracking_code(express, "P"),
        sender_name=data["sender_name"].strip(),
        sender_document=data.get("sender_document"),
        sender_phone=data.get("sender_phone"),
        recipient_name=data["recipient_name"].strip(),
        recipient_document=data.get("recipient_document"),
        recipient_phone=data.get("recipient_phone"),
        origin_city=data["origin_city"],
        origin_state=data.get("origin_state"),
        destination_city=data["destination_city"],
        destination_state=data.get("destination_state"),
        description=data.get("description"),
        weight=data.get("weight"),
        dimensions=data.get("dimensions"),
        status=data.get("status") or ParcelStatus.AWAITING.value,
        price=data.get("price") or ZERO,
        trip_id=data.get("trip_id"),
        client_id=data.get("client_id"),
        notes=data.get("notes"),
        created_by=created_by,
    ))
    if parcel.status != ParcelStatus.CANCELLED.value:
        create_parcel_transaction(finance, parcel)
    logger.info("Parcel %s registered for organization %s", parcel.tracking_code, organization_id)
    return parcel


def update_parcel(
    express: ExpressRepository,
    trips: TripRepository,
    clients: ClientRepository,
    finance: FinanceRepository,
    organization_id: int,
    parcel_id: int,
    fields: Dict[str, Any],
) -> Parcel:
    fields = {k: v for k, v in fields.items() if v is not None}
    _check(fields.get("status"), ParcelStatus, "parcel status")
    _not_negative(fields, "price", "weight")
    _check_parcel_links(trips, clients, organization_id, fields)

    parcel = express.update_parcel(organization_id, parcel_id, fields)
    if parcel is None:
        raise NotFoundError("Parcel not found")

    _sync_receivable(
        finance, organization_id, finance.list_transactions_for_parcel(organization_id, parcel_id),
        parcel.price, parcel.status != ParcelStatus.CANCELLED.value,
        lambda: create_parcel_transaction(finance, parcel),
        trip_id=parcel.trip_id,
    )
    return parcel


def delete_parcel(express: ExpressRepository, finance: FinanceRepository,
                  organization_id: int, parcel_id: int) -> Parcel:
    parcel = express.get_parcel(organization_id, parcel_id)
    if parcel is None:
        raise NotFoundError("Parcel not found")
    cancel_open_transactions(finance, organization_id,
                             finance.list_transactions_for_parcel(organization_id, parcel_id))
    express.delete_parcel(organization_id, parcel_id)
    return parcel


def track_parcel(express: ExpressRepository, tracking_code: str) -> Parcel:
    parcel = express.get_parcel_by_tracking_code(tracking_code)
    if parcel is None:
        raise NotFoundError("Parcel not found")
    return parcel


def request_parcel(express: ExpressRepository, users: UserRepository, data: Dict[str, Any]) -> Parcel:
    """Public pickup request: no price yet, tracked under a ``REQ-`` code."""
    organization_id = data.get("organization_id")
    if not organization_id or users.get_organization(organization_id) is None:
        raise BusinessRuleError("Organização inválida")
    _require(data, PARCEL_REQUIRED)
    _not_negative(data, "weight")
    return express.create_parcel(Parcel(
        id=None,
        organization_id=organization_id,
        tracking_code=_tracking_code(express, "REQ"),
        sender_name=data["sender_name"].strip(),
        sender_document=data.get("sender_document"),
        sender_phone=data.get("sender_phone"),
        recipient_name=data["recipient_name"].strip(),
        recipient_document=data.get("recipient_document"),
        recipient_phone=data.get("recipient_phone"),
        origin_city=data["origin_city"],
        origin_state=data.get("origin_state"),
        destination_city=data["destination_city"],
        destination_state=data.get("destination_state"),
        description=data.get("description"),
        weight=data.get("weight"),
        dimensions=data.get("dimensions"),
        status=ParcelStatus.AWAITING.value,
    ))


# charters

def _check_charter(fleet: FleetRepository, clients: ClientRepository, organization_id: int,
                   fields: Dict[str, Any], current: Optional[Charter] = None) -> None:
    _check(fields.get("status"), CharterStatus, "charter status")
    _not_negative(fields, "quote_price")
    if "passenger_count" in fields and int(fields["passenger_count"]) < 1:
        raise BusinessRuleError("passenger_count must be at least 1")

    departure = fields.get("departure_date") or (current.departure_date if current else None)
    back = fields.get("return_date") or (current.return_date if current else None)
    if departure and back and back < departure:
        raise BusinessRuleError("Return date must not be before the departure date")

    if fields.get("client_id") and clients.get_client(fields["client_id"], organization_id) is None:
        raise BusinessRuleError("Client not found")
    if fields.get("driver_id") and fleet.get_driver(organization_id, fields["driver_id"]) is None:
        raise BusinessRuleError("Driver not found")
    vehicle_id = fields.get("vehicle_id") or (current.vehicle_id if current else None)
    if vehicle_id:
        vehicle = fleet.get_vehicle(organization_id, vehicle_id)
        if vehicle is None:
            raise BusinessRuleError("Vehicle not found")
        passengers = int(fields.get("passenger_count") or (current.passenger_count if current else 1))
        if vehicle.passenger_capacity and passengers > vehicle.passenger_capacity:
            raise BusinessRuleError(
                f"Vehicle {vehicle.plate} seats {vehicle.passenger_capacity}, charter needs {passengers}"
            )


def _sync_charter_receivable(finance: FinanceRepository, charter: Charter) -> None:
    org = charter.organization_id
    _sync_receivable(
        finance, org, finance.list_transactions_for_charter(org, charter.id),
        charter.quote_price, charter.status in CHARTER_BILLABLE,
        lambda: create_charter_transaction(finance, charter),
        due_date=charter.departure_date,
    )


def create_charter(
    express: ExpressRepository,
    fleet: FleetRepository,
    clients: ClientRepository,
    finance: FinanceRepository,
    organization_id: int,
    data: Dict[str, Any],
    created_by: Optional[int] = None,
) -> Charter:
    data = dict(data)
    _require(data, CHARTER_REQUIRED)
    _check_charter(fleet, clients, organization_id, data)

    charter = express.create_charter(Charter(
        id=None,
        organization_id=organization_id,
        contact_name=data["contact_name"].strip(),
        contact_email=data.get("contact_email"),
        contact_phone=data.get("contact_phone"),
        company_name=data.get("company_name"),
        origin_city=data["origin_city"],
        origin_state=data.get("origin_state"),
        destination_city=data["destination_city"],
        destination_state=data.get("destination_state"),
        departure_date=data["departure_date"],
        departure_time=data.get("departure_time"),
        return_date=data.get("return_date"),
        return_time=data.get("return_time"),
        passenger_count=int(data.get("passenger_count") or 1),
        vehicle_type_requested=data.get("vehicle_type_requested"),
        description=data.get("description"),
        status=data.get("status") or CharterStatus.REQUEST.value,
        quote_price=data.get("quote_price"),
        vehicle_id=data.get("vehicle_id"),
        driver_id=data.get("driver_id"),
        client_id=data.get("client_id"),
        notes=data.get("notes"),
        created_by=created_by,
    ))
    if charter.status in CHARTER_BILLABLE:
        create_charter_transaction(finance, charter)
    return charter


def update_charter(
    express: ExpressRepository,
    fleet: FleetRepository,
    clients: ClientRepository,
    finance: FinanceRepository,
    organization_id: int,
    charter_id: int,
    fields: Dict[str, Any],
) -> Charter:
    """Apply an edit and move the quote receivable along with the status."""
    fields = {k: v for k, v in fields.items() if v is not None}
    current = express.get_charter(organization_id, charter_id)
    if current is None:
        raise NotFoundError("Charter request not found")
    _check_charter(fleet, clients, organization_id, fields, current)

    charter = express.update_charter(organization_id, charter_id, fields)
    if current.status != charter.status:
        logger.info("Charter %s moved from %s to %s", charter_id, current.status, charter.status)
    _sync_charter_receivable(finance, charter)
    return charter


def delete_charter(express: ExpressRepository, finance: FinanceRepository,
                   organization_id: int, charter_id: int) -> Charter:
    charter = express.get_charter(organization_id, charter_id)
    if charter is None:
        raise NotFoundError("Charter request not found")
    cancel_open_transactions(finance, organization_id,
                             finance.list_transactions_for_charter(organization_id, charter_id))
    express.delete_charter(organization_id, charter_id)
    return charter


def request_charter(express: ExpressRepository, users: UserRepository, data: Dict[str, Any]) -> Charter:
    """Public quote request; always lands as REQUEST with no price."""
    organization_id = data.get("organization_id")
    if not organization_id or users.get_organization(organization_id) is None:
        raise BusinessRuleError("Organização inválida")
    _require(data, CHARTER_REQUIRED)
    if int(data.get("passenger_count") or 1) < 1:
        raise BusinessRuleError("passenger_count must be at least 1")
    return express.create_charter(Charter(
        id=None,
        organization_id=organization_id,
        contact_name=data["contact_name"].strip(),
        contact_email=data.get("contact_email"),
        contact_phone=data.get("contact_phone"),
        company_name=data.get("company_name"),
        origin_city=data["origin_city"],
        origin_state=data.get("origin_state"),
        destination_city=data["destination_city"],
        destination_state=data.get("destination_state"),
        departure_date=data["departure_date"],
        departure_time=data.get("departure_time"),
        return_date=data.get("return_date"),
        return_time=data.get("return_time"),
        passenger_count=int(data.get("passenger_count") or 1),
        vehicle_type_requested=data.get("vehicle_type_requested"),
        description=data.get("description"),
        status=CharterStatus.REQUEST.value,
    ))
