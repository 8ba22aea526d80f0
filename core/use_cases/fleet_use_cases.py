import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from core.entities.fleet import Vehicle, Driver, VehicleType, VehicleStatus, DriverStatus
from core.entities.maintenance import Maintenance, MaintenanceType, MaintenanceStatus
from core.entities.transaction import TransactionStatus
from core.errors import BusinessRuleError, NotFoundError
from core.repositories.finance_repository import FinanceRepository
from core.repositories.fleet_repository import FleetRepository
from core.services.pricing import to_decimal
from core.use_cases.finance_use_cases import change_transaction, create_maintenance_transaction

logger = logging.getLogger(__name__)


def _check(value: Optional[str], enum, label: str) -> None:
    if value is not None and value not in {e.value for e in enum}:
        raise BusinessRuleError(f"Invalid {label}: {value}")


def create_vehicle(repo: FleetRepository, organization_id: int, data: Dict[str, Any]) -> Vehicle:
    _check(data.get("type"), VehicleType, "vehicle type")
    _check(data.get("status"), VehicleStatus, "vehicle status")
    plate = (data.get("plate") or "").strip().upper()
    if not plate:
        raise BusinessRuleError("Plate is required")
    return repo.create_vehicle(Vehicle(
        id=None,
        organization_id=organization_id,
        plate=plate,
        model=data["model"],
        type=data.get("type") or VehicleType.ONIBUS.value,
        status=data.get("status") or VehicleStatus.ACTIVE.value,
        passenger_capacity=int(data.get("passenger_capacity") or 0),
        current_km=int(data.get("current_km") or 0),
        year=data.get("year"),
        notes=data.get("notes"),
    ))


def update_vehicle(repo: FleetRepository, organization_id: int, vehicle_id: int, fields: Dict[str, Any]) -> Vehicle:
    fields = {k: v for k, v in fields.items() if v is not None}
    _check(fields.get("type"), VehicleType, "vehicle type")
    _check(fields.get("status"), VehicleStatus, "vehicle status")
    if "plate" in fields:
        fields["plate"] = fields["plate"].strip().upper()
    vehicle = repo.update_vehicle(organization_id, vehicle_id, fields)
    if vehicle is None:
        raise NotFoundError("Vehicle not found")
    return vehicle


def create_driver(repo: FleetRepository, organization_id: int, data: Dict[str, Any]) -> Driver:
    _check(data.get("status"), DriverStatus, "driver status")
    return repo.create_driver(Driver(
        id=None,
        organization_id=organization_id,
        name=data["name"],
        status=data.get("status") or DriverStatus.ACTIVE.value,
        document=data.get("document"),
        phone=data.get("phone"),
        license_number=data.get("license_number"),
        license_category=data.get("license_category"),
        license_expiry=data.get("license_expiry"),
        notes=data.get("notes"),
    ))


def update_driver(repo: FleetRepository, organization_id: int, driver_id: int, fields: Dict[str, Any]) -> Driver:
    fields = {k: v for k, v in fields.items() if v is not None}
    _check(fields.get("status"), DriverStatus, "driver status")
    driver = repo.update_driver(organization_id, driver_id, fields)
    if driver is None:
        raise NotFoundError("Driver not found")
    return driver


def _sync_vehicle(repo: FleetRepository, maintenance: Maintenance) -> None:
    vehicle = repo.get_vehicle(maintenance.organization_id, maintenance.vehicle_id)
    if vehicle is None:
        return
    fields: Dict[str, Any] = {}
    if maintenance.status == MaintenanceStatus.IN_PROGRESS.value:
        fields["status"] = VehicleStatus.MAINTENANCE.value
    elif maintenance.status == MaintenanceStatus.COMPLETED.value and vehicle.status == VehicleStatus.MAINTENANCE.value:
        fields["status"] = VehicleStatus.ACTIVE.value
    if maintenance.km and maintenance.km > vehicle.current_km:
        fields["current_km"] = maintenance.km
    if fields:
        repo.update_vehicle(vehicle.organization_id, vehicle.id, fields)


def create_maintenance(
    fleet: FleetRepository,
    finance: FinanceRepository,
    organization_id: int,
    data: Dict[str, Any],
    created_by: Optional[int] = None,
) -> Maintenance:
    """Record a job, move the vehicle to/from the workshop and book its expense."""
    _check(data.get("type"), MaintenanceType, "maintenance type")
    _check(data.get("status"), MaintenanceStatus, "maintenance status")
    if fleet.get_vehicle(organization_id, data["vehicle_id"]) is None:
        raise BusinessRuleError("Vehicle not found")

    maintenance = fleet.create_maintenance(Maintenance(
        id=None,
        organization_id=organization_id,
        vehicle_id=data["vehicle_id"],
        type=data.get("type") or MaintenanceType.PREVENTIVE.value,
        status=data.get("status") or MaintenanceStatus.SCHEDULED.value,
        scheduled_date=data["scheduled_date"],
        description=data.get("description"),
        km=int(data.get("km") or 0),
        cost_parts=to_decimal(data.get("cost_parts")),
        cost_labor=to_decimal(data.get("cost_labor")),
        currency=data.get("currency") or "BRL",
        workshop=data.get("workshop"),
        notes=data.get("notes"),
        created_by=created_by,
    ))
    _sync_vehicle(fleet, maintenance)
    if maintenance.status != MaintenanceStatus.CANCELLED.value:
        create_maintenance_transaction(finance, maintenance)
    return maintenance


def update_maintenance(
    fleet: FleetRepository,
    finance: FinanceRepository,
    organization_id: int,
    maintenance_id: int,
    fields: Dict[str, Any],
) -> Maintenance:
    fields = {k: v for k, v in fields.items() if v is not None}
    _check(fields.get("type"), MaintenanceType, "maintenance type")
    _check(fields.get("status"), MaintenanceStatus, "maintenance status")
    for money in ("cost_parts", "cost_labor"):
        if money in fields:
            fields[money] = to_decimal(fields[money])
    if "vehicle_id" in fields and fleet.get_vehicle(organization_id, fields["vehicle_id"]) is None:
        raise BusinessRuleError("Vehicle not found")

    maintenance = fleet.update_maintenance(organization_id, maintenance_id, fields)
    if maintenance is None:
        raise NotFoundError("Maintenance not found")
    _sync_vehicle(fleet, maintenance)

    # keep the automatic expense in step while it is still open
    linked = finance.list_transactions_for_maintenance(organization_id, maintenance_id)
    pending = [tx for tx in linked if tx.status == TransactionStatus.PENDING.value]
    if maintenance.status == MaintenanceStatus.CANCELLED.value:
        for tx in linked:
            change_transaction(finance, organization_id, tx.id, {"status": TransactionStatus.CANCELLED.value})
    elif maintenance.status == MaintenanceStatus.COMPLETED.value:
        for tx in pending:
            change_transaction(finance, organization_id, tx.id, {
                "status": TransactionStatus.PAID.value,
                "payment_date": datetime.now(timezone.utc).isoformat(),
                "amount": maintenance.total_cost,
            })
    elif pending and maintenance.total_cost > 0:
        for tx in pending:
            change_transaction(finance, organization_id, tx.id, {
                "amount": maintenance.total_cost,
                "date": maintenance.scheduled_date,
            })
    elif not linked:
        create_maintenance_transaction(finance, maintenance)
    return maintenance


def delete_maintenance(fleet: FleetRepository, organization_id: int, maintenance_id: int) -> Maintenance:
    maintenance = fleet.get_maintenance(organization_id, maintenance_id)
    if maintenance is None:
        raise NotFoundError("Maintenance not found")
    fleet.delete_maintenance(organization_id, maintenance_id)
    return maintenance
