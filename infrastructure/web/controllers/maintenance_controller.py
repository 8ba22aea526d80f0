from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from core.entities.user import Role
from core.use_cases.audit_use_cases import record_event
from core.use_cases.fleet_use_cases import create_maintenance, update_maintenance, delete_maintenance
from infrastructure.db.finance_repository import SQLiteFinanceRepository
from infrastructure.db.fleet_repository import SQLiteFleetRepository
from infrastructure.db.sqlite import TransportConnection, SQLiteAuditRepository, atomic
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_db, get_fleet_repo, get_finance_repo, get_audit_repo, http_error, request_meta,
)
from infrastructure.web.schemas import MaintenanceRequest, MaintenanceUpdateRequest, MaintenanceResponse

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])

maintenance_readers = authorize(Role.ADMIN, Role.OPERACIONAL, Role.FINANCEIRO)
maintenance_writers = authorize(Role.ADMIN, Role.OPERACIONAL)


@router.get("", response_model=List[MaintenanceResponse])
def list_maintenance(
    vehicle_id: Optional[int] = None,
    ctx: AuthContext = Depends(maintenance_readers),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
):
    try:
        return [MaintenanceResponse.model_validate(m) for m in fleet.list_maintenance(ctx.organization_id, vehicle_id)]
    except Exception as e:
        raise http_error(e, "Failed to fetch maintenances")

@router.get("/{maintenance_id}", response_model=MaintenanceResponse)
def get_maintenance(
    maintenance_id: int,
    ctx: AuthContext = Depends(maintenance_readers),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
):
    maintenance = fleet.get_maintenance(ctx.organization_id, maintenance_id)
    if maintenance is None:
        raise HTTPException(status_code=404, detail="Maintenance not found")
    return MaintenanceResponse.model_validate(maintenance)

@router.post("", response_model=MaintenanceResponse, status_code=201)
def add_maintenance(
    payload: MaintenanceRequest,
    request: Request,
    ctx: AuthContext = Depends(maintenance_writers),
    conn: TransportConnection = Depends(get_db),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        with atomic(conn):
            maintenance = create_maintenance(fleet, finance, ctx.organization_id, payload.model_dump(), ctx.user.id)
    except Exception as e:
        raise http_error(e, "Failed to create maintenance")
    record_event(audit, "MAINTENANCE_CREATE", "maintenance", maintenance.id, ctx.organization_id, ctx.user.id,
                 new_data={"vehicle_id": maintenance.vehicle_id, "total_cost": maintenance.total_cost},
                 **request_meta(request))
    return MaintenanceResponse.model_validate(maintenance)

@router.put("/{maintenance_id}", response_model=MaintenanceResponse)
def edit_maintenance(
    maintenance_id: int,
    payload: MaintenanceUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(maintenance_writers),
    conn: TransportConnection = Depends(get_db),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        with atomic(conn):
            maintenance = update_maintenance(fleet, finance, ctx.organization_id, maintenance_id, changes)
    except Exception as e:
        raise http_error(e, "Failed to update maintenance")
    record_event(audit, "MAINTENANCE_UPDATE", "maintenance", maintenance_id, ctx.organization_id, ctx.user.id,
                 new_data=changes, **request_meta(request))
    return MaintenanceResponse.model_validate(maintenance)

@router.delete("/{maintenance_id}")
def remove_maintenance(
    maintenance_id: int,
    request: Request,
    ctx: AuthContext = Depends(maintenance_writers),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        delete_maintenance(fleet, ctx.organization_id, maintenance_id)
    except Exception as e:
        raise http_error(e, "Failed to delete maintenance")
    record_event(audit, "MAINTENANCE_DELETE", "maintenance", maintenance_id, ctx.organization_id, ctx.user.id,
                 **request_meta(request))
    return {"success": True}
